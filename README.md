# rtnlcodec

Encode and decode the payloads of rtnetlink messages: routes, neighbours,
neighbour tables, policy rules, network-namespace ids and traffic-control
objects (qdiscs, classes, filters and their actions).

The package turns the bytes that follow a netlink message header into
Python dataclasses and turns those objects back into bytes. Integers are
read and written in the host's native byte order.

## Installing

```
pip install rtnlcodec
```

Python 3.10 or newer is needed; there are no third-party dependencies.

## Modules

| Module | Contents |
| --- | --- |
| `rtnlcodec.nla` | Attribute framing: `NlaBuffer`, `Nla`, `DefaultNla`, `iter_nlas`, `emit_nlas`, `nlas_buffer_len`, `parse_u8`, `parse_u16`, `parse_u32`, `parse_i32`, `parse_u64`, `parse_string`, `parse_ip` and `DecodeError` |
| `rtnlcodec.route` | `RouteHeader`, `RouteFlags`, `RouteMessage` |
| `rtnlcodec.route_nlas` | `RouteAttr`, `RouteNla`, `NextHop`, `NextHopFlags`, `parse_route_nlas` |
| `rtnlcodec.route_metrics` | `Metrics`, `MetricAttr`, `MplsIpTunnel`, `MplsIpTunnelAttr` |
| `rtnlcodec.route_stats` | `RouteCacheInfo`, `MfcStats` |
| `rtnlcodec.neighbour` | `NeighbourHeader`, `NeighbourAttr`, `NeighbourNla`, `NeighbourCacheInfo`, `NeighbourMessage` |
| `rtnlcodec.neighbour_table` | `NeighbourTableHeader`, `NeighbourTableAttr`, `NeighbourTableNla`, `NeighbourTableConfig`, `NeighbourTableStats`, `NeighbourTableMessage` |
| `rtnlcodec.rule` | `RuleHeader`, `RuleFlags`, `RuleAttr`, `RuleNla`, `RuleMessage` |
| `rtnlcodec.nsid` | `NsidHeader`, `NsidAttr`, `NsidNla`, `NsidMessage` |
| `rtnlcodec.tc` | `TcHeader`, `TcAttr`, `TcNla`, `TcMessage`, `parse_tc_nlas` |
| `rtnlcodec.tc_options` | u32 filter options (`U32Key`, `U32Sel`, `U32Attr`, `U32Nla`), `IngressOpt`, `parse_tc_opt` |
| `rtnlcodec.tc_action` | `Action`, `ActAttr`, `ActNla`, `MirredAttr`, `MirredNla`, `TcMirred`, `TcGen`, `parse_act_opt` |
| `rtnlcodec.tc_stats` | `TcStats`, `StatsBasic`, `StatsQueue`, `Stats2Attr`, `Stats2` |
| `rtnlcodec.tc_constants` | handle and attribute constants, `tc_h_make` |

### Common shape

* Messages (`RouteMessage`, `NeighbourMessage`, `NeighbourTableMessage`,
  `RuleMessage`, `NsidMessage`, `TcMessage`) and their headers have a
  `parse(data)` class method, `buffer_len()` and `emit()`. `parse` raises
  `DecodeError` when the bytes are too short or malformed.
* Attributes derive from `Nla`: `value_len()` and `emit_value()` cover the
  value alone, `buffer_len()` and `emit()` the whole padded attribute. Most
  attribute classes also have a `parse(buf)` class method taking an
  `NlaBuffer`; attribute kinds they do not know come back as `DefaultNla`,
  so parsing and emitting again keeps them unchanged.
* Fixed-layout structures (`RouteCacheInfo`, `MfcStats`, `TcStats`,
  `StatsBasic`, `StatsQueue`, `NeighbourCacheInfo`, `NeighbourTableConfig`,
  `NeighbourTableStats`, `TcMirred`, `TcGen`, `U32Key`, `U32Sel`) have
  `parse(data)` and `emit()`.

## Examples

Decode a namespace-id reply:

```python
from rtnlcodec.nsid import NsidMessage

payload = bytes([
    0x00, 0x00, 0x00, 0x00,  # rtgen family + padding
    0x08, 0x00, 0x01, 0x00,  # NLA: length 8, NETNSA_NSID
    0xff, 0xff, 0xff, 0xff,  # -1: not assigned
])
msg = NsidMessage.parse(payload)
print(msg.header.rtgen_family, msg.nlas[0].value)  # 0 -1
```

Build a neighbour message and encode it:

```python
from rtnlcodec.neighbour import NeighbourHeader, NeighbourMessage

header = NeighbourHeader(family=10, ifindex=1, state=0x02, flags=0x80, ntype=1)
msg = NeighbourMessage(header=header, nlas=[])
assert msg.buffer_len() == 12
wire = msg.emit()
```

Build a route and use its accessors:

```python
import ipaddress

from rtnlcodec.route import RouteHeader, RouteMessage
from rtnlcodec.route_nlas import RouteAttr, RouteNla

route = RouteMessage(
    header=RouteHeader(address_family=10, destination_prefix_length=64),
    nlas=[
        RouteNla(RouteAttr.DST, ipaddress.IPv6Address("1001::").packed),
        RouteNla(RouteAttr.OIF, 2),
    ],
)
again = RouteMessage.parse(route.emit())
print(again.destination_prefix())  # (IPv6Address('1001::'), 64)
print(again.output_interface())    # 2
print(again.gateway())             # None
```

Build an ingress qdisc message and read it back:

```python
from rtnlcodec.tc import TcAttr, TcHeader, TcMessage, TcNla

msg = TcMessage(
    header=TcHeader(index=84, handle=0xFFFF0000, parent=0xFFFFFFF1, info=1),
    nlas=[TcNla(TcAttr.KIND, "ingress"), TcNla(TcAttr.OPTIONS, [])],
)
wire = msg.emit()
assert TcMessage.parse(wire) == msg
```

`TCA_OPTIONS` attributes are decoded according to the most recent
`TCA_KIND` (`u32` filters and `ingress` qdiscs are understood), and action
options according to the action's `TCA_ACT_KIND` (`mirred` is understood).

## What it does not do

* No sockets and no I/O: bytes go in and come out, nothing is sent to or
  read from the kernel.
* It does not read or write the 16-byte netlink message header, and it
  does not pick a message class from a message type; the caller chooses
  which `parse` to call.
* Link and address messages are not covered.
* An `IngressOpt` has no attribute kind and cannot be emitted again; it
  raises `TypeError`. `U32Sel.emit` raises `ValueError` when `nkeys` does
  not match the number of keys.

## Running the tests

```
pip install -e ".[test]"
pytest
```