import ipaddress
import struct

import pytest

from rtnlcodec.nla import DecodeError, DefaultNla, NlaBuffer
from rtnlcodec.route_metrics import MetricAttr, Metrics
from rtnlcodec.route_nlas import (
    NextHop,
    NextHopFlags,
    RouteAttr,
    RouteNla,
    parse_route_nlas,
)
from rtnlcodec.route_stats import MfcStats, RouteCacheInfo

DESTINATION_NLA = bytes(
    [0x14, 0x00, 0x01, 0x00, 0x10, 0x01] + [0x00] * 14
)

MULTIPATH_NLA = bytes(
    [0x44, 0x00, 0x09, 0x00]
    + [0x1C, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x14, 0x00, 0x05, 0x00]
    + [0xFC, 0x00] + [0x00] * 13 + [0x01]
    + [0x1C, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x14, 0x00, 0x05, 0x00]
    + [0xFC, 0x01] + [0x00] * 13 + [0x01]
    + [0x08, 0x00, 0x00, 0x00, 0x02, 0x00, 0x00, 0x00]
)


def _gateway(text):
    return RouteNla(RouteAttr.GATEWAY, ipaddress.IPv6Address(text).packed)


def _expected_multipath():
    return RouteNla(
        RouteAttr.MULTIPATH,
        [
            NextHop(NextHopFlags.RTNH_F_EMPTY, 0, 0, [_gateway("fc00::1")]),
            NextHop(NextHopFlags.RTNH_F_EMPTY, 0, 0, [_gateway("fc01::1")]),
            NextHop(NextHopFlags.RTNH_F_EMPTY, 0, 2, []),
        ],
    )


def test_parse_multipath():
    parsed = RouteNla.parse(NlaBuffer.checked(MULTIPATH_NLA))
    assert parsed == _expected_multipath()
    gateways = [hop.gateway() for hop in parsed.value]
    assert gateways == [
        ipaddress.IPv6Address("fc00::1"),
        ipaddress.IPv6Address("fc01::1"),
        None,
    ]


def test_emit_multipath():
    nla = _expected_multipath()
    assert nla.buffer_len() == len(MULTIPATH_NLA)
    assert nla.emit() == MULTIPATH_NLA


def test_parse_destination():
    parsed = RouteNla.parse(NlaBuffer.checked(DESTINATION_NLA))
    assert parsed == RouteNla(
        RouteAttr.DST, ipaddress.IPv6Address("1001::").packed
    )
    assert parsed.emit() == DESTINATION_NLA


def test_parse_route_nlas_sequence():
    nlas = parse_route_nlas(DESTINATION_NLA + MULTIPATH_NLA)
    assert [nla.attr for nla in nlas] == [RouteAttr.DST, RouteAttr.MULTIPATH]
    assert nlas[1] == _expected_multipath()


@pytest.mark.parametrize(
    "nla",
    [
        RouteNla(RouteAttr.OIF, 3),
        RouteNla(RouteAttr.TABLE, 254),
        RouteNla(RouteAttr.ENCAP_TYPE, 1),
        RouteNla(RouteAttr.METRICS, Metrics(MetricAttr.MTU, 1500)),
        RouteNla(RouteAttr.CACHEINFO, RouteCacheInfo(1, 2, 3, 4, 5, 6, 7, 8)),
        RouteNla(RouteAttr.MFC_STATS, MfcStats(10, 20, 30)),
        RouteNla(RouteAttr.PREF, b"\x00"),
    ],
)
def test_route_nla_roundtrip(nla):
    data = nla.emit()
    assert len(data) == nla.buffer_len()
    assert RouteNla.parse(NlaBuffer.checked(data)) == nla


def test_unknown_route_nla_is_default():
    data = struct.pack("=HH", 8, 300) + b"wxyz"
    parsed = RouteNla.parse(NlaBuffer.checked(data))
    assert isinstance(parsed, DefaultNla)
    assert parsed.kind == 300


def test_bad_integer_value_fails():
    data = struct.pack("=HH", 6, RouteAttr.OIF) + b"\x01\x02"
    with pytest.raises(DecodeError):
        RouteNla.parse(NlaBuffer.checked(data))


def test_truncated_multipath_fails():
    data = struct.pack("=HH", 8, RouteAttr.MULTIPATH) + b"\x1c\x00\x00\x00"
    with pytest.raises(DecodeError):
        RouteNla.parse(NlaBuffer.checked(data))


def test_short_cache_info_fails():
    data = struct.pack("=HH", 8, RouteAttr.CACHEINFO) + b"\x00" * 4
    with pytest.raises(DecodeError):
        RouteNla.parse(NlaBuffer.checked(data))


def test_next_hop_unknown_flag_bits_dropped():
    hop = NextHop(NextHopFlags.RTNH_F_EMPTY, 1, 7, [])
    data = bytearray(hop.emit())
    data[2] = 0xFF
    parsed = NextHop.parse(bytes(data))
    known = NextHopFlags.RTNH_F_EMPTY
    for flag in NextHopFlags:
        known |= flag
    assert parsed.flags == known
    assert parsed.hops == 1
    assert parsed.interface_id == 7


def test_next_hop_roundtrip_with_ipv4_gateway():
    gateway = ipaddress.IPv4Address("192.0.2.1")
    hop = NextHop(
        NextHopFlags.RTNH_F_ONLINK,
        0,
        4,
        [RouteNla(RouteAttr.GATEWAY, gateway.packed)],
    )
    data = hop.emit()
    assert len(data) == hop.buffer_len()
    parsed = NextHop.parse(data)
    assert parsed == hop
    assert parsed.gateway() == gateway


def test_next_hop_too_short_fails():
    with pytest.raises(DecodeError):
        NextHop.parse(b"\x08\x00\x00")