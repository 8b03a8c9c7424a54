import ipaddress

import pytest

from rtnlcodec.nla import DecodeError
from rtnlcodec.route import RouteFlags, RouteHeader, RouteMessage
from rtnlcodec.route_nlas import NextHop, NextHopFlags, RouteAttr, RouteNla

ROUTE_MSG = bytes(
    [
        0x0A, 0x40, 0x00, 0x00, 0xFE, 0x03, 0x00, 0x01,
        0x00, 0x00, 0x00, 0x00,
        # destination
        0x14, 0x00, 0x01, 0x00,
        0x10, 0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        # multipath
        0x44, 0x00, 0x09, 0x00,
        # next hop 1
        0x1C, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x14, 0x00, 0x05, 0x00,
        0xFC, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x01,
        # next hop 2
        0x1C, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x14, 0x00, 0x05, 0x00,
        0xFC, 0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x01,
        # next hop 3
        0x08, 0x00, 0x00, 0x00, 0x02, 0x00, 0x00, 0x00,
    ]
)


def _v6(text):
    return ipaddress.IPv6Address(text).packed


def route_message():
    msg = RouteMessage()
    msg.header.address_family = 0x0A
    msg.header.destination_prefix_length = 0x40
    msg.header.source_prefix_length = 0
    msg.header.tos = 0
    msg.header.table = 0xFE
    msg.header.protocol = 0x03
    msg.header.scope = 0x00
    msg.header.kind = 0x01
    msg.header.flags = RouteFlags(0)
    msg.nlas = [
        RouteNla(RouteAttr.DST, _v6("1001::")),
        RouteNla(
            RouteAttr.MULTIPATH,
            [
                NextHop(
                    NextHopFlags(0), 0, 0, [RouteNla(RouteAttr.GATEWAY, _v6("fc00::1"))]
                ),
                NextHop(
                    NextHopFlags(0), 0, 0, [RouteNla(RouteAttr.GATEWAY, _v6("fc01::1"))]
                ),
                NextHop(NextHopFlags(0), 0, 2, []),
            ],
        ),
    ]
    return msg


def test_parsed_fixture_length_matches():
    parsed = RouteMessage.parse(ROUTE_MSG)
    assert parsed.buffer_len() == len(ROUTE_MSG) == 100


def test_parse_message_with_multipath_nla():
    assert RouteMessage.parse(ROUTE_MSG) == route_message()


def test_emit_message_with_multipath_nla():
    msg = route_message()
    assert msg.buffer_len() == 100
    assert msg.emit() == ROUTE_MSG


def test_multipath_next_hop_gateways():
    msg = RouteMessage.parse(ROUTE_MSG)
    hops = msg.nlas[1].value
    assert [hop.gateway() for hop in hops] == [
        ipaddress.IPv6Address("fc00::1"),
        ipaddress.IPv6Address("fc01::1"),
        None,
    ]


def test_destination_prefix_from_fixture():
    msg = RouteMessage.parse(ROUTE_MSG)
    assert msg.destination_prefix() == (ipaddress.IPv6Address("1001::"), 64)
    assert msg.source_prefix() is None
    assert msg.gateway() is None


def test_header_defaults():
    hdr = RouteHeader()
    assert hdr.address_family == 0
    assert hdr.destination_prefix_length == 0
    assert hdr.source_prefix_length == 0
    assert hdr.tos == 0
    assert hdr.table == 0
    assert hdr.protocol == 0
    assert hdr.scope == 0
    assert hdr.kind == 0
    assert int(hdr.flags) == 0


def test_header_round_trip():
    hdr = RouteHeader(
        address_family=2,
        destination_prefix_length=8,
        table=254,
        protocol=2,
        scope=254,
        kind=1,
        flags=RouteFlags.RTM_F_NOTIFY | RouteFlags.RTM_F_FIB_MATCH,
    )
    data = hdr.emit()
    assert len(data) == hdr.buffer_len() == 12
    assert RouteHeader.parse(data) == hdr


def test_header_parse_drops_unknown_flags():
    data = bytes(8) + b"\xff\xff\xff\xff"
    hdr = RouteHeader.parse(data)
    expected = RouteFlags(0)
    for flag in RouteFlags:
        expected |= flag
    assert hdr.flags == expected


def test_header_too_short():
    with pytest.raises(DecodeError):
        RouteHeader.parse(bytes(11))


def test_message_parse_short_raises():
    with pytest.raises(DecodeError):
        RouteMessage.parse(bytes(5))


def test_message_parse_bad_nla_raises():
    with pytest.raises(DecodeError):
        RouteMessage.parse(bytes(12) + b"\x20\x00\x01\x00")


def test_ipv4_accessors_round_trip():
    msg = RouteMessage(
        RouteHeader(address_family=2, destination_prefix_length=24, source_prefix_length=16),
        [
            RouteNla(RouteAttr.DST, ipaddress.IPv4Address("10.0.0.0").packed),
            RouteNla(RouteAttr.SRC, ipaddress.IPv4Address("192.168.0.0").packed),
            RouteNla(RouteAttr.GATEWAY, ipaddress.IPv4Address("10.0.0.1").packed),
            RouteNla(RouteAttr.IIF, 3),
            RouteNla(RouteAttr.OIF, 7),
        ],
    )
    parsed = RouteMessage.parse(msg.emit())
    assert parsed == msg
    assert parsed.destination_prefix() == (ipaddress.IPv4Address("10.0.0.0"), 24)
    assert parsed.source_prefix() == (ipaddress.IPv4Address("192.168.0.0"), 16)
    assert parsed.gateway() == ipaddress.IPv4Address("10.0.0.1")
    assert parsed.input_interface() == 3
    assert parsed.output_interface() == 7


def test_accessors_absent():
    msg = RouteMessage()
    assert msg.input_interface() is None
    assert msg.output_interface() is None
    assert msg.destination_prefix() is None


def test_invalid_gateway_is_skipped():
    msg = RouteMessage(
        nlas=[
            RouteNla(RouteAttr.GATEWAY, b"\x01\x02\x03"),
            RouteNla(RouteAttr.GATEWAY, ipaddress.IPv4Address("10.0.0.1").packed),
        ]
    )
    assert msg.gateway() == ipaddress.IPv4Address("10.0.0.1")