import pytest

from rtnlcodec.neighbour import (
    NeighbourAttr,
    NeighbourCacheInfo,
    NeighbourHeader,
    NeighbourMessage,
    NeighbourNla,
)
from rtnlcodec.nla import DecodeError, DefaultNla, NlaBuffer

AF_INET6 = 10
NUD_REACHABLE = 0x02
NTF_ROUTER = 0x80

HEADER = bytes([
    0x0A,              # interface family (inet6)
    0xFF, 0xFF, 0xFF,  # padding
    0x01, 0x00, 0x00, 0x00,  # interface index = 1
    0x02, 0x00,        # state NUD_REACHABLE
    0x80,              # flags NTF_ROUTER
    0x01,              # ntype
])


def test_packet_header_read():
    header = NeighbourHeader.parse(HEADER)
    assert header.family == AF_INET6
    assert header.ifindex == 1
    assert header.state == NUD_REACHABLE
    assert header.flags == NTF_ROUTER
    assert header.ntype == NeighbourAttr.DST


def test_packet_header_build():
    header = NeighbourHeader(
        family=AF_INET6,
        ifindex=1,
        state=NUD_REACHABLE,
        flags=NTF_ROUTER,
        ntype=NeighbourAttr.DST,
    )
    emitted = header.emit()
    assert len(emitted) == 12
    assert emitted[0] == HEADER[0]
    assert emitted[4:] == HEADER[4:]


def test_emit():
    header = NeighbourHeader(
        family=AF_INET6,
        ifindex=1,
        state=NUD_REACHABLE,
        flags=NTF_ROUTER,
        ntype=NeighbourAttr.DST,
    )
    packet = NeighbourMessage(header=header, nlas=[])
    assert packet.buffer_len() == 12
    assert packet.emit() == header.emit()


def test_header_too_short():
    with pytest.raises(DecodeError):
        NeighbourHeader.parse(HEADER[:11])


def test_message_round_trip_with_nlas():
    message = NeighbourMessage(
        header=NeighbourHeader(family=AF_INET6, ifindex=1, state=NUD_REACHABLE),
        nlas=[
            NeighbourNla(NeighbourAttr.DST, bytes(16)),
            NeighbourNla(NeighbourAttr.LLADDR, bytes([0x02, 0, 0, 0, 0, 0x01])),
            NeighbourNla(NeighbourAttr.VLAN, 100),
            NeighbourNla(NeighbourAttr.IFINDEX, 7),
            DefaultNla(kind=200, value=b"xyz"),
        ],
    )
    data = message.emit()
    assert len(data) == message.buffer_len()
    assert NeighbourMessage.parse(data) == message


def test_integer_attribute_sizes():
    assert NeighbourNla(NeighbourAttr.VLAN, 1).value_len() == 2
    assert NeighbourNla(NeighbourAttr.SRC_VNI, 1).value_len() == 4
    assert NeighbourNla(NeighbourAttr.PORT, b"abc").value_len() == 3


def test_unknown_kind_becomes_default_nla():
    raw = DefaultNla(kind=99, value=b"\x01\x02").emit()
    parsed = NeighbourNla.parse(NlaBuffer.checked(raw))
    assert parsed == DefaultNla(kind=99, value=b"\x01\x02")


def test_bad_vlan_length_fails_message_parse():
    bad = DefaultNla(kind=int(NeighbourAttr.VLAN), value=b"\x01\x02\x03").emit()
    with pytest.raises(DecodeError):
        NeighbourMessage.parse(HEADER + bad)


def test_cache_info_round_trip():
    info = NeighbourCacheInfo(confirmed=10, used=20, updated=30, refcnt=2)
    data = info.emit()
    assert len(data) == 16
    assert NeighbourCacheInfo.parse(data) == info


def test_cache_info_too_short():
    with pytest.raises(DecodeError):
        NeighbourCacheInfo.parse(bytes(15))