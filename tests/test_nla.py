import ipaddress

import pytest

from rtnlcodec.nla import (
    DecodeError,
    DefaultNla,
    NlaBuffer,
    emit_nlas,
    iter_nlas,
    nlas_buffer_len,
    parse_i32,
    parse_ip,
    parse_string,
    parse_u8,
    parse_u16,
    parse_u32,
    parse_u64,
)

KIND_NLA = bytes([12, 0, 1, 0]) + b"ingress\x00"
OPTIONS_NLA = bytes([4, 0, 2, 0])
HW_OFFLOAD_NLA = bytes([5, 0, 12, 0, 0, 0, 0, 0])


def test_nla_buffer_fields():
    buf = NlaBuffer.checked(KIND_NLA)
    assert buf.length == 12
    assert buf.kind == 1
    assert buf.value == b"ingress\x00"


def test_iter_nlas_reads_each_attribute():
    nlas = list(iter_nlas(KIND_NLA + OPTIONS_NLA + HW_OFFLOAD_NLA))
    assert [n.kind for n in nlas] == [1, 2, 12]
    assert [n.length for n in nlas] == [12, 4, 5]
    assert nlas[1].value == b""
    assert nlas[2].value == b"\x00"


def test_default_nla_emits_padding():
    nla = DefaultNla(kind=12, value=b"\x00")
    assert nla.emit() == HW_OFFLOAD_NLA
    assert nla.buffer_len() == len(HW_OFFLOAD_NLA)
    assert nla.value_len() == 1


def test_default_nla_round_trip():
    data = KIND_NLA + OPTIONS_NLA + HW_OFFLOAD_NLA
    nlas = [DefaultNla.parse(b) for b in iter_nlas(data)]
    assert emit_nlas(nlas) == data
    assert nlas_buffer_len(nlas) == len(data)


def test_nested_flag_is_masked_out_of_kind():
    raw = DefaultNla(kind=0x8001, value=b"ab").emit()
    buf = NlaBuffer.checked(raw)
    assert buf.kind == 1
    assert buf.nested_flag
    assert not buf.network_byte_order_flag
    assert DefaultNla.parse(buf).kind == 0x8001


@pytest.mark.parametrize(
    "data",
    [b"\x04\x00", bytes([12, 0, 1, 0, 0]), bytes([2, 0, 1, 0, 0, 0])],
)
def test_checked_rejects_bad_lengths(data):
    with pytest.raises(DecodeError):
        NlaBuffer.checked(data)


def test_iter_nlas_raises_on_truncated_tail():
    with pytest.raises(DecodeError):
        list(iter_nlas(KIND_NLA + bytes([8, 0, 1, 0, 0])))


def test_integer_parsers():
    assert parse_u32(bytes([5, 0, 0, 0])) == 5
    assert parse_i32(b"\xff\xff\xff\xff") == -1
    assert parse_u8(b"\x00") == 0
    assert parse_u16(bytes(2)) == 0
    assert parse_u64(bytes(8)) == 0


@pytest.mark.parametrize(
    "parser, data",
    [(parse_u8, b""), (parse_u16, b"\x01"), (parse_u32, b"\x01\x02"),
     (parse_i32, bytes(5)), (parse_u64, bytes(4))],
)
def test_integer_parsers_reject_wrong_size(parser, data):
    with pytest.raises(DecodeError):
        parser(data)


def test_parse_string_with_and_without_nul():
    assert parse_string(b"qemu-br1\x00") == "qemu-br1"
    assert parse_string(b"bridge") == "bridge"
    assert parse_string(b"") == ""


def test_parse_string_rejects_invalid_utf8():
    with pytest.raises(DecodeError):
        parse_string(b"\xff\xfe")


def test_parse_ip():
    v6 = ipaddress.IPv6Address("fc00::1")
    assert parse_ip(v6.packed) == v6
    v4 = ipaddress.IPv4Address("10.0.0.1")
    assert parse_ip(v4.packed) == v4
    with pytest.raises(DecodeError):
        parse_ip(bytes(5))