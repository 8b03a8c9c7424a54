"""Netlink attribute (NLA) framing and primitive value parsers."""

from __future__ import annotations

import ipaddress
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, Union

NLA_HEADER_LEN = 4
NLA_ALIGNTO = 4
NLA_F_NESTED = 0x8000
NLA_F_NET_BYTEORDER = 0x4000
NLA_TYPE_MASK = 0xFFFF & ~(NLA_F_NESTED | NLA_F_NET_BYTEORDER)

BytesLike = Union[bytes, bytearray, memoryview]


def nla_align(length: int) -> int:
    """Round a length up to the netlink attribute alignment."""
    return (length + NLA_ALIGNTO - 1) & ~(NLA_ALIGNTO - 1)


class DecodeError(Exception):
    """Raised when bytes cannot be decoded into a netlink structure."""


class NlaBuffer:
    """Read-only view over one netlink attribute at the start of a buffer."""

    __slots__ = ("_data",)

    def __init__(self, data: BytesLike) -> None:
        self._data = memoryview(data)

    @classmethod
    def checked(cls, data: BytesLike) -> "NlaBuffer":
        """Build a buffer and verify its length fields."""
        buf = cls(data)
        buf.check_buffer_length()
        return buf

    def check_buffer_length(self) -> None:
        size = len(self._data)
        if size < NLA_HEADER_LEN:
            raise DecodeError(
                f"buffer length is {size} but an NLA header is "
                f"{NLA_HEADER_LEN} bytes"
            )
        length = self.length
        if size < length:
            raise DecodeError(
                f"buffer has length {size} but an NLA header says it has "
                f"length {length}"
            )
        if length < NLA_HEADER_LEN:
            raise DecodeError(
                f"NLA has invalid length: {length} (should be at least "
                f"{NLA_HEADER_LEN} bytes)"
            )

    def _header(self) -> tuple[int, int]:
        if len(self._data) < NLA_HEADER_LEN:
            raise DecodeError("buffer too short for an NLA header")
        return struct.unpack_from("=HH", self._data)

    @property
    def length(self) -> int:
        return self._header()[0]

    @property
    def type_field(self) -> int:
        """The raw type field, flags included."""
        return self._header()[1]

    @property
    def kind(self) -> int:
        return self.type_field & NLA_TYPE_MASK

    @property
    def nested_flag(self) -> bool:
        return bool(self.type_field & NLA_F_NESTED)

    @property
    def network_byte_order_flag(self) -> bool:
        return bool(self.type_field & NLA_F_NET_BYTEORDER)

    @property
    def value(self) -> bytes:
        return bytes(self._data[NLA_HEADER_LEN:self.length])

    def __repr__(self) -> str:
        return f"NlaBuffer(length={self.length}, kind={self.kind})"


class Nla(ABC):
    """A netlink attribute that knows how to serialize itself."""

    kind: int
    is_nested = False
    is_network_byteorder = False

    @abstractmethod
    def value_len(self) -> int:
        """Length of the attribute value, without header or padding."""

    @abstractmethod
    def emit_value(self) -> bytes:
        """Serialized attribute value, without header or padding."""

    def buffer_len(self) -> int:
        return nla_align(NLA_HEADER_LEN + self.value_len())

    def emit(self) -> bytes:
        """Serialized attribute: header, value and padding."""
        kind = self.kind
        if self.is_nested:
            kind |= NLA_F_NESTED
        if self.is_network_byteorder:
            kind |= NLA_F_NET_BYTEORDER
        value_len = self.value_len()
        header = struct.pack("=HH", NLA_HEADER_LEN + value_len, kind)
        value = bytes(self.emit_value()).ljust(value_len, b"\x00")
        return (header + value).ljust(self.buffer_len(), b"\x00")


@dataclass
class DefaultNla(Nla):
    """An attribute of a type that is not otherwise understood."""

    kind: int
    value: bytes

    @classmethod
    def parse(cls, buf: NlaBuffer) -> "DefaultNla":
        return cls(kind=buf.type_field, value=buf.value)

    def value_len(self) -> int:
        return len(self.value)

    def emit_value(self) -> bytes:
        return bytes(self.value)


def iter_nlas(data: BytesLike) -> Iterator[NlaBuffer]:
    """Yield each attribute in a packed run of attributes."""
    view = memoryview(data)
    position = 0
    while position < len(view):
        buf = NlaBuffer.checked(view[position:])
        yield buf
        position += nla_align(buf.length)


def emit_nlas(nlas: Iterable[Nla]) -> bytes:
    return b"".join(nla.emit() for nla in nlas)


def nlas_buffer_len(nlas: Iterable[Nla]) -> int:
    return sum(nla.buffer_len() for nla in nlas)


def _parse_fixed(data: BytesLike, fmt: str, name: str) -> int:
    size = struct.calcsize(fmt)
    if len(data) != size:
        raise DecodeError(f"invalid {name}: expected {size} bytes, got {len(data)}")
    return struct.unpack(fmt, data)[0]


def parse_u8(data: BytesLike) -> int:
    return _parse_fixed(data, "=B", "u8")


def parse_u16(data: BytesLike) -> int:
    return _parse_fixed(data, "=H", "u16")


def parse_u32(data: BytesLike) -> int:
    return _parse_fixed(data, "=I", "u32")


def parse_i32(data: BytesLike) -> int:
    return _parse_fixed(data, "=i", "i32")


def parse_u64(data: BytesLike) -> int:
    return _parse_fixed(data, "=Q", "u64")


def parse_string(data: BytesLike) -> str:
    """Decode a UTF-8 string, dropping one trailing NUL if present."""
    raw = bytes(data)
    if raw.endswith(b"\x00"):
        raw = raw[:-1]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError("invalid string") from exc


def parse_ip(data: BytesLike) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    raw = bytes(data)
    if len(raw) == 4:
        return ipaddress.IPv4Address(raw)
    if len(raw) == 16:
        return ipaddress.IPv6Address(raw)
    raise DecodeError(f"invalid IP address: {len(raw)} bytes")