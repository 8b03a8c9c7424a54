"""Neighbour (ARP / NDP cache) messages: header, attributes and message."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

from .nla import (
    BytesLike,
    DecodeError,
    DefaultNla,
    Nla,
    NlaBuffer,
    emit_nlas,
    iter_nlas,
    nlas_buffer_len,
    parse_u16,
    parse_u32,
)

NEIGHBOUR_HEADER_LEN = 12
NEIGHBOUR_CACHE_INFO_LEN = 16

_HEADER_FORMAT = "=BxxxIHBB"
_CACHE_INFO_FORMAT = "=4I"


@dataclass
class NeighbourHeader:
    """Fixed header of a neighbour message.

    ``state`` holds a ``NUD_*`` value, ``flags`` a combination of ``NTF_*``
    values and ``ntype`` the entry type.
    """

    family: int = 0
    ifindex: int = 0
    state: int = 0
    flags: int = 0
    ntype: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "NeighbourHeader":
        if len(data) < NEIGHBOUR_HEADER_LEN:
            raise DecodeError(
                f"neighbour header needs {NEIGHBOUR_HEADER_LEN} bytes, "
                f"got {len(data)}"
            )
        family, ifindex, state, flags, ntype = struct.unpack_from(
            _HEADER_FORMAT, data
        )
        return cls(family, ifindex, state, flags, ntype)

    def buffer_len(self) -> int:
        return NEIGHBOUR_HEADER_LEN

    def emit(self) -> bytes:
        return struct.pack(
            _HEADER_FORMAT,
            self.family,
            self.ifindex,
            self.state,
            self.flags,
            self.ntype,
        )


class NeighbourAttr(IntEnum):
    UNSPEC = 0
    DST = 1
    LLADDR = 2
    CACHEINFO = 3
    PROBES = 4
    VLAN = 5
    PORT = 6
    VNI = 7
    IFINDEX = 8
    MASTER = 9
    LINK_NETNSID = 10
    SRC_VNI = 11


_INTEGER_ATTRS = {
    NeighbourAttr.VLAN: (parse_u16, "=H"),
    NeighbourAttr.VNI: (parse_u32, "=I"),
    NeighbourAttr.IFINDEX: (parse_u32, "=I"),
    NeighbourAttr.SRC_VNI: (parse_u32, "=I"),
}


@dataclass
class NeighbourNla(Nla):
    """A known neighbour attribute; integer kinds carry ints, others bytes."""

    attr: NeighbourAttr
    value: Union[bytes, int]

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["NeighbourNla", DefaultNla]:
        try:
            attr = NeighbourAttr(buf.kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError(
                    "invalid link NLA value (unknown type)"
                ) from exc
        payload = buf.value
        if attr in _INTEGER_ATTRS:
            parser, _ = _INTEGER_ATTRS[attr]
            return cls(attr, parser(payload))
        return cls(attr, payload)

    def value_len(self) -> int:
        if self.attr in _INTEGER_ATTRS:
            return struct.calcsize(_INTEGER_ATTRS[self.attr][1])
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr in _INTEGER_ATTRS:
            return struct.pack(_INTEGER_ATTRS[self.attr][1], self.value)
        return bytes(self.value)


@dataclass
class NeighbourCacheInfo:
    """Decoded value of an ``NDA_CACHEINFO`` attribute."""

    confirmed: int = 0
    used: int = 0
    updated: int = 0
    refcnt: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "NeighbourCacheInfo":
        if len(data) < NEIGHBOUR_CACHE_INFO_LEN:
            raise DecodeError(
                f"neighbour cache info needs {NEIGHBOUR_CACHE_INFO_LEN} "
                f"bytes, got {len(data)}"
            )
        return cls(*struct.unpack_from(_CACHE_INFO_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(
            _CACHE_INFO_FORMAT, self.confirmed, self.used, self.updated, self.refcnt
        )


@dataclass
class NeighbourMessage:
    header: NeighbourHeader = field(default_factory=NeighbourHeader)
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "NeighbourMessage":
        try:
            header = NeighbourHeader.parse(data)
        except DecodeError as exc:
            raise DecodeError("failed to parse neighbour message header") from exc
        try:
            nlas = [
                NeighbourNla.parse(buf)
                for buf in iter_nlas(memoryview(data)[NEIGHBOUR_HEADER_LEN:])
            ]
        except DecodeError as exc:
            raise DecodeError("failed to parse neighbour message NLAs") from exc
        return cls(header, nlas)

    def buffer_len(self) -> int:
        return self.header.buffer_len() + nlas_buffer_len(self.nlas)

    def emit(self) -> bytes:
        return self.header.emit() + emit_nlas(self.nlas)