"""Neighbour table messages: header, attributes, config, stats and message."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass, field
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
    parse_string,
    parse_u32,
    parse_u64,
)

NEIGHBOUR_TABLE_HEADER_LEN = 4
CONFIG_LEN = 32
STATS_LEN = 80

_HEADER_FORMAT = "=Bxxx"
_CONFIG_FORMAT = "=2H7I"
_STATS_FORMAT = "=10Q"


def _require(data: BytesLike, size: int, what: str) -> None:
    if len(data) < size:
        raise DecodeError(f"{what} needs {size} bytes, got {len(data)}")


@dataclass
class NeighbourTableHeader:
    family: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "NeighbourTableHeader":
        _require(data, NEIGHBOUR_TABLE_HEADER_LEN, "neighbour table header")
        (family,) = struct.unpack_from(_HEADER_FORMAT, data)
        return cls(family)

    def buffer_len(self) -> int:
        return NEIGHBOUR_TABLE_HEADER_LEN

    def emit(self) -> bytes:
        return struct.pack(_HEADER_FORMAT, self.family)


@dataclass
class NeighbourTableConfig:
    """Decoded value of an ``NDTA_CONFIG`` attribute."""

    key_len: int = 0
    entry_size: int = 0
    entries: int = 0
    last_flush: int = 0
    last_rand: int = 0
    hash_rand: int = 0
    hash_mask: int = 0
    hash_chain_gc: int = 0
    proxy_qlen: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "NeighbourTableConfig":
        _require(data, CONFIG_LEN, "neighbour table config")
        return cls(*struct.unpack_from(_CONFIG_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_CONFIG_FORMAT, *astuple(self))


@dataclass
class NeighbourTableStats:
    """Decoded value of an ``NDTA_STATS`` attribute."""

    allocs: int = 0
    destroys: int = 0
    hash_grows: int = 0
    res_failed: int = 0
    lookups: int = 0
    hits: int = 0
    multicast_probes_received: int = 0
    unicast_probes_received: int = 0
    periodic_gc_runs: int = 0
    forced_gc_runs: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "NeighbourTableStats":
        _require(data, STATS_LEN, "neighbour table stats")
        return cls(*struct.unpack_from(_STATS_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_STATS_FORMAT, *astuple(self))


class NeighbourTableAttr(IntEnum):
    UNSPEC = 0
    NAME = 1
    THRESH1 = 2
    THRESH2 = 3
    THRESH3 = 4
    CONFIG = 5
    PARMS = 6
    STATS = 7
    GC_INTERVAL = 8


_INTEGER_ATTRS = {
    NeighbourTableAttr.THRESH1: (parse_u32, "=I"),
    NeighbourTableAttr.THRESH2: (parse_u32, "=I"),
    NeighbourTableAttr.THRESH3: (parse_u32, "=I"),
    NeighbourTableAttr.GC_INTERVAL: (parse_u64, "=Q"),
}


@dataclass
class NeighbourTableNla(Nla):
    """A known neighbour table attribute.

    ``NAME`` carries a str, the thresholds and ``GC_INTERVAL`` ints, the
    rest raw bytes.
    """

    attr: NeighbourTableAttr
    value: Union[bytes, int, str]

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["NeighbourTableNla", DefaultNla]:
        kind = buf.kind
        try:
            attr = NeighbourTableAttr(kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError(f"unknown NLA type {kind}") from exc
        payload = buf.value
        try:
            if attr is NeighbourTableAttr.NAME:
                return cls(attr, parse_string(payload))
            if attr in _INTEGER_ATTRS:
                parser, _ = _INTEGER_ATTRS[attr]
                return cls(attr, parser(payload))
        except DecodeError as exc:
            raise DecodeError(f"invalid NDTA_{attr.name} value") from exc
        return cls(attr, payload)

    def value_len(self) -> int:
        if self.attr is NeighbourTableAttr.NAME:
            return len(self.value.encode("utf-8")) + 1
        if self.attr in _INTEGER_ATTRS:
            return struct.calcsize(_INTEGER_ATTRS[self.attr][1])
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr is NeighbourTableAttr.NAME:
            return self.value.encode("utf-8") + b"\x00"
        if self.attr in _INTEGER_ATTRS:
            return struct.pack(_INTEGER_ATTRS[self.attr][1], self.value)
        return bytes(self.value)


@dataclass
class NeighbourTableMessage:
    header: NeighbourTableHeader = field(default_factory=NeighbourTableHeader)
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "NeighbourTableMessage":
        try:
            header = NeighbourTableHeader.parse(data)
        except DecodeError as exc:
            raise DecodeError(
                "failed to parse neighbour table message header"
            ) from exc
        try:
            nlas = [
                NeighbourTableNla.parse(buf)
                for buf in iter_nlas(
                    memoryview(data)[NEIGHBOUR_TABLE_HEADER_LEN:]
                )
            ]
        except DecodeError as exc:
            raise DecodeError(
                "failed to parse neighbour table message NLAs"
            ) from exc
        return cls(header, nlas)

    def buffer_len(self) -> int:
        return self.header.buffer_len() + nlas_buffer_len(self.nlas)

    def emit(self) -> bytes:
        return self.header.emit() + emit_nlas(self.nlas)