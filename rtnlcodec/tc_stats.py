"""Traffic control statistics: legacy stats, basic, queue and ``TCA_STATS2``."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass
from enum import IntEnum
from typing import Union

from .nla import BytesLike, DecodeError, DefaultNla, Nla, NlaBuffer

STATS_LEN = 36
STATS_BASIC_LEN = 12
STATS_QUEUE_LEN = 20

_STATS_FORMAT = "=Q7I"
_STATS_BASIC_FORMAT = "=QI"
_STATS_QUEUE_FORMAT = "=5I"


def _require(data: BytesLike, size: int, what: str) -> None:
    if len(data) < size:
        raise DecodeError(f"{what} needs {size} bytes, got {len(data)}")


@dataclass
class TcStats:
    """Generic queue statistics carried by ``TCA_STATS``."""

    bytes: int = 0
    packets: int = 0
    drops: int = 0
    overlimits: int = 0
    bps: int = 0
    pps: int = 0
    qlen: int = 0
    backlog: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "TcStats":
        _require(data, STATS_LEN, "tc stats")
        return cls(*struct.unpack_from(_STATS_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_STATS_FORMAT, *astuple(self))


@dataclass
class StatsBasic:
    """Byte and packet throughput statistics."""

    bytes: int = 0
    packets: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "StatsBasic":
        _require(data, STATS_BASIC_LEN, "basic stats")
        return cls(*struct.unpack_from(_STATS_BASIC_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_STATS_BASIC_FORMAT, self.bytes, self.packets)


@dataclass
class StatsQueue:
    """Queuing statistics."""

    qlen: int = 0
    backlog: int = 0
    drops: int = 0
    requeues: int = 0
    overlimits: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "StatsQueue":
        _require(data, STATS_QUEUE_LEN, "queue stats")
        return cls(*struct.unpack_from(_STATS_QUEUE_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_STATS_QUEUE_FORMAT, *astuple(self))


class Stats2Attr(IntEnum):
    BASIC = 1
    QUEUE = 3
    APP = 4


@dataclass
class Stats2(Nla):
    """One attribute nested in ``TCA_STATS2``; the value is kept as raw bytes."""

    attr: Stats2Attr
    value: bytes

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["Stats2", DefaultNla]:
        try:
            attr = Stats2Attr(buf.kind)
        except ValueError:
            return DefaultNla.parse(buf)
        return cls(attr, buf.value)

    def value_len(self) -> int:
        return len(self.value)

    def emit_value(self) -> bytes:
        return bytes(self.value)