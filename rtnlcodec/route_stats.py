"""Fixed-layout route statistics: ``RTA_CACHEINFO`` and ``RTA_MFC_STATS``."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass

from .nla import BytesLike, DecodeError

CACHE_INFO_LEN = 32
MFC_STATS_LEN = 24

_CACHE_INFO_FORMAT = "=8I"
_MFC_STATS_FORMAT = "=3Q"


def _require(data: BytesLike, size: int, what: str) -> None:
    if len(data) < size:
        raise DecodeError(f"{what} needs {size} bytes, got {len(data)}")


@dataclass
class RouteCacheInfo:
    clntref: int = 0
    last_use: int = 0
    expires: int = 0
    error: int = 0
    used: int = 0
    id: int = 0
    ts: int = 0
    ts_age: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "RouteCacheInfo":
        _require(data, CACHE_INFO_LEN, "route cache info")
        return cls(*struct.unpack_from(_CACHE_INFO_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_CACHE_INFO_FORMAT, *astuple(self))


@dataclass
class MfcStats:
    packets: int = 0
    bytes: int = 0
    wrong_if: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "MfcStats":
        _require(data, MFC_STATS_LEN, "multicast forwarding stats")
        return cls(*struct.unpack_from(_MFC_STATS_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(
            _MFC_STATS_FORMAT, self.packets, self.bytes, self.wrong_if
        )