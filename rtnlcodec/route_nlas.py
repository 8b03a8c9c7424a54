"""Route attributes and multipath next hops."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Optional, Union

from .nla import (
    BytesLike,
    DecodeError,
    DefaultNla,
    Nla,
    NlaBuffer,
    emit_nlas,
    iter_nlas,
    nlas_buffer_len,
    parse_ip,
    parse_u16,
    parse_u32,
)
from .route_metrics import Metrics
from .route_stats import CACHE_INFO_LEN, MFC_STATS_LEN, MfcStats, RouteCacheInfo

NEXT_HOP_HEADER_LEN = 8

_NEXT_HOP_FORMAT = "=HBBI"


class RouteAttr(IntEnum):
    UNSPEC = 0
    DST = 1
    SRC = 2
    IIF = 3
    OIF = 4
    GATEWAY = 5
    PRIORITY = 6
    PREFSRC = 7
    METRICS = 8
    MULTIPATH = 9
    PROTOINFO = 10
    FLOW = 11
    CACHEINFO = 12
    SESSION = 13
    MP_ALGO = 14
    TABLE = 15
    MARK = 16
    MFC_STATS = 17
    VIA = 18
    NEWDST = 19
    PREF = 20
    ENCAP_TYPE = 21
    ENCAP = 22
    EXPIRES = 23
    PAD = 24
    UID = 25
    TTL_PROPAGATE = 26


_U16_ATTRS = frozenset({RouteAttr.ENCAP_TYPE})
_U32_ATTRS = frozenset(
    {
        RouteAttr.IIF,
        RouteAttr.OIF,
        RouteAttr.PRIORITY,
        RouteAttr.PROTOINFO,
        RouteAttr.FLOW,
        RouteAttr.TABLE,
        RouteAttr.MARK,
    }
)


@dataclass
class RouteNla(Nla):
    """A known route attribute.

    Integer kinds carry an int, ``METRICS`` a nested metric attribute,
    ``CACHEINFO`` a :class:`RouteCacheInfo`, ``MFC_STATS`` a
    :class:`MfcStats`, ``MULTIPATH`` a list of :class:`NextHop`, and the
    rest raw bytes.
    """

    attr: RouteAttr
    value: object

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["RouteNla", DefaultNla]:
        try:
            attr = RouteAttr(buf.kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError("invalid NLA (unknown kind)") from exc
        payload = buf.value
        try:
            if attr in _U16_ATTRS:
                return cls(attr, parse_u16(payload))
            if attr in _U32_ATTRS:
                return cls(attr, parse_u32(payload))
            if attr is RouteAttr.METRICS:
                return cls(attr, Metrics.parse(NlaBuffer.checked(payload)))
            if attr is RouteAttr.CACHEINFO:
                return cls(attr, RouteCacheInfo.parse(payload))
            if attr is RouteAttr.MFC_STATS:
                return cls(attr, MfcStats.parse(payload))
            if attr is RouteAttr.MULTIPATH:
                return cls(attr, _parse_next_hops(payload))
        except DecodeError as exc:
            raise DecodeError(f"invalid RTA_{attr.name} value") from exc
        return cls(attr, payload)

    def value_len(self) -> int:
        if self.attr in _U16_ATTRS:
            return 2
        if self.attr in _U32_ATTRS:
            return 4
        if self.attr is RouteAttr.METRICS:
            return self.value.buffer_len()
        if self.attr is RouteAttr.CACHEINFO:
            return CACHE_INFO_LEN
        if self.attr is RouteAttr.MFC_STATS:
            return MFC_STATS_LEN
        if self.attr is RouteAttr.MULTIPATH:
            return sum(hop.buffer_len() for hop in self.value)
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr in _U16_ATTRS:
            return struct.pack("=H", self.value)
        if self.attr in _U32_ATTRS:
            return struct.pack("=I", self.value)
        if self.attr in (
            RouteAttr.METRICS,
            RouteAttr.CACHEINFO,
            RouteAttr.MFC_STATS,
        ):
            return self.value.emit()
        if self.attr is RouteAttr.MULTIPATH:
            return b"".join(hop.emit() for hop in self.value)
        return bytes(self.value)


class NextHopFlags(IntFlag):
    RTNH_F_EMPTY = 0
    RTNH_F_DEAD = 1
    RTNH_F_PERVASIVE = 2
    RTNH_F_ONLINK = 4
    RTNH_F_OFFLOAD = 8
    RTNH_F_LINKDOWN = 16
    RTNH_F_UNRESOLVED = 32


_KNOWN_NEXT_HOP_FLAGS = sum(flag.value for flag in NextHopFlags)


def _next_hop_length(data: BytesLike) -> int:
    size = len(data)
    if size < NEXT_HOP_HEADER_LEN:
        raise DecodeError(
            f"invalid NextHopBuffer: length {size} < {NEXT_HOP_HEADER_LEN}"
        )
    (length,) = struct.unpack_from("=H", data)
    if size < length:
        raise DecodeError(
            f"invalid NextHopBuffer: length {size} < {NEXT_HOP_HEADER_LEN + length}"
        )
    if length < NEXT_HOP_HEADER_LEN:
        raise DecodeError(
            f"invalid NextHopBuffer: declared length {length} < "
            f"{NEXT_HOP_HEADER_LEN}"
        )
    return length


@dataclass
class NextHop:
    """One next hop of a multipath route."""

    flags: NextHopFlags = NextHopFlags.RTNH_F_EMPTY
    hops: int = 0
    interface_id: int = 0
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "NextHop":
        try:
            length = _next_hop_length(data)
            nlas = parse_route_nlas(
                memoryview(data)[NEXT_HOP_HEADER_LEN:length]
            )
        except DecodeError as exc:
            raise DecodeError(
                "cannot parse route attributes in next-hop"
            ) from exc
        _, flags, hops, interface_id = struct.unpack_from(_NEXT_HOP_FORMAT, data)
        return cls(
            NextHopFlags(flags & _KNOWN_NEXT_HOP_FLAGS), hops, interface_id, nlas
        )

    def buffer_len(self) -> int:
        return NEXT_HOP_HEADER_LEN + nlas_buffer_len(self.nlas)

    def emit(self) -> bytes:
        header = struct.pack(
            _NEXT_HOP_FORMAT,
            self.buffer_len(),
            int(self.flags),
            self.hops,
            self.interface_id,
        )
        return header + emit_nlas(self.nlas)

    def gateway(
        self,
    ) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
        """The gateway address, carried as an ``RTA_GATEWAY`` attribute."""
        for nla in self.nlas:
            if isinstance(nla, RouteNla) and nla.attr is RouteAttr.GATEWAY:
                try:
                    return parse_ip(nla.value)
                except DecodeError:
                    continue
        return None


def _parse_next_hops(payload: BytesLike) -> list[NextHop]:
    hops = []
    view = memoryview(payload)
    while True:
        length = _next_hop_length(view)
        hops.append(NextHop.parse(view))
        if len(view) == length:
            return hops
        view = view[length:]


def parse_route_nlas(data: BytesLike) -> list[Nla]:
    """Parse a packed run of route attributes."""
    return [RouteNla.parse(buf) for buf in iter_nlas(data)]