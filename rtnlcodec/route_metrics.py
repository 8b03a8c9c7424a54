"""Route metrics (``RTA_METRICS``) and MPLS IP tunnel encapsulation attributes."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from .nla import DecodeError, DefaultNla, Nla, NlaBuffer, parse_u8, parse_u32


class MetricAttr(IntEnum):
    UNSPEC = 0
    LOCK = 1
    MTU = 2
    WINDOW = 3
    RTT = 4
    RTTVAR = 5
    SSTHRESH = 6
    CWND = 7
    ADVMSS = 8
    REORDERING = 9
    HOPLIMIT = 10
    INITCWND = 11
    FEATURES = 12
    RTO_MIN = 13
    INITRWND = 14
    QUICKACK = 15
    CC_ALGO = 16
    FASTOPEN_NO_COOKIE = 17


@dataclass
class Metrics(Nla):
    """A route metric; ``UNSPEC`` carries bytes, every other kind a u32."""

    attr: MetricAttr
    value: Union[bytes, int]

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["Metrics", DefaultNla]:
        try:
            attr = MetricAttr(buf.kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError(
                    "invalid NLA value (unknown type) value"
                ) from exc
        payload = buf.value
        if attr is MetricAttr.UNSPEC:
            return cls(attr, payload)
        try:
            return cls(attr, parse_u32(payload))
        except DecodeError as exc:
            raise DecodeError(f"invalid RTAX_{attr.name} value") from exc

    def value_len(self) -> int:
        if self.attr is MetricAttr.UNSPEC:
            return len(self.value)
        return 4

    def emit_value(self) -> bytes:
        if self.attr is MetricAttr.UNSPEC:
            return bytes(self.value)
        return struct.pack("=I", self.value)


class MplsIpTunnelAttr(IntEnum):
    DST = 1
    TTL = 2


@dataclass
class MplsIpTunnel(Nla):
    """An ``RTA_ENCAP`` attribute of an MPLS lightweight tunnel.

    ``DST`` carries the raw label stack, ``TTL`` a u8.
    """

    attr: MplsIpTunnelAttr
    value: Union[bytes, int]

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["MplsIpTunnel", DefaultNla]:
        try:
            attr = MplsIpTunnelAttr(buf.kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError(
                    "invalid NLA value (unknown type) value"
                ) from exc
        payload = buf.value
        if attr is MplsIpTunnelAttr.DST:
            return cls(attr, payload)
        try:
            return cls(attr, parse_u8(payload))
        except DecodeError as exc:
            raise DecodeError("invalid MPLS_IPTUNNEL_TTL value") from exc

    def value_len(self) -> int:
        if self.attr is MplsIpTunnelAttr.TTL:
            return 1
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr is MplsIpTunnelAttr.TTL:
            return struct.pack("=B", self.value)
        return bytes(self.value)