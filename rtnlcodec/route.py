"""Route messages: header, flags and message with convenience accessors."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Iterator, Optional, Union

from .nla import (
    BytesLike,
    DecodeError,
    Nla,
    emit_nlas,
    nlas_buffer_len,
    parse_ip,
)
from .route_nlas import RouteAttr, RouteNla, parse_route_nlas

ROUTE_HEADER_LEN = 12

_HEADER_FORMAT = "=8BI"

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class RouteFlags(IntFlag):
    """Flags that can be set in a route lookup request."""

    RTM_F_NOTIFY = 0x100
    RTM_F_CLONED = 0x200
    RTM_F_EQUALIZE = 0x400
    RTM_F_PREFIX = 0x800
    RTM_F_LOOKUP_TABLE = 0x1000
    RTM_F_FIB_MATCH = 0x2000


_KNOWN_ROUTE_FLAGS = sum(flag.value for flag in RouteFlags)


@dataclass
class RouteHeader:
    """Fixed header of a route message.

    ``table`` holds an ``RT_TABLE_*`` value or a custom table number,
    ``protocol`` an ``RTPROT_*`` value, ``scope`` an ``RT_SCOPE_*`` value
    and ``kind`` an ``RTN_*`` value.
    """

    address_family: int = 0
    destination_prefix_length: int = 0
    source_prefix_length: int = 0
    tos: int = 0
    table: int = 0
    protocol: int = 0
    scope: int = 0
    kind: int = 0
    flags: RouteFlags = RouteFlags(0)

    @classmethod
    def parse(cls, data: BytesLike) -> "RouteHeader":
        if len(data) < ROUTE_HEADER_LEN:
            raise DecodeError(
                f"route header needs {ROUTE_HEADER_LEN} bytes, got {len(data)}"
            )
        (
            family,
            dst_len,
            src_len,
            tos,
            table,
            protocol,
            scope,
            kind,
            flags,
        ) = struct.unpack_from(_HEADER_FORMAT, data)
        return cls(
            family,
            dst_len,
            src_len,
            tos,
            table,
            protocol,
            scope,
            kind,
            RouteFlags(flags & _KNOWN_ROUTE_FLAGS),
        )

    def buffer_len(self) -> int:
        return ROUTE_HEADER_LEN

    def emit(self) -> bytes:
        return struct.pack(
            _HEADER_FORMAT,
            self.address_family,
            self.destination_prefix_length,
            self.source_prefix_length,
            self.tos,
            self.table,
            self.protocol,
            self.scope,
            self.kind,
            int(self.flags),
        )


@dataclass
class RouteMessage:
    header: RouteHeader = field(default_factory=RouteHeader)
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "RouteMessage":
        try:
            header = RouteHeader.parse(data)
        except DecodeError as exc:
            raise DecodeError("failed to parse route message header") from exc
        try:
            nlas = parse_route_nlas(memoryview(data)[ROUTE_HEADER_LEN:])
        except DecodeError as exc:
            raise DecodeError("failed to parse route message NLAs") from exc
        return cls(header, nlas)

    def buffer_len(self) -> int:
        return self.header.buffer_len() + nlas_buffer_len(self.nlas)

    def emit(self) -> bytes:
        return self.header.emit() + emit_nlas(self.nlas)

    def _values(self, attr: RouteAttr) -> Iterator[object]:
        for nla in self.nlas:
            if isinstance(nla, RouteNla) and nla.attr is attr:
                yield nla.value

    def _addresses(self, attr: RouteAttr) -> Iterator[IpAddress]:
        for value in self._values(attr):
            try:
                yield parse_ip(value)
            except DecodeError:
                continue

    def input_interface(self) -> Optional[int]:
        """The input interface index, if present."""
        return next(self._values(RouteAttr.IIF), None)

    def output_interface(self) -> Optional[int]:
        """The output interface index, if present."""
        return next(self._values(RouteAttr.OIF), None)

    def source_prefix(self) -> Optional[tuple[IpAddress, int]]:
        """The source address and prefix length, if present."""
        addr = next(self._addresses(RouteAttr.SRC), None)
        if addr is None:
            return None
        return addr, self.header.source_prefix_length

    def destination_prefix(self) -> Optional[tuple[IpAddress, int]]:
        """The destination subnet address and prefix length, if present."""
        addr = next(self._addresses(RouteAttr.DST), None)
        if addr is None:
            return None
        return addr, self.header.destination_prefix_length

    def gateway(self) -> Optional[IpAddress]:
        """The gateway address, if present."""
        return next(self._addresses(RouteAttr.GATEWAY), None)