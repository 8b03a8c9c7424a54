"""Traffic control messages (qdiscs, classes, filters, chains)."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator

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
    parse_u8,
)
from .tc_options import parse_tc_opt
from .tc_stats import STATS_LEN, Stats2, TcStats

TC_HEADER_LEN = 20

_HEADER_FORMAT = "=BBHiIII"


def _iter_with_context(data: BytesLike, message: str) -> Iterator[NlaBuffer]:
    nlas = iter_nlas(data)
    while True:
        try:
            buf = next(nlas)
        except StopIteration:
            return
        except DecodeError as exc:
            raise DecodeError(message) from exc
        yield buf


@dataclass
class TcHeader:
    """Fixed header of a traffic control message.

    ``index`` is the interface index, ``handle`` the object handle and
    ``parent`` the handle of the parent qdisc.
    """

    family: int = 0
    index: int = 0
    handle: int = 0
    parent: int = 0
    info: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "TcHeader":
        if len(data) < TC_HEADER_LEN:
            raise DecodeError(
                f"tc header needs {TC_HEADER_LEN} bytes, got {len(data)}"
            )
        family, _, _, index, handle, parent, info = struct.unpack_from(
            _HEADER_FORMAT, data
        )
        return cls(family, index, handle, parent, info)

    def buffer_len(self) -> int:
        return TC_HEADER_LEN

    def emit(self) -> bytes:
        return struct.pack(
            _HEADER_FORMAT,
            self.family,
            0,
            0,
            self.index,
            self.handle,
            self.parent,
            self.info,
        )


class TcAttr(IntEnum):
    UNSPEC = 0
    KIND = 1
    OPTIONS = 2
    STATS = 3
    XSTATS = 4
    RATE = 5
    FCNT = 6
    STATS2 = 7
    STAB = 8
    CHAIN = 11
    HW_OFFLOAD = 12


@dataclass
class TcNla(Nla):
    """A traffic control attribute.

    ``KIND`` carries a str, ``OPTIONS`` and ``STATS2`` lists of nested
    attributes, ``STATS`` a :class:`TcStats`, ``HW_OFFLOAD`` an int, the
    rest raw bytes.
    """

    attr: TcAttr
    value: object

    @property
    def kind(self) -> int:
        return int(self.attr)

    def value_len(self) -> int:
        if self.attr is TcAttr.KIND:
            return len(self.value.encode("utf-8")) + 1
        if self.attr in (TcAttr.OPTIONS, TcAttr.STATS2):
            return nlas_buffer_len(self.value)
        if self.attr is TcAttr.STATS:
            return STATS_LEN
        if self.attr is TcAttr.HW_OFFLOAD:
            return 1
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr is TcAttr.KIND:
            return self.value.encode("utf-8") + b"\x00"
        if self.attr in (TcAttr.OPTIONS, TcAttr.STATS2):
            return emit_nlas(self.value)
        if self.attr is TcAttr.STATS:
            return self.value.emit()
        if self.attr is TcAttr.HW_OFFLOAD:
            return struct.pack("=B", self.value)
        return bytes(self.value)


def _parse_tc_nla(buf: NlaBuffer, kind: str) -> Nla:
    try:
        attr = TcAttr(buf.kind)
    except ValueError:
        try:
            return DefaultNla.parse(buf)
        except DecodeError as exc:
            raise DecodeError("failed to parse tc nla") from exc
    payload = buf.value
    if attr is TcAttr.KIND:
        try:
            return TcNla(attr, parse_string(payload))
        except DecodeError as exc:
            raise DecodeError("invalid TCA_KIND") from exc
    if attr is TcAttr.OPTIONS:
        options = []
        for nla in _iter_with_context(payload, "invalid TCA_OPTIONS"):
            try:
                options.append(parse_tc_opt(nla, kind))
            except DecodeError as exc:
                raise DecodeError("failed to parse TCA_OPTIONS") from exc
        return TcNla(attr, options)
    if attr is TcAttr.STATS:
        try:
            return TcNla(attr, TcStats.parse(payload))
        except DecodeError as exc:
            raise DecodeError("invalid TCA_STATS") from exc
    if attr is TcAttr.STATS2:
        stats = []
        for nla in _iter_with_context(payload, "invalid TCA_STATS2"):
            try:
                stats.append(Stats2.parse(nla))
            except DecodeError as exc:
                raise DecodeError("failed to parse TCA_STATS2") from exc
        return TcNla(attr, stats)
    if attr is TcAttr.HW_OFFLOAD:
        try:
            return TcNla(attr, parse_u8(payload))
        except DecodeError as exc:
            raise DecodeError("failed to parse TCA_HW_OFFLOAD") from exc
    return TcNla(attr, payload)


def parse_tc_nlas(data: BytesLike) -> list[Nla]:
    """Parse the attributes of a traffic control message.

    Options are decoded according to the most recent ``TCA_KIND``.
    """
    nlas: list[Nla] = []
    kind = ""
    for buf in _iter_with_context(data, "invalid tc nla"):
        nla = _parse_tc_nla(buf, kind)
        if isinstance(nla, TcNla) and nla.attr is TcAttr.KIND:
            kind = nla.value
        nlas.append(nla)
    return nlas


@dataclass
class TcMessage:
    header: TcHeader = field(default_factory=TcHeader)
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "TcMessage":
        try:
            header = TcHeader.parse(data)
        except DecodeError as exc:
            raise DecodeError("failed to parse tc message header") from exc
        try:
            nlas = parse_tc_nlas(memoryview(data)[TC_HEADER_LEN:])
        except DecodeError as exc:
            raise DecodeError("failed to parse tc message NLAs") from exc
        return cls(header, nlas)

    @classmethod
    def with_index(cls, index: int) -> "TcMessage":
        """A message for the interface with the given index and no attributes."""
        return cls(TcHeader(index=index), [])

    def buffer_len(self) -> int:
        return self.header.buffer_len() + nlas_buffer_len(self.nlas)

    def emit(self) -> bytes:
        return self.header.emit() + emit_nlas(self.nlas)