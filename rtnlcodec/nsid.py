"""Network namespace id messages: header, attributes and message."""

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
    parse_i32,
    parse_u32,
)

NSID_HEADER_LEN = 4
NETNSA_NSID_NOT_ASSIGNED = -1

_HEADER_FORMAT = "=Bxxx"


@dataclass
class NsidHeader:
    rtgen_family: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "NsidHeader":
        if len(data) < NSID_HEADER_LEN:
            raise DecodeError(
                f"nsid header needs {NSID_HEADER_LEN} bytes, got {len(data)}"
            )
        (family,) = struct.unpack_from(_HEADER_FORMAT, data)
        return cls(family)

    def buffer_len(self) -> int:
        return NSID_HEADER_LEN

    def emit(self) -> bytes:
        return struct.pack(_HEADER_FORMAT, self.rtgen_family)


class NsidAttr(IntEnum):
    NONE = 0
    NSID = 1
    PID = 2
    FD = 3


_INTEGER_ATTRS = {
    NsidAttr.NSID: (parse_i32, "=i"),
    NsidAttr.PID: (parse_u32, "=I"),
    NsidAttr.FD: (parse_u32, "=I"),
}


@dataclass
class NsidNla(Nla):
    """A known nsid attribute; ``NONE`` carries bytes, the others ints."""

    attr: NsidAttr
    value: Union[bytes, int]

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["NsidNla", DefaultNla]:
        kind = buf.kind
        try:
            attr = NsidAttr(kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError(f"unknown NLA type {kind}") from exc
        payload = buf.value
        if attr in _INTEGER_ATTRS:
            parser, _ = _INTEGER_ATTRS[attr]
            try:
                return cls(attr, parser(payload))
            except DecodeError as exc:
                raise DecodeError(f"invalid NETNSA_{attr.name}") from exc
        return cls(attr, payload)

    def value_len(self) -> int:
        if self.attr in _INTEGER_ATTRS:
            return 4
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr in _INTEGER_ATTRS:
            return struct.pack(_INTEGER_ATTRS[self.attr][1], self.value)
        return bytes(self.value)


@dataclass
class NsidMessage:
    header: NsidHeader = field(default_factory=NsidHeader)
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "NsidMessage":
        try:
            header = NsidHeader.parse(data)
        except DecodeError as exc:
            raise DecodeError("failed to parse nsid message header") from exc
        try:
            nlas = [
                NsidNla.parse(buf)
                for buf in iter_nlas(memoryview(data)[NSID_HEADER_LEN:])
            ]
        except DecodeError as exc:
            raise DecodeError("failed to parse nsid message NLAs") from exc
        return cls(header, nlas)

    def buffer_len(self) -> int:
        return self.header.buffer_len() + nlas_buffer_len(self.nlas)

    def emit(self) -> bytes:
        return self.header.emit() + emit_nlas(self.nlas)