"""Routing policy rule messages: header, flags, attributes and message."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
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
    parse_u8,
    parse_u32,
)

RULE_HEADER_LEN = 12

_HEADER_FORMAT = "=5BxxBI"


class RuleFlags(IntFlag):
    FIB_RULE_PERMANENT = 0x00000001
    FIB_RULE_INVERT = 0x00000002
    FIB_RULE_UNRESOLVED = 0x00000004
    FIB_RULE_IIF_DETACHED = 0x00000008
    FIB_RULE_DEV_DETACHED = 0x00000008
    FIB_RULE_OIF_DETACHED = 0x00000010
    FIB_RULE_FIND_SADDR = 0x00010000


@dataclass
class RuleHeader:
    """Fixed header of a rule message.

    ``table`` holds an ``RT_TABLE_*`` value, ``action`` an ``FR_ACT_*``
    value and ``flags`` the raw rule flags.
    """

    family: int = 0
    dst_len: int = 0
    src_len: int = 0
    tos: int = 0
    table: int = 0
    action: int = 0
    flags: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "RuleHeader":
        if len(data) < RULE_HEADER_LEN:
            raise DecodeError(
                f"rule header needs {RULE_HEADER_LEN} bytes, got {len(data)}"
            )
        family, dst_len, src_len, tos, table, action, flags = struct.unpack_from(
            _HEADER_FORMAT, data
        )
        return cls(family, dst_len, src_len, tos, table, action, flags)

    def buffer_len(self) -> int:
        return RULE_HEADER_LEN

    def emit(self) -> bytes:
        return struct.pack(
            _HEADER_FORMAT,
            self.family,
            self.dst_len,
            self.src_len,
            self.tos,
            self.table,
            self.action,
            self.flags,
        )


class RuleAttr(IntEnum):
    UNSPEC = 0
    DST = 1
    SRC = 2
    IIFNAME = 3
    GOTO = 4
    PRIORITY = 6
    FWMARK = 10
    FLOW = 11
    TUN_ID = 12
    SUPPRESS_IFGROUP = 13
    SUPPRESS_PREFIXLEN = 14
    TABLE = 15
    FWMASK = 16
    OIFNAME = 17
    PAD = 18
    L3MDEV = 19
    UID_RANGE = 20
    PROTOCOL = 21
    IP_PROTO = 22
    SPORT_RANGE = 23
    DPORT_RANGE = 24


_U32_ATTRS = frozenset(
    {
        RuleAttr.GOTO,
        RuleAttr.PRIORITY,
        RuleAttr.FWMARK,
        RuleAttr.FWMASK,
        RuleAttr.FLOW,
        RuleAttr.TUN_ID,
        RuleAttr.SUPPRESS_IFGROUP,
        RuleAttr.SUPPRESS_PREFIXLEN,
        RuleAttr.TABLE,
    }
)
_U8_ATTRS = frozenset({RuleAttr.L3MDEV, RuleAttr.PROTOCOL, RuleAttr.IP_PROTO})
_STRING_ATTRS = frozenset({RuleAttr.IIFNAME, RuleAttr.OIFNAME})


@dataclass
class RuleNla(Nla):
    """A known rule attribute.

    Interface names carry a str, numeric kinds an int, the rest raw bytes.
    """

    attr: RuleAttr
    value: Union[bytes, int, str]

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["RuleNla", DefaultNla]:
        try:
            attr = RuleAttr(buf.kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError("invalid NLA (unknown kind)") from exc
        payload = buf.value
        try:
            if attr in _STRING_ATTRS:
                return cls(attr, parse_string(payload))
            if attr in _U32_ATTRS:
                return cls(attr, parse_u32(payload))
            if attr in _U8_ATTRS:
                return cls(attr, parse_u8(payload))
        except DecodeError as exc:
            raise DecodeError(f"invalid FRA_{attr.name} value") from exc
        return cls(attr, payload)

    def value_len(self) -> int:
        if self.attr in _STRING_ATTRS:
            return len(self.value.encode("utf-8")) + 1
        if self.attr in _U32_ATTRS:
            return 4
        if self.attr in _U8_ATTRS:
            return 1
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr in _STRING_ATTRS:
            return self.value.encode("utf-8") + b"\x00"
        if self.attr in _U32_ATTRS:
            return struct.pack("=I", self.value)
        if self.attr in _U8_ATTRS:
            return struct.pack("=B", self.value)
        return bytes(self.value)


@dataclass
class RuleMessage:
    header: RuleHeader = field(default_factory=RuleHeader)
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "RuleMessage":
        try:
            header = RuleHeader.parse(data)
        except DecodeError as exc:
            raise DecodeError("failed to parse link message header") from exc
        try:
            nlas = [
                RuleNla.parse(buf)
                for buf in iter_nlas(memoryview(data)[RULE_HEADER_LEN:])
            ]
        except DecodeError as exc:
            raise DecodeError("failed to parse link message NLAs") from exc
        return cls(header, nlas)

    def buffer_len(self) -> int:
        return self.header.buffer_len() + nlas_buffer_len(self.nlas)

    def emit(self) -> bytes:
        return self.header.emit() + emit_nlas(self.nlas)