"""Traffic control actions, their attributes and the mirred action."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass, field
from enum import IntEnum
from typing import Iterator, Union

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
)
from .tc_constants import TCA_ACT_TAB
from .tc_stats import Stats2

TC_GEN_BUF_LEN = 20
TC_MIRRED_BUF_LEN = TC_GEN_BUF_LEN + 8
MIRRED_KIND = "mirred"

_TC_GEN_FORMAT = "=IIiii"
_TC_MIRRED_FORMAT = "=IIiiiiI"


def _require(data: BytesLike, size: int, what: str) -> None:
    if len(data) < size:
        raise DecodeError(f"{what} needs {size} bytes, got {len(data)}")


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
class TcGen:
    """Fields shared by the parameters of every action."""

    index: int = 0
    capab: int = 0
    action: int = 0
    refcnt: int = 0
    bindcnt: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "TcGen":
        _require(data, TC_GEN_BUF_LEN, "action parameters")
        return cls(*struct.unpack_from(_TC_GEN_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_TC_GEN_FORMAT, *astuple(self))


@dataclass
class TcMirred:
    """Parameters of a mirred (mirror or redirect) action."""

    index: int = 0
    capab: int = 0
    action: int = 0
    refcnt: int = 0
    bindcnt: int = 0
    eaction: int = 0
    ifindex: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "TcMirred":
        _require(data, TC_MIRRED_BUF_LEN, "mirred parameters")
        return cls(*struct.unpack_from(_TC_MIRRED_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_TC_MIRRED_FORMAT, *astuple(self))


class MirredAttr(IntEnum):
    UNSPEC = 0
    TM = 1
    PARMS = 2


@dataclass
class MirredNla(Nla):
    """A mirred option; ``PARMS`` carries a :class:`TcMirred`, others bytes."""

    attr: MirredAttr
    value: Union[bytes, TcMirred]

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["MirredNla", DefaultNla]:
        try:
            attr = MirredAttr(buf.kind)
        except ValueError:
            return DefaultNla.parse(buf)
        payload = buf.value
        if attr is MirredAttr.PARMS:
            return cls(attr, TcMirred.parse(payload))
        return cls(attr, payload)

    def value_len(self) -> int:
        if self.attr is MirredAttr.PARMS:
            return TC_MIRRED_BUF_LEN
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr is MirredAttr.PARMS:
            return self.value.emit()
        return bytes(self.value)


def parse_act_opt(buf: NlaBuffer, kind: str) -> Nla:
    """Parse one action option according to the action kind."""
    if kind == MIRRED_KIND:
        try:
            return MirredNla.parse(buf)
        except DecodeError as exc:
            raise DecodeError("failed to parse mirred action") from exc
    try:
        return DefaultNla.parse(buf)
    except DecodeError as exc:
        raise DecodeError("failed to parse action options") from exc


class ActAttr(IntEnum):
    UNSPEC = 0
    KIND = 1
    OPTIONS = 2
    INDEX = 3
    STATS = 4
    COOKIE = 6


@dataclass
class ActNla(Nla):
    """An action attribute.

    ``KIND`` carries a str, ``INDEX`` an int, ``OPTIONS`` and ``STATS``
    lists of nested attributes, the rest raw bytes.
    """

    attr: ActAttr
    value: object

    @property
    def kind(self) -> int:
        return int(self.attr)

    def value_len(self) -> int:
        if self.attr is ActAttr.KIND:
            return len(self.value.encode("utf-8")) + 1
        if self.attr in (ActAttr.OPTIONS, ActAttr.STATS):
            return nlas_buffer_len(self.value)
        if self.attr is ActAttr.INDEX:
            return 4
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr is ActAttr.KIND:
            return self.value.encode("utf-8") + b"\x00"
        if self.attr in (ActAttr.OPTIONS, ActAttr.STATS):
            return emit_nlas(self.value)
        if self.attr is ActAttr.INDEX:
            return struct.pack("=I", self.value)
        return bytes(self.value)


def _parse_act_nla(buf: NlaBuffer, kind: str) -> Nla:
    try:
        attr = ActAttr(buf.kind)
    except ValueError:
        try:
            return DefaultNla.parse(buf)
        except DecodeError as exc:
            raise DecodeError("failed to parse action nla") from exc
    payload = buf.value
    if attr is ActAttr.KIND:
        try:
            return ActNla(attr, parse_string(payload))
        except DecodeError as exc:
            raise DecodeError("failed to parse TCA_ACT_KIND") from exc
    if attr is ActAttr.OPTIONS:
        options = []
        for nla in _iter_with_context(payload, "invalid TCA_ACT_OPTIONS"):
            try:
                options.append(parse_act_opt(nla, kind))
            except DecodeError as exc:
                raise DecodeError("failed to parse TCA_ACT_OPTIONS") from exc
        return ActNla(attr, options)
    if attr is ActAttr.INDEX:
        try:
            return ActNla(attr, parse_u32(payload))
        except DecodeError as exc:
            raise DecodeError("failed to parse TCA_ACT_INDEX") from exc
    if attr is ActAttr.STATS:
        stats = []
        for nla in _iter_with_context(payload, "invalid TCA_ACT_STATS"):
            try:
                stats.append(Stats2.parse(nla))
            except DecodeError as exc:
                raise DecodeError("failed to parse TCA_ACT_STATS") from exc
        return ActNla(attr, stats)
    return ActNla(attr, payload)


@dataclass
class Action(Nla):
    """One action, nested under an action table slot numbered ``tab``."""

    tab: int = TCA_ACT_TAB
    nlas: list[Nla] = field(default_factory=list)

    @property
    def kind(self) -> int:
        return self.tab

    @classmethod
    def parse(cls, buf: NlaBuffer) -> "Action":
        nlas: list[Nla] = []
        kind = ""
        for nla_buf in _iter_with_context(buf.value, "invalid action nla"):
            nla = _parse_act_nla(nla_buf, kind)
            if isinstance(nla, ActNla) and nla.attr is ActAttr.KIND:
                kind = nla.value
            nlas.append(nla)
        return cls(buf.kind, nlas)

    def value_len(self) -> int:
        return nlas_buffer_len(self.nlas)

    def emit_value(self) -> bytes:
        return emit_nlas(self.nlas)