"""Traffic control options: the u32 filter and the ingress qdisc."""

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
    iter_nlas,
    nlas_buffer_len,
    emit_nlas,
    parse_u32,
)
from .tc_action import Action

U32_KIND = "u32"
INGRESS_KIND = "ingress"

U32_SEL_BUF_LEN = 16
U32_KEY_BUF_LEN = 16

_KEY_FORMAT = "=IIii"
_SEL_FORMAT = "=BBBxHHHHI"


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
class U32Key:
    """One match key of a u32 selector."""

    mask: int = 0
    val: int = 0
    off: int = 0
    offmask: int = 0

    @classmethod
    def parse(cls, data: BytesLike) -> "U32Key":
        if len(data) < U32_KEY_BUF_LEN:
            raise DecodeError(
                f"u32 key needs {U32_KEY_BUF_LEN} bytes, got {len(data)}"
            )
        return cls(*struct.unpack_from(_KEY_FORMAT, data))

    def emit(self) -> bytes:
        return struct.pack(_KEY_FORMAT, *astuple(self))


@dataclass
class U32Sel:
    """A u32 selector: header fields followed by ``nkeys`` keys."""

    flags: int = 0
    offshift: int = 0
    nkeys: int = 0
    offmask: int = 0
    off: int = 0
    offoff: int = 0
    hoff: int = 0
    hmask: int = 0
    keys: list[U32Key] = field(default_factory=list)

    @classmethod
    def parse(cls, data: BytesLike) -> "U32Sel":
        if len(data) < U32_SEL_BUF_LEN:
            raise DecodeError(
                f"u32 selector needs {U32_SEL_BUF_LEN} bytes, got {len(data)}"
            )
        (
            flags,
            offshift,
            nkeys,
            offmask,
            off,
            offoff,
            hoff,
            hmask,
        ) = struct.unpack_from(_SEL_FORMAT, data)
        view = memoryview(data)
        keys = []
        for start in range(
            U32_SEL_BUF_LEN, U32_SEL_BUF_LEN + nkeys * U32_KEY_BUF_LEN, U32_KEY_BUF_LEN
        ):
            try:
                keys.append(U32Key.parse(view[start:start + U32_KEY_BUF_LEN]))
            except DecodeError as exc:
                raise DecodeError("invalid u32 key") from exc
        return cls(flags, offshift, nkeys, offmask, off, offoff, hoff, hmask, keys)

    def buffer_len(self) -> int:
        return U32_SEL_BUF_LEN + self.nkeys * U32_KEY_BUF_LEN

    def emit(self) -> bytes:
        if self.nkeys != len(self.keys):
            raise ValueError(
                f"u32 selector declares {self.nkeys} keys but holds "
                f"{len(self.keys)}"
            )
        header = struct.pack(
            _SEL_FORMAT,
            self.flags,
            self.offshift,
            self.nkeys,
            self.offmask,
            self.off,
            self.offoff,
            self.hoff,
            self.hmask,
        )
        return header + b"".join(key.emit() for key in self.keys)


class U32Attr(IntEnum):
    UNSPEC = 0
    CLASSID = 1
    HASH = 2
    LINK = 3
    DIVISOR = 4
    SEL = 5
    POLICE = 6
    ACT = 7
    INDEV = 8
    PCNT = 9
    MARK = 10
    FLAGS = 11


_U32_INT_ATTRS = frozenset(
    {U32Attr.CLASSID, U32Attr.HASH, U32Attr.LINK, U32Attr.DIVISOR, U32Attr.FLAGS}
)


@dataclass
class U32Nla(Nla):
    """A u32 filter option.

    Numeric kinds carry an int, ``SEL`` a :class:`U32Sel`, ``ACT`` a list
    of :class:`Action`, the rest raw bytes.
    """

    attr: U32Attr
    value: object

    @property
    def kind(self) -> int:
        return int(self.attr)

    @classmethod
    def parse(cls, buf: NlaBuffer) -> Union["U32Nla", DefaultNla]:
        try:
            attr = U32Attr(buf.kind)
        except ValueError:
            try:
                return DefaultNla.parse(buf)
            except DecodeError as exc:
                raise DecodeError("failed to parse u32 nla") from exc
        payload = buf.value
        if attr in _U32_INT_ATTRS:
            try:
                return cls(attr, parse_u32(payload))
            except DecodeError as exc:
                raise DecodeError(f"failed to parse TCA_U32_{attr.name}") from exc
        if attr is U32Attr.SEL:
            if len(payload) < U32_SEL_BUF_LEN:
                raise DecodeError("invalid TCA_U32_SEL")
            try:
                return cls(attr, U32Sel.parse(payload))
            except DecodeError as exc:
                raise DecodeError("failed to parse TCA_U32_SEL") from exc
        if attr is U32Attr.ACT:
            actions = []
            for act in _iter_with_context(payload, "invalid TCA_U32_ACT"):
                try:
                    actions.append(Action.parse(act))
                except DecodeError as exc:
                    raise DecodeError("failed to parse TCA_U32_ACT") from exc
            return cls(attr, actions)
        return cls(attr, payload)

    def value_len(self) -> int:
        if self.attr in _U32_INT_ATTRS:
            return 4
        if self.attr is U32Attr.SEL:
            return self.value.buffer_len()
        if self.attr is U32Attr.ACT:
            return nlas_buffer_len(self.value)
        return len(self.value)

    def emit_value(self) -> bytes:
        if self.attr in _U32_INT_ATTRS:
            return struct.pack("=I", self.value)
        if self.attr is U32Attr.SEL:
            return self.value.emit()
        if self.attr is U32Attr.ACT:
            return emit_nlas(self.value)
        return bytes(self.value)


@dataclass
class IngressOpt(Nla):
    """An option of the ingress qdisc, which carries no data."""

    @property
    def kind(self) -> int:
        raise TypeError("ingress options have no attribute kind")

    def value_len(self) -> int:
        return 0

    def emit_value(self) -> bytes:
        raise TypeError("ingress options cannot be serialized")


def parse_tc_opt(buf: NlaBuffer, kind: str) -> Nla:
    """Parse one ``TCA_OPTIONS`` attribute according to the qdisc or filter kind."""
    if kind == INGRESS_KIND:
        return IngressOpt()
    if kind == U32_KIND:
        try:
            return U32Nla.parse(buf)
        except DecodeError as exc:
            raise DecodeError("failed to parse u32 nlas") from exc
    return DefaultNla.parse(buf)