"""Typed reply values and their translation into text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from redis.exceptions import ResponseError

from redisbridge.core.errors import EncodingError, UnsupportedNestedArray, UnsupportedReplyType


DEFAULT_ENCODING = "utf-8"
FIXED_NIL_TEXT = "nil"
VARIADIC_NIL_TEXT = ""


class ReplyKind(Enum):
    STATUS = "status"
    STRING = "string"
    INTEGER = "integer"
    NIL = "nil"
    ERROR = "error"
    ARRAY = "array"


@dataclass(frozen=True, slots=True)
class Reply:
    kind: ReplyKind
    value: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> "Reply":
        """Classify a value as returned by ``redis.Connection.read_response``."""
        if raw is None:
            return cls(ReplyKind.NIL)
        if isinstance(raw, bool):
            return cls(ReplyKind.INTEGER, int(raw))
        if isinstance(raw, int):
            return cls(ReplyKind.INTEGER, raw)
        if isinstance(raw, (bytes, bytearray, memoryview)):
            return cls(ReplyKind.STRING, bytes(raw))
        if isinstance(raw, str):
            return cls(ReplyKind.STRING, raw)
        if isinstance(raw, ResponseError):
            return cls(ReplyKind.ERROR, str(raw))
        if isinstance(raw, (list, tuple)):
            return cls(ReplyKind.ARRAY, tuple(cls.from_raw(item) for item in raw))
        raise UnsupportedReplyType(f"unsupported reply type {type(raw).__name__}")

    @property
    def is_text(self) -> bool:
        return self.kind in (ReplyKind.STATUS, ReplyKind.STRING)


def decode_text(value: bytes | str, encoding: str = DEFAULT_ENCODING) -> str:
    if isinstance(value, str):
        return value
    try:
        return value.decode(encoding)
    except UnicodeDecodeError as exc:
        raise EncodingError(f"invalid byte sequence for encoding {encoding}", detail=str(exc)) from exc


def translate(reply: Reply, *, nil_text: str = FIXED_NIL_TEXT, encoding: str = DEFAULT_ENCODING) -> str:
    if reply.kind is ReplyKind.ARRAY:
        return translate_array(reply, encoding=encoding)
    if reply.kind is ReplyKind.NIL:
        return nil_text
    return _scalar_text(reply, encoding)


def translate_array(reply: Reply, *, encoding: str = DEFAULT_ENCODING) -> str:
    """Render an array reply as ``{a,b,c}``; nil elements leave an empty slot."""
    parts: list[str] = []
    for element in reply.value or ():
        if element.kind is ReplyKind.ARRAY:
            raise UnsupportedNestedArray("nested array returns not yet supported")
        if element.kind in (ReplyKind.NIL, ReplyKind.ERROR):
            parts.append("")
            continue
        parts.append(_scalar_text(element, encoding))
    return "{" + ",".join(parts) + "}"


def _scalar_text(reply: Reply, encoding: str) -> str:
    if reply.kind is ReplyKind.INTEGER:
        return str(int(reply.value))
    if reply.is_text:
        return decode_text(reply.value, encoding)
    # Error replies are raised by the transport before translation.
    raise UnsupportedReplyType(f"cannot translate {reply.kind.value} reply")
