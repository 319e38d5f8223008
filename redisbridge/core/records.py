"""Project structured records into hashes keyed by their key fields."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
import json
from typing import Any, Iterable, Sequence
from uuid import UUID

from redisbridge.core.dispatch import CommandDispatcher
from redisbridge.core.errors import InvalidKeySpec, InvalidRecord, MissingKeyValue, NullKeyValue
from redisbridge.core.logging import get_logger
from redisbridge.core.reply import DEFAULT_ENCODING, decode_text


NULL_VALUE_TEXT = "nil"
KEY_SEPARATOR = ":"


@dataclass(frozen=True, slots=True)
class RecordField:
    name: str
    value: Any = None
    dropped: bool = False


@dataclass(frozen=True, slots=True)
class Record:
    fields: tuple[RecordField, ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, Any]]) -> "Record":
        return cls(tuple(RecordField(str(name), value) for name, value in pairs))

    @classmethod
    def coerce(cls, raw: Any) -> "Record":
        """Accept a Record, a mapping, a dataclass instance or a named tuple."""
        if raw is None:
            raise InvalidRecord("must provide non-null record")
        if isinstance(raw, Record):
            return raw
        if isinstance(raw, Mapping):
            return cls.from_pairs(raw.items())
        if is_dataclass(raw) and not isinstance(raw, type):
            return cls.from_pairs((item.name, getattr(raw, item.name)) for item in fields(raw))
        if isinstance(raw, tuple) and hasattr(raw, "_asdict"):
            return cls.from_pairs(raw._asdict().items())
        raise InvalidRecord(f"unsupported record type {type(raw).__name__}")


@dataclass(slots=True)
class Projection:
    key_fields: tuple[str, ...]
    key_values: dict[str, str] = field(default_factory=dict)
    values: list[tuple[str, str]] = field(default_factory=list)

    def composite_key(self, prefix: str) -> str:
        parts = [prefix]
        parts.extend(self.key_values[name] for name in self.key_fields)
        return KEY_SEPARATOR.join(parts)

    def hash_arguments(self) -> list[str]:
        flat: list[str] = []
        for name, value in self.values:
            flat.extend((name, value))
        return flat


def render_value(value: Any, *, encoding: str = DEFAULT_ENCODING) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return render_value(value.value, encoding=encoding)
    if isinstance(value, (int, float, Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return decode_text(bytes(value), encoding)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def validate_key_fields(key_fields: Sequence[str | None] | None) -> tuple[str, ...]:
    if key_fields is None:
        raise InvalidKeySpec("must provide non-null list of key names")
    names = tuple(key_fields)
    if not names:
        raise InvalidKeySpec("cannot push a record with no key elements")
    if any(name is None for name in names):
        raise InvalidKeySpec("cannot push a record with null key elements")
    if any(name == "" for name in names):
        raise InvalidKeySpec("cannot push a record with empty key elements")
    return tuple(str(name) for name in names)


def project_record(
    record: Any,
    key_fields: Sequence[str | None] | None,
    *,
    include_keys: bool = False,
    encoding: str = DEFAULT_ENCODING,
) -> Projection:
    """Split a record into key values and the flat field/value list for the hash.

    The first key field is always written to the hash; the other key fields
    only when ``include_keys`` is set.
    """
    names = validate_key_fields(key_fields)
    projection = Projection(key_fields=names)
    for item in Record.coerce(record).fields:
        if item.dropped:
            continue
        text = render_value(item.value, encoding=encoding)
        position = names.index(item.name) if item.name in names else -1
        if position >= 0:
            if text is None:
                raise NullKeyValue(f"cannot push a record with null key value ({item.name})")
            projection.key_values[item.name] = text
            if position != 0 and not include_keys:
                continue
        projection.values.append((item.name, NULL_VALUE_TEXT if text is None else text))
    for name in names:
        if name not in projection.key_values:
            raise MissingKeyValue(name)
    return projection


class RecordProjector:
    def __init__(self, dispatcher: CommandDispatcher) -> None:
        self.dispatcher = dispatcher
        self.logger = get_logger("redisbridge.records")

    def push(
        self,
        index: int,
        record: Any,
        key_fields: Sequence[str | None] | None,
        prefix: str | None,
        *,
        include_keys: bool | None = False,
        keyset: str | None = None,
    ) -> str:
        """Replace the hash stored under the record's composite key and return that key.

        The delete, the hash write and the keyset add are separate commands;
        a failure after the first leaves the earlier effects in place.
        """
        if prefix is None:
            raise InvalidKeySpec("must provide non-null table prefix")
        self.dispatcher.slots.resolve(index)
        projection = project_record(
            record,
            key_fields,
            include_keys=bool(include_keys),
            encoding=self.dispatcher.encoding,
        )
        key = projection.composite_key(prefix)

        self.dispatcher.send(index, ["DEL", key], context="record delete failure")
        self.dispatcher.send(index, ["HSET", key, *projection.hash_arguments()], context="record push failure")
        if keyset is not None:
            self.dispatcher.send(index, ["SADD", keyset, key], context="keyset add failure")

        self.logger.debug(
            "record pushed",
            extra={
                "service": "records",
                "slot": index,
                "event_action": "record_push",
                "event_outcome": "success",
                "payload": {"key": key, "fields": len(projection.values), "keyset": keyset or ""},
            },
        )
        return key
