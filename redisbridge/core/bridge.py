"""Caller-facing entry points over the slot table."""

from __future__ import annotations

from typing import Any, Sequence

from redisbridge.config.schema import AppConfig, ConnectionConfig
from redisbridge.core.bulk import CollectionDropper
from redisbridge.core.dispatch import CommandDispatcher
from redisbridge.core.errors import ValidationError
from redisbridge.core.logging import configure_logging
from redisbridge.core.records import RecordProjector
from redisbridge.core.slots import SlotTable
from redisbridge.core.transport import ConnectionFactory


class RedisBridge:
    """Context object holding the slot table and the operations layered on it.

    Callers must not use the same slot from several threads at once unless
    they accept that commands are serialized by the per-slot lock.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        self.config = config or AppConfig()
        configure_logging(self.config.logging)
        self.slots = SlotTable(self.config.slots, connection_factory=connection_factory)
        self.dispatcher = CommandDispatcher(self.slots, encoding=self.config.slots.encoding)
        self.projector = RecordProjector(self.dispatcher)
        self.dropper = CollectionDropper(self.dispatcher)

    def __enter__(self) -> "RedisBridge":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close_all()

    def connect(
        self,
        slot: int,
        host: str,
        port: int,
        password: str | None = "",
        database: int | None = 0,
        ignore_if_open: bool = False,
    ) -> None:
        self.slots.open(slot, host, port, password, database, ignore_if_open=ignore_if_open)

    def connect_profile(self, slot: int) -> ConnectionConfig:
        """Open ``slot`` with the connection profile configured for it."""
        profile = self.config.connection_for_slot(slot)
        if profile is None:
            raise ValidationError(f"no connection profile configured for slot {slot}")
        self.slots.open(
            profile.slot,
            profile.host,
            profile.port,
            profile.password,
            profile.database,
            ignore_if_open=profile.ignore_if_open,
        )
        return profile

    def disconnect(self, slot: int) -> None:
        self.slots.close(slot)

    def command(self, slot: int, command: str, args: Sequence[str | None] = ()) -> str:
        return self.dispatcher.send_fixed(slot, command, args)

    def command_argv(self, slot: int, args: Sequence[str | None]) -> str:
        return self.dispatcher.send_variadic(slot, args)

    def push_record(
        self,
        slot: int,
        record: Any,
        include_keys: bool | None,
        keyset: str | None,
        prefix: str,
        key_fields: Sequence[str],
    ) -> None:
        self.projector.push(slot, record, key_fields, prefix, include_keys=include_keys, keyset=keyset)

    def drop_collection(self, slot: int, keyset: str | None = None, prefix: str | None = None) -> None:
        self.dropper.drop(slot, keyset=keyset, prefix=prefix)

    def close_all(self) -> int:
        return self.slots.close_all()

    def status(self) -> dict[str, Any]:
        rows = self.slots.snapshot()
        return {
            "environment": self.config.environment,
            "open": sum(1 for row in rows if row["state"] == "open"),
            "slots": rows,
        }
