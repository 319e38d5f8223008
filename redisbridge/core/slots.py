"""Fixed-size table of named connection slots."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
import threading
from typing import Any, Iterator

from redisbridge.config.schema import MAX_SLOTS, SlotsConfig
from redisbridge.core.errors import (
    AuthFailure,
    CommandFailure,
    ConnectFailure,
    InvalidSlotIndex,
    SelectFailure,
    SlotAlreadyOpen,
    SlotNotOpen,
    TransportFailure,
)
from redisbridge.core.logging import get_logger
from redisbridge.core.transport import (
    TRANSPORT_ERRORS,
    ConnectionFactory,
    default_connection_factory,
    exchange,
    release,
)


SLOT_COUNT = MAX_SLOTS


@dataclass(slots=True)
class Slot:
    index: int
    connection: Any | None = None
    host: str = ""
    port: int = 0
    database: int = 0
    opened_at: datetime | None = None
    lock: Any = field(default_factory=threading.RLock, repr=False)

    @property
    def state(self) -> str:
        return "open" if self.connection is not None else "empty"

    def clear(self) -> Any | None:
        connection = self.connection
        self.connection = None
        self.host = ""
        self.port = 0
        self.database = 0
        self.opened_at = None
        return connection


class SlotTable:
    """Owns every connection handle; each slot is EMPTY or OPEN.

    Open and close take the table lock and then the slot lock. Command
    traffic only takes the slot lock, so one in-flight command per slot.
    """

    def __init__(
        self,
        config: SlotsConfig | None = None,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        self.config = config or SlotsConfig()
        self.logger = get_logger("redisbridge.slots")
        self._connection_factory = connection_factory or default_connection_factory
        self._table_lock = threading.RLock()
        self._slots = [Slot(index=index) for index in range(SLOT_COUNT)]

    def open(
        self,
        index: int,
        host: str,
        port: int,
        password: str | None = "",
        database: int | None = 0,
        *,
        ignore_if_open: bool = False,
    ) -> bool:
        """Connect slot ``index``; returns False when it was already open and ignored."""
        slot = self._slot(index)
        password = password or ""
        database = int(database or 0)
        with self._table_lock, slot.lock:
            if slot.connection is not None:
                if ignore_if_open:
                    self.logger.debug(
                        "slot already open, ignoring",
                        extra={"service": "slots", "slot": index, "event_action": "slot_open", "event_outcome": "noop"},
                    )
                    return False
                raise SlotAlreadyOpen(f"connection number {index} is already open")

            connection = self._connection_factory(
                host=host,
                port=port,
                connect_timeout=self.config.connect_timeout_seconds,
                socket_timeout=self.config.socket_timeout_seconds,
                encoding=self.config.encoding,
            )
            try:
                connection.connect()
            except TRANSPORT_ERRORS as exc:
                release(connection)
                self._log_open_failure(index, host, port, exc)
                raise ConnectFailure(f"failed to connect to redis at {host}:{port}", detail=str(exc)) from exc

            try:
                if password:
                    self._handshake(connection, ("AUTH", password), failure=AuthFailure, context="authentication failure")
                if database != 0:
                    self._handshake(
                        connection,
                        ("SELECT", str(database)),
                        failure=SelectFailure,
                        context="selecting db failure",
                    )
            except ConnectFailure as exc:
                release(connection)
                self._log_open_failure(index, host, port, exc)
                raise

            slot.connection = connection
            slot.host = host
            slot.port = int(port)
            slot.database = database
            slot.opened_at = datetime.now(UTC)
        self.logger.info(
            "slot opened",
            extra={
                "service": "slots",
                "slot": index,
                "event_action": "slot_open",
                "event_outcome": "success",
                "payload": {"host": host, "port": int(port), "database": database, "auth": bool(password)},
            },
        )
        return True

    def close(self, index: int) -> None:
        slot = self._slot(index)
        with self._table_lock, slot.lock:
            if slot.connection is None:
                raise SlotNotOpen(f"connection number {index} is not open")
            release(slot.clear())
        self.logger.info(
            "slot closed",
            extra={"service": "slots", "slot": index, "event_action": "slot_close", "event_outcome": "success"},
        )

    def close_all(self) -> int:
        closed = 0
        with self._table_lock:
            for slot in self._slots:
                with slot.lock:
                    if slot.connection is None:
                        continue
                    release(slot.clear())
                    closed += 1
        return closed

    def resolve(self, index: int) -> Any:
        slot = self._slot(index)
        connection = slot.connection
        if connection is None:
            raise SlotNotOpen(f"connection number {index} is not open")
        return connection

    @contextmanager
    def lease(self, index: int) -> Iterator[Any]:
        """Hold the slot lock for one exchange; a TransportFailure empties the slot."""
        slot = self._slot(index)
        with slot.lock:
            connection = self.resolve(index)
            try:
                yield connection
            except TransportFailure as exc:
                self.invalidate(index, connection, reason=str(exc))
                raise

    def invalidate(self, index: int, connection: Any | None = None, *, reason: str = "") -> bool:
        """Discard the slot's handle; with ``connection`` only if it is still the live one."""
        slot = self._slot(index)
        with slot.lock:
            if slot.connection is None:
                return False
            if connection is not None and slot.connection is not connection:
                return False
            release(slot.clear())
        self.logger.warning(
            "slot invalidated after transport failure",
            extra={
                "service": "slots",
                "slot": index,
                "event_action": "slot_invalidate",
                "event_outcome": "failure",
                "payload": {"error": reason},
            },
        )
        return True

    def is_open(self, index: int) -> bool:
        return self._slot(index).connection is not None

    def snapshot(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for slot in self._slots:
            rows.append(
                {
                    "slot": slot.index,
                    "state": slot.state,
                    "host": slot.host,
                    "port": slot.port,
                    "database": slot.database,
                    "opened_at": slot.opened_at.isoformat(timespec="seconds") if slot.opened_at else None,
                }
            )
        return rows

    def _slot(self, index: int) -> Slot:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < SLOT_COUNT:
            raise InvalidSlotIndex(f"slot index must be between 0 and {SLOT_COUNT - 1}")
        return self._slots[index]

    @staticmethod
    def _handshake(
        connection: Any,
        argv: tuple[str, ...],
        *,
        failure: type[ConnectFailure],
        context: str,
    ) -> None:
        try:
            exchange(connection, argv, context=context)
        except (TransportFailure, CommandFailure) as exc:
            raise failure(context, detail=exc.detail) from exc

    def _log_open_failure(self, index: int, host: str, port: int, exc: BaseException) -> None:
        self.logger.warning(
            "slot open failed",
            extra={
                "service": "slots",
                "slot": index,
                "event_action": "slot_open",
                "event_outcome": "failure",
                "payload": {"host": host, "port": port, "error": str(exc)},
            },
        )
