"""Dataclasses for top-level application config."""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from typing import Any


MAX_SLOTS = 16


@dataclass(slots=True)
class SlotsConfig:
    connect_timeout_seconds: float | None = 1.0
    socket_timeout_seconds: float | None = None
    encoding: str = "utf-8"


@dataclass(slots=True)
class ConnectionConfig:
    name: str
    slot: int
    host: str = "127.0.0.1"
    port: int = 6379
    password: str = ""
    database: int = 0
    ignore_if_open: bool = True


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    fmt: str = "ecs_json"
    sink: str = "stdout"
    file_path: str | None = None
    service_name: str = "redisbridge"


@dataclass(slots=True)
class AppConfig:
    environment: str = "development"
    slots: SlotsConfig = field(default_factory=SlotsConfig)
    connections: list[ConnectionConfig] = field(default_factory=list)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def connection_for_slot(self, slot: int) -> ConnectionConfig | None:
        for connection in self.connections:
            if connection.slot == slot:
                return connection
        return None


VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
VALID_LOG_FORMATS = {"json", "ecs_json"}
VALID_LOG_SINKS = {"stdout", "file"}


def _parse_bool_value(raw: Any, *, field_name: str, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"'{field_name}' must be a boolean")


def _parse_optional_timeout(raw: Any, *, field_name: str, default: float | None) -> float | None:
    if raw is None:
        return default
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{field_name} must be greater than zero")
    return value


def _parse_connections(items: Any) -> list[ConnectionConfig]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError("'connections' must be a list")
    connections: list[ConnectionConfig] = []
    seen_names: set[str] = set()
    seen_slots: set[int] = set()
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"'connections[{position}]' must be an object")
        slot = int(item.get("slot", position))
        if not 0 <= slot < MAX_SLOTS:
            raise ValueError(f"connections[{position}].slot must be between 0 and {MAX_SLOTS - 1}")
        if slot in seen_slots:
            raise ValueError(f"duplicate connection slot {slot}")
        name = str(item.get("name") or f"slot-{slot}").strip()
        if name in seen_names:
            raise ValueError(f"duplicate connection name '{name}'")
        host = str(item.get("host", "127.0.0.1")).strip()
        if not host:
            raise ValueError(f"connections[{position}].host must not be empty")
        port = int(item.get("port", 6379))
        if not 1 <= port <= 65535:
            raise ValueError(f"connections[{position}].port must be between 1 and 65535")
        database = int(item.get("database", 0))
        if database < 0:
            raise ValueError(f"connections[{position}].database must be greater than or equal to zero")
        password = item.get("password")
        connections.append(
            ConnectionConfig(
                name=name,
                slot=slot,
                host=host,
                port=port,
                password="" if password is None else str(password),
                database=database,
                ignore_if_open=_parse_bool_value(
                    item.get("ignore_if_open"),
                    field_name=f"connections[{position}].ignore_if_open",
                    default=True,
                ),
            )
        )
        seen_names.add(name)
        seen_slots.add(slot)
    return connections


def parse_config(data: dict[str, Any]) -> AppConfig:
    environment = str(data.get("environment", "development"))

    slots_raw = data.get("slots", {}) or {}
    if not isinstance(slots_raw, dict):
        raise ValueError("'slots' must be an object")
    encoding = str(slots_raw.get("encoding", "utf-8")).strip()
    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise ValueError(f"invalid slots encoding '{encoding}'") from exc
    slots_config = SlotsConfig(
        connect_timeout_seconds=_parse_optional_timeout(
            slots_raw.get("connect_timeout_seconds"),
            field_name="slots connect_timeout_seconds",
            default=1.0,
        ),
        socket_timeout_seconds=_parse_optional_timeout(
            slots_raw.get("socket_timeout_seconds"),
            field_name="slots socket_timeout_seconds",
            default=None,
        ),
        encoding=encoding,
    )

    connections = _parse_connections(data.get("connections"))

    logging_raw = data.get("logging", {}) or {}
    if not isinstance(logging_raw, dict):
        raise ValueError("'logging' must be an object")
    level = str(logging_raw.get("level", "INFO")).upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"invalid log level '{level}'")
    log_format = str(logging_raw.get("format", "ecs_json"))
    if log_format not in VALID_LOG_FORMATS:
        raise ValueError(f"invalid log format '{log_format}'")
    sink = str(logging_raw.get("sink", "stdout"))
    if sink not in VALID_LOG_SINKS:
        raise ValueError(f"invalid log sink '{sink}'")
    logging_config = LoggingConfig(
        level=level,
        fmt=log_format,
        sink=sink,
        file_path=logging_raw.get("file_path"),
        service_name=str(logging_raw.get("service_name", "redisbridge")),
    )

    return AppConfig(
        environment=environment,
        slots=slots_config,
        connections=connections,
        logging=logging_config,
    )
