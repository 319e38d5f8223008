"""Structured ECS logging."""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
from pathlib import Path

from redisbridge.config.schema import LoggingConfig


def _strip_empty(value: object) -> object | None:
    if isinstance(value, dict):
        cleaned = {key: _strip_empty(item) for key, item in value.items()}
        return {key: item for key, item in cleaned.items() if item is not None} or None
    if isinstance(value, list):
        cleaned_list = [_strip_empty(item) for item in value]
        return [item for item in cleaned_list if item is not None] or None
    if value in ("", None):
        return None
    return value


class ECSJsonFormatter(logging.Formatter):
    def __init__(self, service_name: str = "redisbridge") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC).isoformat(timespec="microseconds")
        payload: dict[str, object] = {
            "@timestamp": timestamp,
            "message": record.getMessage(),
            "log": {
                "level": record.levelname.lower(),
                "logger": record.name,
            },
            "service": {
                "name": getattr(record, "service_name", self.service_name),
            },
            "event": {
                "kind": "event",
                "category": getattr(record, "event_category", "database"),
                "action": getattr(record, "event_action", None),
                "outcome": getattr(record, "event_outcome", None),
            },
            "error": {
                "message": self.formatException(record.exc_info) if record.exc_info else None,
            },
            "redisbridge": {
                "component": getattr(record, "service", None),
                "slot": getattr(record, "slot", None),
                "command": getattr(record, "command", None),
                "payload": getattr(record, "payload", None),
            },
        }
        cleaned = _strip_empty(payload) or {}
        return json.dumps(cleaned, separators=(",", ":"), default=str)


class FlatJsonFormatter(logging.Formatter):
    _FIELDS = ("service", "slot", "command", "event_action", "event_outcome", "payload")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="microseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in self._FIELDS:
            value = getattr(record, name, None)
            if value not in ("", None):
                payload[name] = value
        return json.dumps(payload, separators=(",", ":"), default=str)


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.fmt == "json":
        return FlatJsonFormatter()
    return ECSJsonFormatter(service_name=config.service_name)


def _sink_handler(config: LoggingConfig, formatter: logging.Formatter) -> logging.Handler:
    if config.sink == "file":
        file_path = config.file_path or "logs/redisbridge.log"
        log_file = Path(file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: LoggingConfig, force: bool = False) -> None:
    root = logging.getLogger("redisbridge")
    if getattr(root, "_redisbridge_configured", False) and not force:
        return

    root.setLevel(config.level)
    for existing in list(root.handlers):
        existing.close()
    root.handlers.clear()
    root.addHandler(_sink_handler(config, _formatter(config)))
    root.propagate = False
    # Loggers created before configuration carry a private fallback handler.
    for name, existing_logger in list(logging.root.manager.loggerDict.items()):
        if not name.startswith("redisbridge.") or not isinstance(existing_logger, logging.Logger):
            continue
        for handler in list(existing_logger.handlers):
            handler.close()
        existing_logger.handlers.clear()
        existing_logger.setLevel(logging.NOTSET)
        existing_logger.propagate = True
    setattr(root, "_redisbridge_configured", True)


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if name.startswith("redisbridge"):
        parent = logging.getLogger("redisbridge")
        if parent.handlers:
            logger.setLevel(logging.NOTSET)
            logger.propagate = True
            return logger

    handler = logging.StreamHandler()
    handler.setFormatter(ECSJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
