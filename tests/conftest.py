from __future__ import annotations

import os
from typing import Any

import pytest


# Keep default-config test runs deterministic regardless of the caller's shell.
os.environ.pop("REDISBRIDGE_HOST", None)
os.environ.pop("REDISBRIDGE_PORT", None)
os.environ.pop("REDISBRIDGE_PASSWORD", None)


class FakeConnection:
    """Stands in for redis.Connection: records commands, replays scripted replies."""

    def __init__(self, replies: list[Any] | None = None, *, connect_error: BaseException | None = None) -> None:
        self.replies = list(replies or [])
        self.connect_error = connect_error
        self.options: dict[str, Any] = {}
        self.sent: list[tuple[str, ...]] = []
        self.connected = False
        self.disconnected = False

    def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def send_command(self, *args: str) -> None:
        self.sent.append(tuple(args))

    def read_response(self) -> Any:
        reply = self.replies.pop(0) if self.replies else b"OK"
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def disconnect(self) -> None:
        self.connected = False
        self.disconnected = True


class FakeConnectionFactory:
    def __init__(self) -> None:
        self.created: list[FakeConnection] = []
        self._pending: list[FakeConnection] = []

    def queue(self, replies: list[Any] | None = None, *, connect_error: BaseException | None = None) -> FakeConnection:
        connection = FakeConnection(replies, connect_error=connect_error)
        self._pending.append(connection)
        return connection

    def __call__(self, **kwargs: Any) -> FakeConnection:
        connection = self._pending.pop(0) if self._pending else FakeConnection()
        connection.options = kwargs
        self.created.append(connection)
        return connection


@pytest.fixture
def connection_factory() -> FakeConnectionFactory:
    return FakeConnectionFactory()
