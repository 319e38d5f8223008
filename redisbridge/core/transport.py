"""Single request/response exchange over a redis-py connection."""

from __future__ import annotations

from typing import Any, Callable, Sequence

from redis.backoff import NoBackoff
from redis.connection import Connection
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from redisbridge.core.errors import CommandFailure, TransportFailure


ConnectionFactory = Callable[..., Any]

RESP_PROTOCOL = 2

# Checked before ResponseError: redis-py drops the socket when it raises these,
# including error replies it maps to connection errors (NOAUTH, WRONGPASS, LOADING).
TRANSPORT_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


def default_connection_factory(
    *,
    host: str,
    port: int,
    connect_timeout: float | None = None,
    socket_timeout: float | None = None,
    encoding: str = "utf-8",
) -> Connection:
    # RESP2 with no library info: connect() must not send anything, so AUTH and
    # SELECT are the first commands the server sees and replies stay flat arrays.
    return Connection(
        host=host,
        port=port,
        socket_connect_timeout=connect_timeout,
        socket_timeout=socket_timeout,
        encoding=encoding,
        retry=Retry(NoBackoff(), 0),
        protocol=RESP_PROTOCOL,
        lib_name=None,
        lib_version=None,
    )


def exchange(connection: Any, argv: Sequence[str], *, context: str) -> Any:
    """Send one command and return the raw reply.

    Raises TransportFailure when no reply could be obtained and
    CommandFailure when the store answered with an error reply.
    """
    try:
        connection.send_command(*argv)
        return connection.read_response()
    except TRANSPORT_ERRORS as exc:
        raise TransportFailure(context, detail=str(exc) or type(exc).__name__) from exc
    except ResponseError as exc:
        raise CommandFailure(context, detail=str(exc)) from exc


def release(connection: Any) -> None:
    try:
        connection.disconnect()
    except TRANSPORT_ERRORS:
        return
