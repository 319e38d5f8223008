from redis.exceptions import ConnectionError as RedisConnectionError, ResponseError
import pytest

from redisbridge.config.schema import AppConfig, ConnectionConfig
from redisbridge.core.bridge import RedisBridge
from redisbridge.core.errors import (
    CommandFailure,
    SlotAlreadyOpen,
    SlotNotOpen,
    TransportFailure,
    UnsupportedArity,
    ValidationError,
)


def test_external_operations_round_trip(connection_factory) -> None:
    connection = connection_factory.queue(
        [
            b"OK",  # SELECT
            b"OK",  # SET
            b"v",  # GET
            None,  # GET missing
            0,  # DEL record
            2,  # HSET
            1,  # SADD
            [b"t:1"],  # SMEMBERS
            1,  # DEL member
            1,  # DEL keyset
        ]
    )
    bridge = RedisBridge(connection_factory=connection_factory)
    assert bridge.connect(0, "localhost", 6379, "", 2, False) is None
    assert bridge.command(0, "SET %s %s", ["k", "v"]) == "OK"
    assert bridge.command(0, "GET", ["k"]) == "v"
    assert bridge.command_argv(0, ["GET", "missing"]) == ""
    assert bridge.push_record(0, {"id": 1, "name": "x"}, False, "t:keys", "t", ["id"]) is None
    assert bridge.drop_collection(0, "t:keys", None) is None
    assert connection.sent[0] == ("SELECT", "2")
    assert connection.sent[4:7] == [("DEL", "t:1"), ("HSET", "t:1", "id", "1", "name", "x"), ("SADD", "t:keys", "t:1")]
    assert connection.sent[-1] == ("DEL", "t:keys")

    bridge.disconnect(0)
    with pytest.raises(SlotNotOpen):
        bridge.command(0, "PING")


def test_reconnect_after_transport_failure(connection_factory) -> None:
    connection_factory.queue([RedisConnectionError("Connection closed by server.")])
    replacement = connection_factory.queue([b"PONG"])
    bridge = RedisBridge(connection_factory=connection_factory)
    bridge.connect(1, "localhost", 6379)
    with pytest.raises(TransportFailure):
        bridge.command(1, "PING")
    assert bridge.status()["slots"][1]["state"] == "empty"

    bridge.connect(1, "localhost", 6379)
    assert bridge.command(1, "PING") == "PONG"
    assert connection_factory.created[-1] is replacement


def test_command_failure_leaves_slot_usable(connection_factory) -> None:
    connection_factory.queue([ResponseError("ERR unknown command 'NOPE'"), b"PONG"])
    bridge = RedisBridge(connection_factory=connection_factory)
    bridge.connect(2, "localhost", 6379)
    with pytest.raises(CommandFailure):
        bridge.command_argv(2, ["NOPE"])
    assert bridge.command(2, "PING") == "PONG"
    with pytest.raises(UnsupportedArity):
        bridge.command(2, "DEL", ["a", "b", "c", "d", "e"])


def test_connect_profile_uses_configuration(connection_factory) -> None:
    config = AppConfig(
        connections=[
            ConnectionConfig(name="sessions", slot=3, host="cache", port=6381, password="pw", database=4),
        ]
    )
    connection = connection_factory.queue([b"OK", b"OK"])
    bridge = RedisBridge(config, connection_factory=connection_factory)
    profile = bridge.connect_profile(3)
    assert profile.name == "sessions"
    assert connection.options["host"] == "cache"
    assert connection.sent == [("AUTH", "pw"), ("SELECT", "4")]
    # profiles default to ignoring an already open slot
    bridge.connect_profile(3)
    assert len(connection_factory.created) == 1
    with pytest.raises(SlotAlreadyOpen):
        bridge.connect(3, "cache", 6381)
    with pytest.raises(ValidationError):
        bridge.connect_profile(4)


def test_context_manager_closes_every_slot(connection_factory) -> None:
    with RedisBridge(connection_factory=connection_factory) as bridge:
        bridge.connect(0, "a", 6379)
        bridge.connect(9, "b", 6379)
        assert bridge.status()["open"] == 2
    assert all(connection.disconnected for connection in connection_factory.created)
    assert bridge.status()["open"] == 0
