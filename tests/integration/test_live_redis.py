"""Runs against a real server when REDISBRIDGE_TEST_URL is set, e.g. redis://:pw@127.0.0.1:6379/15."""

import os
from urllib.parse import urlparse
import uuid

import pytest

from redisbridge.core.bridge import RedisBridge
from redisbridge.core.errors import CommandFailure


TEST_URL = os.environ.get("REDISBRIDGE_TEST_URL", "")

pytestmark = pytest.mark.skipif(not TEST_URL, reason="REDISBRIDGE_TEST_URL not set")


@pytest.fixture
def live_bridge():
    parsed = urlparse(TEST_URL)
    database = int((parsed.path or "/0").lstrip("/") or 0)
    bridge = RedisBridge()
    bridge.connect(0, parsed.hostname or "127.0.0.1", parsed.port or 6379, parsed.password or "", database)
    try:
        yield bridge
    finally:
        bridge.close_all()


def test_live_commands_and_replies(live_bridge) -> None:
    key = f"redisbridge:test:{uuid.uuid4().hex}"
    assert live_bridge.command(0, "SET %s %s", [key, "value"]) == "OK"
    assert live_bridge.command(0, "GET", [key]) == "value"
    assert live_bridge.command(0, "INCR", [f"{key}:n"]) == "1"
    assert live_bridge.command_argv(0, ["GET", f"{key}:missing"]) == ""
    assert live_bridge.command(0, "GET", [f"{key}:missing"]) == "nil"
    assert live_bridge.command_argv(0, ["RPUSH", f"{key}:list", "a", "b"]) == "2"
    assert live_bridge.command_argv(0, ["LRANGE", f"{key}:list", "0", "-1"]) == "{a,b}"
    with pytest.raises(CommandFailure):
        live_bridge.command_argv(0, ["LPUSH", key, "x"])
    live_bridge.command_argv(0, ["DEL", key, f"{key}:n", f"{key}:list"])


def test_live_push_and_drop(live_bridge) -> None:
    prefix = f"redisbridge:test:{uuid.uuid4().hex}"
    keyset = f"{prefix}:keys"
    for record_id in (1, 2):
        live_bridge.push_record(0, {"id": record_id, "name": f"n{record_id}"}, False, keyset, prefix, ["id"])
    assert live_bridge.command_argv(0, ["HGET", f"{prefix}:2", "name"]) == "n2"
    assert live_bridge.command_argv(0, ["SCARD", keyset]) == "2"

    live_bridge.drop_collection(0, keyset, None)
    assert live_bridge.command_argv(0, ["EXISTS", f"{prefix}:1", f"{prefix}:2", keyset]) == "0"
