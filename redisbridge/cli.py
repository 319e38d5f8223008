"""CLI entry point for redisbridge."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import Any, Sequence

from redisbridge.config.loader import initialize_config, load_config
from redisbridge.core.bridge import RedisBridge
from redisbridge.core.errors import BridgeError


DEFAULT_CONFIG = Path(__file__).parent / "config" / "defaults.yml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="redisbridge")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create starter config")
    init_parser.add_argument("--config", type=Path, default=Path("./config/redisbridge.yml"))
    init_parser.add_argument("--force", action="store_true")

    connections_parser = subparsers.add_parser("connections", help="Show configured connection profiles")
    connections_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)

    command_parser = subparsers.add_parser("command", help="Run one command on a configured slot")
    command_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)
    command_parser.add_argument("--slot", type=int, default=0)
    command_parser.add_argument("args", nargs="+", help="Command name followed by its arguments")

    push_parser = subparsers.add_parser("push", help="Store a JSON object as a hash record")
    push_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)
    push_parser.add_argument("--slot", type=int, default=0)
    push_parser.add_argument("--prefix", type=str, required=True)
    push_parser.add_argument("--key", dest="keys", action="append", required=True, help="Key field, repeatable")
    push_parser.add_argument("--keyset", type=str, default=None)
    push_parser.add_argument(
        "--include-keys",
        action="store_true",
        help="Also write key fields after the first one into the hash",
    )
    push_parser.add_argument("--record", type=str, required=True, help="JSON object with the record fields")

    drop_parser = subparsers.add_parser("drop", help="Delete every record of a keyset or prefix")
    drop_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG)
    drop_parser.add_argument("--slot", type=int, default=0)
    selector = drop_parser.add_mutually_exclusive_group(required=True)
    selector.add_argument("--keyset", type=str, default=None)
    selector.add_argument("--prefix", type=str, default=None)

    return parser


def cmd_init(config_path: Path, force: bool) -> int:
    initialize_config(config_path, force=force)
    print(f"wrote config: {config_path}")
    return 0


def cmd_connections(config_path: Path) -> int:
    config = load_config(config_path)
    payload = {
        "environment": config.environment,
        "encoding": config.slots.encoding,
        "connections": [
            {
                "name": item.name,
                "slot": item.slot,
                "host": item.host,
                "port": item.port,
                "database": item.database,
                "password": "***" if item.password else "",
                "ignore_if_open": item.ignore_if_open,
            }
            for item in config.connections
        ],
    }
    print(json.dumps(payload, indent=2))
    return 0


def cmd_command(config_path: Path, *, slot: int, args: Sequence[str]) -> int:
    with _open_bridge(config_path, slot) as bridge:
        print(bridge.command_argv(slot, list(args)))
    return 0


def cmd_push(
    config_path: Path,
    *,
    slot: int,
    prefix: str,
    keys: Sequence[str],
    keyset: str | None,
    include_keys: bool,
    record_json: str,
) -> int:
    record = _parse_record(record_json)
    with _open_bridge(config_path, slot) as bridge:
        key = bridge.projector.push(slot, record, keys, prefix, include_keys=include_keys, keyset=keyset)
    print(key)
    return 0


def cmd_drop(config_path: Path, *, slot: int, keyset: str | None, prefix: str | None) -> int:
    with _open_bridge(config_path, slot) as bridge:
        deleted = bridge.dropper.drop(slot, keyset=keyset, prefix=prefix)
    print(json.dumps({"deleted": deleted}))
    return 0


def _open_bridge(config_path: Path, slot: int) -> RedisBridge:
    bridge = RedisBridge(load_config(config_path))
    try:
        bridge.connect_profile(slot)
    except BridgeError:
        bridge.close_all()
        raise
    return bridge


def _parse_record(raw: str) -> dict[str, Any]:
    try:
        record = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"--record must be a JSON object: {exc}") from exc
    if not isinstance(record, dict):
        raise ValueError("--record must be a JSON object")
    return record


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "init":
            return cmd_init(args.config, args.force)
        if args.command == "connections":
            return cmd_connections(args.config)
        if args.command == "command":
            return cmd_command(args.config, slot=args.slot, args=args.args)
        if args.command == "push":
            return cmd_push(
                args.config,
                slot=args.slot,
                prefix=args.prefix,
                keys=args.keys,
                keyset=args.keyset,
                include_keys=args.include_keys,
                record_json=args.record,
            )
        if args.command == "drop":
            return cmd_drop(args.config, slot=args.slot, keyset=args.keyset, prefix=args.prefix)
    except (BridgeError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    parser.error(f"unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
