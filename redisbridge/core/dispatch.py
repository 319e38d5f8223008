"""Command dispatch through an open slot."""

from __future__ import annotations

from typing import Sequence

from redisbridge.core.errors import ArgumentMismatch, CommandFailure, CommandRequired, UnsupportedArity
from redisbridge.core.logging import get_logger
from redisbridge.core.reply import DEFAULT_ENCODING, FIXED_NIL_TEXT, VARIADIC_NIL_TEXT, Reply, translate
from redisbridge.core.slots import SlotTable
from redisbridge.core.transport import exchange


MAX_FIXED_ARGS = 4
_PLACEHOLDER = "%s"


def build_argv(command: str, args: Sequence[str | None] = ()) -> list[str]:
    """Expand a command template into an argument vector.

    ``"SET %s %s"`` with ``["k", "v"]`` gives ``["SET", "k", "v"]``. Without
    placeholders the words of ``command`` are followed by the arguments.
    Null arguments are left out.
    """
    words = str(command or "").split()
    if not words:
        raise CommandRequired("command required")
    placeholders = sum(_count_placeholders(word) for word in words)
    if placeholders == 0:
        return [word.replace("%%", "%") for word in words] + [arg for arg in args if arg is not None]
    if placeholders != len(args):
        raise ArgumentMismatch(f"command has {placeholders} placeholders but {len(args)} arguments were given")

    pending = list(args)
    argv: list[str] = []
    for word in words:
        if word == _PLACEHOLDER:
            value = pending.pop(0)
            if value is not None:
                argv.append(value)
            continue
        argv.append(_fill_word(word, pending))
    return argv


def _count_placeholders(word: str) -> int:
    return word.replace("%%", "").count(_PLACEHOLDER)


def _fill_word(word: str, pending: list[str | None]) -> str:
    out: list[str] = []
    position = 0
    while position < len(word):
        pair = word[position : position + 2]
        if pair == "%%":
            out.append("%")
            position += 2
        elif pair == _PLACEHOLDER:
            value = pending.pop(0)
            out.append(value or "")
            position += 2
        else:
            out.append(word[position])
            position += 1
    return "".join(out)


class CommandDispatcher:
    """Sends argument vectors through the slot table and translates the replies."""

    def __init__(self, slots: SlotTable, *, encoding: str = DEFAULT_ENCODING) -> None:
        self.slots = slots
        self.encoding = encoding
        self.logger = get_logger("redisbridge.dispatch")

    def send(self, index: int, argv: Sequence[str], *, context: str | None = None) -> Reply:
        context = context or f"command {argv[0]} failed"
        self.logger.debug(
            "dispatching command",
            extra={
                "service": "dispatch",
                "slot": index,
                "command": argv[0],
                "event_action": "command",
                "payload": {"argc": len(argv)},
            },
        )
        with self.slots.lease(index) as connection:
            try:
                raw = exchange(connection, argv, context=context)
            except CommandFailure as exc:
                self.logger.info(
                    "command rejected by store",
                    extra={
                        "service": "dispatch",
                        "slot": index,
                        "command": argv[0],
                        "event_action": "command",
                        "event_outcome": "failure",
                        "payload": {"error": exc.detail or ""},
                    },
                )
                raise
        return Reply.from_raw(raw)

    def send_fixed(self, index: int, command: str, args: Sequence[str | None] = ()) -> str:
        args = list(args or ())
        if len(args) > MAX_FIXED_ARGS:
            raise UnsupportedArity(
                f"unsupported number of command parameters: {len(args)} (can have 0 - {MAX_FIXED_ARGS})",
                hint="You might need to use command_argv() instead.",
            )
        argv = build_argv(command, args)
        reply = self.send(index, argv, context=f"command {command} failed")
        return translate(reply, nil_text=FIXED_NIL_TEXT, encoding=self.encoding)

    def send_variadic(self, index: int, args: Sequence[str | None]) -> str:
        argv = ["" if arg is None else arg for arg in (args or ())]
        if not argv or not argv[0]:
            raise CommandRequired("command required")
        reply = self.send(index, argv)
        return translate(reply, nil_text=VARIADIC_NIL_TEXT, encoding=self.encoding)
