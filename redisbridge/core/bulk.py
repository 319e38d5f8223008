"""Delete every record of a collection, selected by keyset or key prefix."""

from __future__ import annotations

import re

from redisbridge.core.dispatch import CommandDispatcher
from redisbridge.core.errors import AmbiguousSelector, UnexpectedElementShape, UnexpectedReplyShape
from redisbridge.core.logging import get_logger
from redisbridge.core.reply import ReplyKind, decode_text


_GLOB_SPECIALS = re.compile(r"([*?\[\]\\])")


def literal_prefix_pattern(prefix: str) -> str:
    return _GLOB_SPECIALS.sub(r"\\\1", prefix) + "*"


class CollectionDropper:
    def __init__(self, dispatcher: CommandDispatcher) -> None:
        self.dispatcher = dispatcher
        self.logger = get_logger("redisbridge.bulk")

    def drop(self, index: int, *, keyset: str | None = None, prefix: str | None = None) -> int:
        """Delete each member key, then the keyset itself when one was given.

        Returns the number of member deletions issued. Deletions are not
        rolled back when a later one fails.
        """
        if (keyset is None) == (prefix is None):
            raise AmbiguousSelector("must have exactly one keyset or prefix argument not null")
        self.dispatcher.slots.resolve(index)

        if keyset is not None:
            argv = ["SMEMBERS", keyset]
        else:
            argv = ["KEYS", literal_prefix_pattern(prefix or "")]
        label = " ".join(argv)
        reply = self.dispatcher.send(index, argv, context=f"command {label} failed")
        if reply.kind is not ReplyKind.ARRAY:
            raise UnexpectedReplyShape(f"unexpected reply type for {label}", detail=reply.kind.value)

        members: list[str] = []
        for element in reply.value:
            if not element.is_text:
                raise UnexpectedElementShape("unexpected reply type", detail=element.kind.value)
            members.append(decode_text(element.value, self.dispatcher.encoding))

        for member in members:
            self.dispatcher.send(index, ["DEL", member], context=f"command DEL {member} failed")
        if keyset is not None:
            self.dispatcher.send(index, ["DEL", keyset], context=f"command DEL {keyset} failed")

        self.logger.info(
            "collection dropped",
            extra={
                "service": "bulk",
                "slot": index,
                "event_action": "collection_drop",
                "event_outcome": "success",
                "payload": {"keyset": keyset or "", "prefix": prefix or "", "deleted": len(members)},
            },
        )
        return len(members)
