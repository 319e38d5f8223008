"""Exception taxonomy shared by the slot table, dispatcher and translators."""

from __future__ import annotations


class BridgeError(Exception):
    """Base error; ``str()`` combines the context phrase and the underlying detail."""

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        self.message = message
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)


class ValidationError(BridgeError):
    pass


class InvalidSlotIndex(ValidationError):
    pass


class SlotAlreadyOpen(ValidationError):
    pass


class SlotNotOpen(ValidationError):
    pass


class UnsupportedArity(ValidationError):
    def __init__(self, message: str, *, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint


class CommandRequired(ValidationError):
    pass


class ArgumentMismatch(ValidationError):
    pass


class InvalidKeySpec(ValidationError):
    pass


class InvalidRecord(ValidationError):
    pass


class NullKeyValue(ValidationError):
    pass


class MissingKeyValue(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(f"key value for {field} not found")
        self.field = field


class AmbiguousSelector(ValidationError):
    pass


class ConnectFailure(BridgeError):
    pass


class AuthFailure(ConnectFailure):
    pass


class SelectFailure(ConnectFailure):
    pass


class TransportFailure(BridgeError):
    """The connection is unusable; the slot that raised it has been emptied.

    Error replies that redis-py classifies as connection errors (NOAUTH,
    WRONGPASS, LOADING) land here too rather than in CommandFailure, so a
    slot whose server lost its credentials or is still loading is closed.
    """


class CommandFailure(BridgeError):
    """The store executed the command and answered with an error reply."""


class TranslationError(BridgeError):
    pass


class EncodingError(TranslationError):
    pass


class UnsupportedNestedArray(TranslationError):
    pass


class UnsupportedReplyType(TranslationError):
    pass


class ReplyShapeError(BridgeError):
    pass


class UnexpectedReplyShape(ReplyShapeError):
    pass


class UnexpectedElementShape(ReplyShapeError):
    pass
