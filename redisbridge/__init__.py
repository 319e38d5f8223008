"""Fixed slot table of redis connections with text reply translation."""

from .core.bridge import RedisBridge
from .core.errors import BridgeError, CommandFailure, TransportFailure, ValidationError
from .core.records import Record, RecordField
from .core.reply import Reply, ReplyKind, translate, translate_array
from .core.slots import SLOT_COUNT

__all__ = [
    "BridgeError",
    "CommandFailure",
    "Record",
    "RecordField",
    "RedisBridge",
    "Reply",
    "ReplyKind",
    "SLOT_COUNT",
    "TransportFailure",
    "ValidationError",
    "translate",
    "translate_array",
]

__version__ = "0.3.0"
