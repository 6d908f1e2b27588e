"""Application layer: the reply thread the presentation layer talks to."""

from .result import ErrorKind, IntentResult, IntentStatus
from .thread import ReplyThread, ReplyThreadFactory, ThreadSession

__all__ = [
    "ErrorKind",
    "IntentResult",
    "IntentStatus",
    "ReplyThread",
    "ReplyThreadFactory",
    "ThreadSession",
]
