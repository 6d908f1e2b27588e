"""Domain value objects for debate replies."""

from debate.domain.value.identifiers import DebateRoomId, ReplyId, UserId
from debate.domain.value.types import DeleteOutcome, OpinionRef, SortKey, VoteState

__all__ = [
    # Identifiers
    "ReplyId",
    "UserId",
    "DebateRoomId",
    # Types
    "DeleteOutcome",
    "OpinionRef",
    "SortKey",
    "VoteState",
]
