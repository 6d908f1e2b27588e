"""Domain value objects for debate replies.

Value objects are immutable and defined by their values, not identity.
"""

from enum import Enum

from pydantic import field_validator

from debate.domain.value.common import ValueObject
from debate.domain.value.identifiers import DebateRoomId, UserId


class SortKey(str, Enum):
    """Ordering applied to reply listings.

    Child lists are fetched with the same key as the top level.
    """

    BEST = "best"
    TOP = "top"
    CONTROVERSIAL = "controversial"
    DATE = "date"


class VoteState(str, Enum):
    """Per-reply upvote reconciliation state."""

    IDLE = "idle"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class OpinionRef(ValueObject):
    """The opinion a reply thread hangs off.

    An opinion is a participant's stance inside a debate room, so it is
    addressed by the room and the participant who voiced it.
    """

    debate_room_id: DebateRoomId
    participant_user_id: UserId

    @field_validator("debate_room_id", "participant_user_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate identifiers are not blank."""
        if not v or not v.strip():
            raise ValueError("Opinion identifiers must not be blank")
        return v


class DeleteOutcome(str, Enum):
    """How a successful delete was folded into the local tree."""

    REMOVED = "removed"  # Spliced out of its list
    TOMBSTONED = "tombstoned"  # Kept as a placeholder for its replies
    ALREADY_GONE = "already_gone"  # Left the local tree while the request ran
