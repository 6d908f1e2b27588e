"""Vote result.

Upvotes are a toggle: the server flips the current user's vote and reports
the resulting state, which is authoritative over any local guess.
"""

from pydantic import Field

from debate.domain.model.common import DomainModel


class VoteResult(DomainModel):
    """Server-reported vote state after a toggle."""

    upvoted: bool
    upvote_count: int = Field(ge=0)
