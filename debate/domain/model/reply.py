"""Reply entity.

Replies are threaded discussion under an opinion in a debate room. Nesting is
capped: top-level replies sit at depth 0 and replies at depth 2 are terminal.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from debate.domain.model.common import DomainModel
from debate.domain.value import ReplyId, UserId

MAX_DEPTH = 2


class Author(DomainModel):
    """Denormalized author snapshot carried on each reply."""

    id: UserId
    username: str
    image: Optional[str] = None  # Avatar URL


class ReplyNode(DomainModel):
    """Reply entity.

    Threading is managed through:
    - parent_id: Direct parent reply (None for top-level)
    - depth: Nesting level fixed when the reply enters the cache
    - child_count: Server-reported number of direct children, independent of
      how many are loaded locally

    A deleted reply is kept as a tombstone (is_deleted, empty content) so the
    thread keeps its shape.
    """

    id: ReplyId
    parent_id: Optional[ReplyId] = None
    depth: int = Field(default=0, ge=0, le=MAX_DEPTH)
    content: str = ""
    is_deleted: bool = False
    author: Author
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_edited: bool = False
    upvoted: bool = False
    upvote_count: int = Field(default=0, ge=0)
    child_count: int = Field(default=0, ge=0)
    is_owner: bool = False

