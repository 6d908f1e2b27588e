"""Render adapter.

Flattens a ReplyThread into the rows a list view draws: depth-first, each
expanded parent followed by its loaded children, with the display strings
already computed.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

from debate.application import ReplyThread
from debate.domain.model import ReplyNode
from debate.domain.value import ReplyId

DELETED_PLACEHOLDER = "[deleted]"


class ReplyRow(BaseModel):
    """One visible reply row."""

    id: ReplyId
    parent_id: Optional[ReplyId] = None
    depth: int
    username: str
    avatar_url: Optional[str] = None
    content: str
    is_deleted: bool
    is_edited: bool
    time_label: str
    upvoted: bool
    upvote_count: int
    vote_pending: bool
    child_count: int
    replies_label: Optional[str] = None
    is_expanded: bool
    is_loading_children: bool
    has_more_children: bool
    can_reply: bool
    can_edit: bool
    can_delete: bool


def format_relative_time(created_at: datetime, now: Optional[datetime] = None) -> str:
    """Short age label: ``5m ago``, ``3h ago``, otherwise ``Mar 4``."""
    now = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    minutes = int((now - created_at).total_seconds() // 60)
    if minutes < 60:
        return f"{max(0, minutes)}m ago"
    if minutes < 60 * 24:
        return f"{minutes // 60}h ago"
    return f"{created_at.strftime('%b')} {created_at.day}"


def replies_label(child_count: int) -> Optional[str]:
    if child_count <= 0:
        return None
    return "1 reply" if child_count == 1 else f"{child_count} replies"


def to_row(
    thread: ReplyThread, node: ReplyNode, now: Optional[datetime] = None
) -> ReplyRow:
    """Build the row for one cached reply."""
    return ReplyRow(
        id=node.id,
        parent_id=node.parent_id,
        depth=node.depth,
        username=node.author.username,
        avatar_url=node.author.image,
        content=DELETED_PLACEHOLDER if node.is_deleted else node.content,
        is_deleted=node.is_deleted,
        is_edited=node.is_edited and not node.is_deleted,
        time_label=format_relative_time(node.created_at, now),
        upvoted=node.upvoted,
        upvote_count=node.upvote_count,
        vote_pending=thread.is_vote_pending(node.id),
        child_count=node.child_count,
        replies_label=replies_label(node.child_count),
        is_expanded=thread.is_expanded(node.id),
        is_loading_children=thread.is_loading_children(node.id),
        has_more_children=thread.has_more_children(node.id),
        can_reply=not node.is_deleted and node.depth < thread.max_depth,
        can_edit=node.is_owner and not node.is_deleted,
        can_delete=node.is_owner and not node.is_deleted,
    )


def flatten_thread(thread: ReplyThread, now: Optional[datetime] = None) -> list[ReplyRow]:
    """Visible rows of a thread in display order.

    Collapsed parents hide their loaded children; nothing deeper than the
    depth cap is emitted.
    """
    now = now or datetime.now(timezone.utc)
    rows: list[ReplyRow] = []

    def visit(node: ReplyNode) -> None:
        rows.append(to_row(thread, node, now))
        if node.depth >= thread.max_depth or not thread.is_expanded(node.id):
            return
        for child in thread.children_of(node.id):
            visit(child)

    for node in thread.top_level():
        visit(node)
    return rows
