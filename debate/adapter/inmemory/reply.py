"""In-memory reply repository.

Behaves like the opinion reply backend for one signed-in user: replies are
stored per opinion, child counts are derived from the stored tree, deletes
are soft and upvotes toggle.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from debate.domain.error import NotFoundError, RequestRejectedError
from debate.domain.model import MAX_DEPTH, Author, ReplyNode, ReplyPage, VoteResult
from debate.domain.repository import ReplyRepository
from debate.domain.value import OpinionRef, ReplyId, SortKey, UserId


class InMemoryReplyRepository(ReplyRepository):
    """In-memory implementation of ReplyRepository for testing."""

    def __init__(self, current_user: Optional[Author] = None) -> None:
        self.current_user = current_user or Author(
            id=UserId("current-user"), username="me"
        )
        self._replies: dict[ReplyId, ReplyNode] = {}
        self._opinions: dict[ReplyId, OpinionRef] = {}

    def seed(self, opinion: OpinionRef, node: ReplyNode) -> ReplyNode:
        """Store an existing reply as-is."""
        self._replies[node.id] = node
        self._opinions[node.id] = opinion
        return node

    async def list_top_level(
        self,
        opinion: OpinionRef,
        page: int,
        page_size: int,
        sort_key: SortKey,
    ) -> ReplyPage:
        """List top-level replies to an opinion."""
        replies = [
            r
            for reply_id, r in self._replies.items()
            if r.parent_id is None and self._opinions[reply_id] == opinion
        ]
        return self._page(replies, page, page_size, sort_key)

    async def list_children(
        self,
        reply_id: ReplyId,
        page: int,
        page_size: int,
        sort_key: SortKey,
    ) -> ReplyPage:
        """List direct children of a reply."""
        if reply_id not in self._replies:
            raise NotFoundError("reply", reply_id)

        replies = [r for r in self._replies.values() if r.parent_id == reply_id]
        return self._page(replies, page, page_size, sort_key)

    async def create_reply(
        self,
        opinion: OpinionRef,
        content: str,
        parent_id: Optional[ReplyId] = None,
    ) -> ReplyNode:
        """Create a reply as the current user."""
        depth = 0
        if parent_id is not None:
            parent = self._replies.get(parent_id)
            if parent is None:
                raise NotFoundError("reply", parent_id)
            if parent.depth >= MAX_DEPTH:
                raise RequestRejectedError("Maximum reply depth reached")
            depth = parent.depth + 1

        now = datetime.now(timezone.utc)
        reply = ReplyNode(
            id=ReplyId(str(uuid4())),
            parent_id=parent_id,
            depth=depth,
            content=content,
            author=self.current_user,
            created_at=now,
            updated_at=now,
            is_owner=True,
        )
        return self._view(self.seed(opinion, reply))

    async def update_reply(self, reply_id: ReplyId, content: str) -> ReplyNode:
        """Replace the text of a reply."""
        reply = self._replies.get(reply_id)
        if reply is None or reply.is_deleted:
            raise NotFoundError("reply", reply_id)

        self._replies[reply_id] = reply.model_copy(
            update={
                "content": content,
                "is_edited": True,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        return self._view(self._replies[reply_id])

    async def delete_reply(self, reply_id: ReplyId) -> None:
        """Soft-delete a reply (idempotent)."""
        reply = self._replies.get(reply_id)
        if reply is None:
            raise NotFoundError("reply", reply_id)
        if reply.is_deleted:
            return

        self._replies[reply_id] = reply.model_copy(
            update={"is_deleted": True, "content": ""}
        )

    async def toggle_upvote(self, reply_id: ReplyId) -> VoteResult:
        """Flip the current user's upvote."""
        reply = self._replies.get(reply_id)
        if reply is None:
            raise NotFoundError("reply", reply_id)

        upvoted = not reply.upvoted
        count = reply.upvote_count + 1 if upvoted else max(0, reply.upvote_count - 1)
        self._replies[reply_id] = reply.model_copy(
            update={"upvoted": upvoted, "upvote_count": count}
        )
        return VoteResult(upvoted=upvoted, upvote_count=count)

    def _page(
        self, replies: list[ReplyNode], page: int, page_size: int, sort_key: SortKey
    ) -> ReplyPage:
        replies = [self._view(r) for r in replies]
        replies.sort(key=lambda r: r.created_at, reverse=True)

        if sort_key == SortKey.TOP:
            replies.sort(key=lambda r: r.upvote_count, reverse=True)
        elif sort_key == SortKey.CONTROVERSIAL:
            # Most argued-over first: many replies, few upvotes
            replies.sort(key=lambda r: (-r.child_count, r.upvote_count))
        elif sort_key == SortKey.BEST:
            # Time-decay ranking: (upvotes + 1) / (age_hours + offset)^gravity
            gravity = 1.8
            time_offset = 1.0
            now = datetime.now(timezone.utc)

            def calculate_score(reply: ReplyNode) -> float:
                age_hours = (now - reply.created_at).total_seconds() / 3600
                return (reply.upvote_count + 1) / ((max(0.0, age_hours) + time_offset) ** gravity)

            replies.sort(key=calculate_score, reverse=True)

        total = len(replies)
        offset = (page - 1) * page_size
        total_pages = (total + page_size - 1) // page_size
        return ReplyPage(
            items=replies[offset : offset + page_size],
            has_next_page=offset + page_size < total,
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_prev_page=page > 1,
        )

    def _view(self, reply: ReplyNode) -> ReplyNode:
        """Reply as the current user sees it, with a live child count."""
        child_count = sum(1 for r in self._replies.values() if r.parent_id == reply.id)
        return reply.model_copy(
            update={
                "child_count": child_count,
                "is_owner": reply.author.id == self.current_user.id,
            }
        )
