"""Reply repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from debate.domain.model import ReplyNode, ReplyPage, VoteResult
from debate.domain.value import OpinionRef, ReplyId, SortKey


class ReplyRepository(ABC):
    """Remote reply API.

    Defines the contract for the opinion reply backend. The server is an
    opaque paginated tree; implementations live in the adapter layer.

    All methods may raise NetworkFailureError or AuthExpiredError.
    """

    @abstractmethod
    async def list_top_level(
        self,
        opinion: OpinionRef,
        page: int,
        page_size: int,
        sort_key: SortKey,
    ) -> ReplyPage:
        """List top-level replies to an opinion.

        Args:
            opinion: The opinion being replied to
            page: 1-based page number
            page_size: Replies per page
            sort_key: Ordering

        Returns:
            The requested page
        """
        pass

    @abstractmethod
    async def list_children(
        self,
        reply_id: ReplyId,
        page: int,
        page_size: int,
        sort_key: SortKey,
    ) -> ReplyPage:
        """List direct children of a reply.

        Args:
            reply_id: Parent reply ID
            page: 1-based page number
            page_size: Replies per page
            sort_key: Ordering

        Returns:
            The requested page
        """
        pass

    @abstractmethod
    async def create_reply(
        self,
        opinion: OpinionRef,
        content: str,
        parent_id: Optional[ReplyId] = None,
    ) -> ReplyNode:
        """Create a reply to an opinion or to another reply.

        Args:
            opinion: The opinion the thread belongs to
            content: Reply text
            parent_id: Parent reply ID for nested replies (None for top-level)

        Returns:
            The created reply as echoed by the server
        """
        pass

    @abstractmethod
    async def update_reply(self, reply_id: ReplyId, content: str) -> ReplyNode:
        """Replace the text of a reply.

        Args:
            reply_id: Reply ID
            content: New text

        Returns:
            The updated reply

        Raises:
            NotFoundError: If the reply no longer exists
        """
        pass

    @abstractmethod
    async def delete_reply(self, reply_id: ReplyId) -> None:
        """Delete a reply.

        Deleting an already-deleted reply is not an error.

        Args:
            reply_id: Reply ID

        Raises:
            NotFoundError: If the reply is already gone server-side
        """
        pass

    @abstractmethod
    async def toggle_upvote(self, reply_id: ReplyId) -> VoteResult:
        """Flip the current user's upvote on a reply.

        Args:
            reply_id: Reply ID

        Returns:
            Authoritative vote state after the toggle
        """
        pass
