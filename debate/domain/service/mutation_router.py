"""Mutation router.

Validates write intents against the cached tree, performs the remote call
and folds the result back into the right place in the TreeCache.
"""

from typing import Optional

import logfire

from debate.domain.error import (
    ContentDeletedException,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from debate.domain.model import MAX_DEPTH, ReplyNode, VoteResult
from debate.domain.repository import ReplyRepository
from debate.domain.value import DeleteOutcome, OpinionRef, ReplyId

from .auth import CredentialProvider, with_auth_retry
from .base import Service
from .pagination import place
from .tree_cache import TreeCache
from .vote_reconciler import VoteReconciler


class MutationRouter(Service):
    """Domain service routing create/edit/delete/vote outcomes into the cache."""

    def __init__(
        self,
        reply_repository: ReplyRepository,
        credentials: CredentialProvider,
        cache: TreeCache,
        vote_reconciler: VoteReconciler,
        opinion: OpinionRef,
        max_depth: int = MAX_DEPTH,
        max_content_length: int = 10000,
    ) -> None:
        """Initialize mutation router.

        Args:
            reply_repository: Remote reply API
            credentials: Credential provider for auth refresh
            cache: Tree cache owned by the thread
            vote_reconciler: Vote reconciler for upvote toggles
            opinion: Opinion the thread belongs to
            max_depth: Deepest depth a reply may be created at
            max_content_length: Maximum reply length in characters
        """
        self.reply_repository = reply_repository
        self.credentials = credentials
        self.cache = cache
        self.vote_reconciler = vote_reconciler
        self.opinion = opinion
        self.max_depth = max_depth
        self.max_content_length = max_content_length

    def validate_content(self, content: str) -> str:
        """Trim reply text and check its length.

        Raises:
            ValidationError: If the text is empty or too long
        """
        text = content.strip()
        if not text:
            raise ValidationError("Reply text must not be empty")
        if len(text) > self.max_content_length:
            raise ValidationError(
                f"Reply text must be at most {self.max_content_length} characters"
            )
        return text

    def validate_reply_target(self, parent_id: Optional[ReplyId]) -> Optional[ReplyNode]:
        """Check that a reply may be submitted against a parent.

        Args:
            parent_id: Parent reply ID (None for a top-level reply)

        Returns:
            The parent reply, or None for a top-level reply

        Raises:
            ValidationError: If the parent is unknown or at the depth cap
            ContentDeletedException: If the parent is deleted
        """
        if parent_id is None:
            return None

        parent = self.cache.get(parent_id)
        if parent is None:
            raise ValidationError(f"Reply {parent_id} is not loaded")
        if parent.is_deleted:
            raise ContentDeletedException("reply", parent_id)
        if parent.depth >= self.max_depth:
            raise ValidationError(
                f"Reply {parent_id} is at depth {parent.depth} and cannot be replied to"
            )
        return parent

    async def create(
        self, content: str, parent_id: Optional[ReplyId] = None
    ) -> ReplyNode:
        """Create a reply and insert the server's echo into the cache.

        Args:
            content: Reply text
            parent_id: Parent reply ID (None for top-level)

        Returns:
            The created reply as placed in the cache

        Raises:
            ValidationError: If the text or target is invalid (no request made)
            ContentDeletedException: If the parent is deleted (no request made)
            ReplyApiError: If the request fails
        """
        text = self.validate_content(content)
        parent = self.validate_reply_target(parent_id)

        with logfire.span(
            "mutation_router.create",
            parent_id=parent_id,
            text_length=len(text),
        ):
            created = await with_auth_retry(
                lambda: self.reply_repository.create_reply(self.opinion, text, parent_id),
                self.credentials,
                "create_reply",
            )

            depth = parent.depth + 1 if parent is not None else 0
            node = place(created, parent_id, depth)
            self.cache.insert_created(node, parent_id)

            logfire.info(
                "Reply created",
                reply_id=node.id,
                parent_id=parent_id,
                depth=depth,
            )
            return node

    async def edit(self, reply_id: ReplyId, content: str) -> ReplyNode:
        """Replace the text of one of the current user's replies.

        Args:
            reply_id: Reply ID
            content: New text

        Returns:
            The updated reply as cached

        Raises:
            ValidationError: If the text is invalid or the reply not loaded
            NotAuthorizedError: If the current user does not own the reply
            ContentDeletedException: If the reply is deleted
            ReplyApiError: If the request fails
        """
        node = self._owned(reply_id)
        text = self.validate_content(content)

        with logfire.span("mutation_router.edit", reply_id=reply_id):
            updated = await with_auth_retry(
                lambda: self.reply_repository.update_reply(reply_id, text),
                self.credentials,
                "update_reply",
            )

            if not self.cache.apply_edit(reply_id, updated.content, updated.updated_at):
                logfire.info("Edited reply left the tree", reply_id=reply_id)
                return place(updated, node.parent_id, node.depth)

            logfire.info("Reply edited", reply_id=reply_id, text_length=len(text))
            return self.cache.get(reply_id)

    async def delete(self, reply_id: ReplyId) -> DeleteOutcome:
        """Delete one of the current user's replies.

        A reply that still has children becomes a tombstone; a childless one
        is removed from its list and its parent's child_count drops by one.
        A reply already gone server-side counts as deleted.

        Args:
            reply_id: Reply ID

        Returns:
            How the deletion was applied locally

        Raises:
            ValidationError: If the reply is not loaded
            NotAuthorizedError: If the current user does not own the reply
            ContentDeletedException: If the reply is already deleted
            ReplyApiError: If the request fails
        """
        self._owned(reply_id)

        with logfire.span("mutation_router.delete", reply_id=reply_id):
            try:
                await with_auth_retry(
                    lambda: self.reply_repository.delete_reply(reply_id),
                    self.credentials,
                    "delete_reply",
                )
            except NotFoundError:
                logfire.info("Reply already gone server-side", reply_id=reply_id)

            # Re-read: the reply may have changed or left while we waited
            node = self.cache.get(reply_id)
            if node is None:
                return DeleteOutcome.ALREADY_GONE

            if node.child_count > 0:
                self.cache.tombstone(reply_id)
                outcome = DeleteOutcome.TOMBSTONED
            else:
                self.cache.remove_node(reply_id)
                outcome = DeleteOutcome.REMOVED

            logfire.info(
                "Reply deleted",
                reply_id=reply_id,
                parent_id=node.parent_id,
                outcome=outcome.value,
            )
            return outcome

    async def vote(self, reply_id: ReplyId) -> VoteResult:
        """Toggle the current user's upvote; see VoteReconciler.toggle."""
        return await self.vote_reconciler.toggle(reply_id)

    def _owned(self, reply_id: ReplyId) -> ReplyNode:
        node = self.cache.get(reply_id)
        if node is None:
            raise ValidationError(f"Reply {reply_id} is not loaded")
        if not node.is_owner:
            raise NotAuthorizedError("reply", reply_id)
        if node.is_deleted:
            raise ContentDeletedException("reply", reply_id)
        return node
