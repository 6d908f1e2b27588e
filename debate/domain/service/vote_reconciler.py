"""Vote reconciler.

Upvote toggles are applied optimistically and then reconciled with the
server. Each reply moves through an explicit state machine:

    IDLE -> PENDING -> CONFIRMED -> IDLE
                    -> ROLLED_BACK -> IDLE

Only one toggle per reply may be PENDING; a second one is rejected, not
queued.
"""

import asyncio

import logfire

from debate.domain.error import (
    BusinessRuleViolationError,
    ContentDeletedException,
    ValidationError,
    VoteInFlightError,
)
from debate.domain.model import VoteResult
from debate.domain.repository import ReplyRepository
from debate.domain.value import ReplyId, VoteState

from .auth import CredentialProvider, with_auth_retry
from .base import Service
from .tree_cache import TreeCache

_TRANSITIONS: dict[VoteState, set[VoteState]] = {
    VoteState.IDLE: {VoteState.PENDING},
    VoteState.PENDING: {VoteState.CONFIRMED, VoteState.ROLLED_BACK},
    VoteState.CONFIRMED: {VoteState.IDLE},
    VoteState.ROLLED_BACK: {VoteState.IDLE},
}


def optimistic_vote(upvoted: bool, count: int) -> VoteResult:
    """Local guess at the vote state after a toggle."""
    flipped = not upvoted
    return VoteResult(
        upvoted=flipped,
        upvote_count=count + 1 if flipped else max(0, count - 1),
    )


class VoteReconciler(Service):
    """Domain service for optimistic upvote toggling."""

    def __init__(
        self,
        reply_repository: ReplyRepository,
        credentials: CredentialProvider,
        cache: TreeCache,
    ) -> None:
        """Initialize vote reconciler.

        Args:
            reply_repository: Remote reply API
            credentials: Credential provider for auth refresh
            cache: Tree cache owned by the thread
        """
        self.reply_repository = reply_repository
        self.credentials = credentials
        self.cache = cache
        self._states: dict[ReplyId, VoteState] = {}

    def state(self, reply_id: ReplyId) -> VoteState:
        return self._states.get(reply_id, VoteState.IDLE)

    async def toggle(self, reply_id: ReplyId) -> VoteResult:
        """Toggle the current user's upvote on a reply.

        The optimistic result is in the cache before the request leaves.
        On success the server's values replace it; on failure the previous
        values are restored exactly.

        Args:
            reply_id: Reply ID

        Returns:
            Vote state confirmed by the server

        Raises:
            ValidationError: If the reply is not loaded
            ContentDeletedException: If the reply is deleted
            VoteInFlightError: If a toggle for this reply is still pending
            ReplyApiError: If the request fails (after rollback)
        """
        node = self.cache.get(reply_id)
        if node is None:
            raise ValidationError(f"Reply {reply_id} is not loaded")
        if node.is_deleted:
            raise ContentDeletedException("reply", reply_id)
        if self.state(reply_id) is not VoteState.IDLE or not self.cache.begin_vote(
            reply_id
        ):
            logfire.info("Vote toggle rejected, already in flight", reply_id=reply_id)
            raise VoteInFlightError(reply_id)

        self._transition(reply_id, VoteState.PENDING)
        previous = VoteResult(upvoted=node.upvoted, upvote_count=node.upvote_count)
        optimistic = optimistic_vote(node.upvoted, node.upvote_count)
        self.cache.apply_vote(reply_id, optimistic.upvoted, optimistic.upvote_count)

        try:
            with logfire.span(
                "vote_reconciler.toggle",
                reply_id=reply_id,
                optimistic_upvoted=optimistic.upvoted,
            ):
                result = await with_auth_retry(
                    lambda: self.reply_repository.toggle_upvote(reply_id),
                    self.credentials,
                    "toggle_upvote",
                )
        except (Exception, asyncio.CancelledError) as e:
            self.cache.apply_vote(reply_id, previous.upvoted, previous.upvote_count)
            self._transition(reply_id, VoteState.ROLLED_BACK)
            logfire.warn(
                "Vote rolled back",
                reply_id=reply_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        else:
            self.cache.apply_vote(reply_id, result.upvoted, result.upvote_count)
            self._transition(reply_id, VoteState.CONFIRMED)
            if result != optimistic:
                logfire.info(
                    "Server vote differs from optimistic guess",
                    reply_id=reply_id,
                    upvoted=result.upvoted,
                    upvote_count=result.upvote_count,
                )
            return result
        finally:
            self._transition(reply_id, VoteState.IDLE)
            self.cache.end_vote(reply_id)

    def _transition(self, reply_id: ReplyId, new_state: VoteState) -> None:
        current = self.state(reply_id)
        if new_state not in _TRANSITIONS[current]:
            raise BusinessRuleViolationError(
                f"Illegal vote transition for {reply_id}: {current.value} -> {new_state.value}"
            )
        if new_state is VoteState.IDLE:
            self._states.pop(reply_id, None)
        else:
            self._states[reply_id] = new_state
