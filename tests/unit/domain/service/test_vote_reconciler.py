"""Unit tests for VoteReconciler."""

import asyncio

import pytest

from debate.domain.error import (
    ContentDeletedException,
    NetworkFailureError,
    ValidationError,
    VoteInFlightError,
)
from debate.domain.model import VoteResult
from debate.domain.service import TreeCache, VoteReconciler, optimistic_vote
from debate.domain.value import ReplyId, VoteState
from tests.conftest import OPINION, make_reply, settle


def make_reconciler(backend, credentials, **fields):
    cache = TreeCache()
    node = make_reply("r", **fields)
    backend.seed(OPINION, node)
    cache.replace_top_level([node], append=False)
    return VoteReconciler(backend, credentials, cache), cache


class TestOptimisticVote:
    """Tests for the local vote guess."""

    def test_upvote_adds_one(self):
        assert optimistic_vote(False, 6) == VoteResult(upvoted=True, upvote_count=7)

    def test_unvote_removes_one_but_not_below_zero(self):
        assert optimistic_vote(True, 0) == VoteResult(upvoted=False, upvote_count=0)


class TestToggle:
    """Tests for optimistic toggle and reconciliation."""

    @pytest.mark.asyncio
    async def test_optimistic_value_visible_then_confirmed(self, backend, credentials):
        """6 upvotes should read 7 while pending and 7 once the server agrees."""
        reconciler, cache = make_reconciler(backend, credentials, upvote_count=6)
        gate = backend.hold("toggle_upvote")

        pending = asyncio.create_task(reconciler.toggle(ReplyId("r")))
        await settle()

        node = cache.get(ReplyId("r"))
        assert node.upvoted is True
        assert node.upvote_count == 7
        assert cache.is_vote_pending(ReplyId("r"))
        assert reconciler.state(ReplyId("r")) is VoteState.PENDING

        gate.set()
        result = await pending

        assert result == VoteResult(upvoted=True, upvote_count=7)
        assert cache.get(ReplyId("r")).upvote_count == 7
        assert not cache.is_vote_pending(ReplyId("r"))
        assert reconciler.state(ReplyId("r")) is VoteState.IDLE

    @pytest.mark.asyncio
    async def test_server_values_win_over_guess(self, backend, credentials):
        reconciler, cache = make_reconciler(backend, credentials, upvote_count=6)
        backend.respond_next("toggle_upvote", VoteResult(upvoted=True, upvote_count=11))

        await reconciler.toggle(ReplyId("r"))

        assert cache.get(ReplyId("r")).upvote_count == 11

    @pytest.mark.asyncio
    async def test_failure_restores_previous_values(self, backend, credentials):
        reconciler, cache = make_reconciler(
            backend, credentials, upvoted=True, upvote_count=3
        )
        backend.fail_next("toggle_upvote", NetworkFailureError("down"))

        with pytest.raises(NetworkFailureError):
            await reconciler.toggle(ReplyId("r"))

        node = cache.get(ReplyId("r"))
        assert node.upvoted is True
        assert node.upvote_count == 3
        assert not cache.is_vote_pending(ReplyId("r"))
        assert reconciler.state(ReplyId("r")) is VoteState.IDLE

    @pytest.mark.asyncio
    async def test_second_toggle_while_pending_is_rejected(self, backend, credentials):
        """Only one toggle per reply may be in flight."""
        reconciler, cache = make_reconciler(backend, credentials, upvote_count=6)
        gate = backend.hold("toggle_upvote")

        pending = asyncio.create_task(reconciler.toggle(ReplyId("r")))
        await settle()

        with pytest.raises(VoteInFlightError):
            await reconciler.toggle(ReplyId("r"))

        gate.set()
        await pending
        assert backend.calls["toggle_upvote"] == 1
        assert cache.get(ReplyId("r")).upvote_count == 7

    @pytest.mark.asyncio
    async def test_cancelled_toggle_rolls_back(self, backend, credentials):
        reconciler, cache = make_reconciler(backend, credentials, upvote_count=2)
        backend.hold("toggle_upvote")

        pending = asyncio.create_task(reconciler.toggle(ReplyId("r")))
        await settle()
        pending.cancel()

        with pytest.raises(asyncio.CancelledError):
            await pending

        assert cache.get(ReplyId("r")).upvote_count == 2
        assert not cache.is_vote_pending(ReplyId("r"))

    @pytest.mark.asyncio
    async def test_unknown_reply_is_rejected(self, backend, credentials):
        reconciler, _ = make_reconciler(backend, credentials)

        with pytest.raises(ValidationError):
            await reconciler.toggle(ReplyId("ghost"))

    @pytest.mark.asyncio
    async def test_deleted_reply_is_rejected(self, backend, credentials):
        reconciler, _ = make_reconciler(backend, credentials, is_deleted=True)

        with pytest.raises(ContentDeletedException):
            await reconciler.toggle(ReplyId("r"))

        assert backend.calls["toggle_upvote"] == 0
