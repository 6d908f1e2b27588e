"""Unit tests for SortController."""

import asyncio

import pytest

from debate.domain.model import ReplyPage
from debate.domain.service import (
    PaginationController,
    SortController,
    SortState,
    TreeCache,
)
from debate.domain.value import SortKey
from tests.conftest import OPINION, make_reply, settle


def make_sorting(backend, credentials):
    cache = TreeCache()
    sort_state = SortState(key=SortKey.BEST)
    pagination = PaginationController(
        reply_repository=backend,
        credentials=credentials,
        cache=cache,
        sort_state=sort_state,
        opinion=OPINION,
    )
    return SortController(sort_state, cache, pagination), pagination, cache


class TestSortController:
    """Tests for changing the sort key."""

    @pytest.mark.asyncio
    async def test_same_key_is_a_no_op(self, backend, credentials):
        sorting, _, _ = make_sorting(backend, credentials)

        assert await sorting.change(SortKey.BEST) is False
        assert backend.calls["list_top_level"] == 0

    @pytest.mark.asyncio
    async def test_change_reloads_page_one_with_new_key(self, backend, credentials):
        backend.seed(OPINION, make_reply("low", upvote_count=1))
        backend.seed(OPINION, make_reply("high", upvote_count=5))
        sorting, pagination, cache = make_sorting(backend, credentials)
        await pagination.load_first_page()

        assert await sorting.change(SortKey.TOP)

        assert sorting.key == SortKey.TOP
        assert [n.id for n in cache.top_level()] == ["high", "low"]
        assert backend.requests[-1][1][1] == 1
        assert backend.requests[-1][1][3] == SortKey.TOP

    @pytest.mark.asyncio
    async def test_list_is_cleared_while_reload_is_pending(self, backend, credentials):
        backend.seed(OPINION, make_reply("a"))
        sorting, pagination, cache = make_sorting(backend, credentials)
        await pagination.load_first_page()
        gate = backend.hold("list_top_level")

        pending = asyncio.create_task(sorting.change(SortKey.DATE))
        await settle()

        assert cache.top_level() == []
        assert not pagination.has_more_top_level()
        gate.set()
        assert await pending

    @pytest.mark.asyncio
    async def test_late_page_from_previous_key_is_dropped(self, backend, credentials):
        """A slow page for the old key must not overwrite the new key's list."""
        sorting, pagination, cache = make_sorting(backend, credentials)
        slow = backend.hold("list_top_level")
        backend.respond_next("list_top_level", ReplyPage(items=[make_reply("best")]))
        backend.respond_next("list_top_level", ReplyPage(items=[make_reply("top")]))

        best_load = asyncio.create_task(pagination.load_first_page())
        await settle()
        assert await sorting.change(SortKey.TOP)
        slow.set()

        assert await best_load is False
        assert [n.id for n in cache.top_level()] == ["top"]
        assert backend.calls["list_top_level"] == 2
