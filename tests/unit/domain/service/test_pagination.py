"""Unit tests for PaginationController."""

import asyncio

import pytest

from debate.domain.error import NetworkFailureError, ValidationError
from debate.domain.model import ReplyPage
from debate.domain.service import PaginationController, SortState, TreeCache
from debate.domain.value import ReplyId, SortKey
from tests.conftest import OPINION, make_reply, settle


def make_controller(backend, credentials, page_size: int = 2):
    cache = TreeCache()
    sort_state = SortState(key=SortKey.DATE)
    controller = PaginationController(
        reply_repository=backend,
        credentials=credentials,
        cache=cache,
        sort_state=sort_state,
        opinion=OPINION,
        top_level_page_size=page_size,
        child_page_size=50,
    )
    return controller, cache, sort_state


def seed_top_level(backend, count: int) -> None:
    # Newest first under DATE: r0 is the newest
    for i in range(count):
        backend.seed(OPINION, make_reply(f"r{i}", minutes_old=i))


class TestTopLevel:
    """Tests for top-level paging."""

    @pytest.mark.asyncio
    async def test_first_page_then_next_page_appends(self, backend, credentials):
        seed_top_level(backend, 3)
        controller, cache, _ = make_controller(backend, credentials)

        assert await controller.load_first_page()
        assert [n.id for n in cache.top_level()] == ["r0", "r1"]
        assert controller.has_more_top_level()

        assert await controller.load_next_page()
        assert [n.id for n in cache.top_level()] == ["r0", "r1", "r2"]
        assert controller.top_level_page == 2
        assert not controller.has_more_top_level()

    @pytest.mark.asyncio
    async def test_next_page_without_more_is_a_no_op(self, backend, credentials):
        seed_top_level(backend, 1)
        controller, _, _ = make_controller(backend, credentials)
        await controller.load_first_page()

        assert await controller.load_next_page() is False
        assert backend.calls["list_top_level"] == 1

    @pytest.mark.asyncio
    async def test_fetched_replies_are_pinned_to_depth_zero(self, backend, credentials):
        backend.respond_next(
            "list_top_level",
            ReplyPage(items=[make_reply("x", parent_id="bogus", depth=2)]),
        )
        controller, cache, _ = make_controller(backend, credentials)

        await controller.load_first_page()

        node = cache.get(ReplyId("x"))
        assert node.depth == 0
        assert node.parent_id is None

    @pytest.mark.asyncio
    async def test_failure_leaves_cache_unchanged(self, backend, credentials):
        seed_top_level(backend, 2)
        controller, cache, _ = make_controller(backend, credentials)
        await controller.load_first_page()
        backend.fail_next("list_top_level", NetworkFailureError("down"))

        with pytest.raises(NetworkFailureError):
            await controller.load_first_page()

        assert [n.id for n in cache.top_level()] == ["r0", "r1"]
        assert not controller.is_loading_top_level()

    @pytest.mark.asyncio
    async def test_identical_requests_share_one_fetch(self, backend, credentials):
        seed_top_level(backend, 2)
        controller, cache, _ = make_controller(backend, credentials)
        gate = backend.hold("list_top_level")

        first = asyncio.create_task(controller.load_first_page())
        second = asyncio.create_task(controller.load_first_page())
        await settle()
        assert controller.is_loading_top_level()
        gate.set()

        assert await first and await second
        assert backend.calls["list_top_level"] == 1
        assert [n.id for n in cache.top_level()] == ["r0", "r1"]

    @pytest.mark.asyncio
    async def test_page_arriving_after_epoch_bump_is_discarded(self, backend, credentials):
        seed_top_level(backend, 2)
        controller, cache, sort_state = make_controller(backend, credentials)
        gate = backend.hold("list_top_level")

        pending = asyncio.create_task(controller.load_first_page())
        await settle()
        sort_state.epoch += 1
        gate.set()

        assert await pending is False
        assert cache.top_level() == []


class TestChildren:
    """Tests for per-parent child paging."""

    @pytest.mark.asyncio
    async def test_children_are_placed_one_level_below_parent(self, backend, credentials):
        backend.seed(OPINION, make_reply("p"))
        backend.seed(OPINION, make_reply("c", "p", 1))
        controller, cache, _ = make_controller(backend, credentials)
        await controller.load_first_page()

        assert await controller.load_children(ReplyId("p"))

        children = cache.children_of(ReplyId("p"))
        assert [c.id for c in children] == ["c"]
        assert children[0].depth == 1
        assert children[0].parent_id == "p"
        assert cache.has_fetched_children(ReplyId("p"))

    @pytest.mark.asyncio
    async def test_children_use_the_active_sort_key(self, backend, credentials):
        backend.seed(OPINION, make_reply("p"))
        controller, _, sort_state = make_controller(backend, credentials)
        await controller.load_first_page()
        sort_state.key = SortKey.TOP

        await controller.load_children(ReplyId("p"))

        method, args = backend.requests[-1]
        assert method == "list_children"
        assert args[3] == SortKey.TOP

    @pytest.mark.asyncio
    async def test_unknown_parent_is_rejected(self, backend, credentials):
        controller, _, _ = make_controller(backend, credentials)

        with pytest.raises(ValidationError):
            await controller.load_children(ReplyId("ghost"))

        assert backend.calls["list_children"] == 0

    @pytest.mark.asyncio
    async def test_parent_at_depth_cap_is_rejected(self, backend, credentials):
        controller, cache, _ = make_controller(backend, credentials)
        cache.replace_top_level([make_reply("p")], append=False)
        cache.set_children(ReplyId("p"), [make_reply("c", "p", 1)], append=False)
        cache.set_children(ReplyId("c"), [make_reply("g", "c", 2)], append=False)

        with pytest.raises(ValidationError):
            await controller.load_children(ReplyId("g"))

    @pytest.mark.asyncio
    async def test_children_of_removed_parent_are_discarded(self, backend, credentials):
        backend.seed(OPINION, make_reply("p"))
        backend.seed(OPINION, make_reply("c", "p", 1))
        controller, cache, _ = make_controller(backend, credentials)
        await controller.load_first_page()
        gate = backend.hold("list_children")

        pending = asyncio.create_task(controller.load_children(ReplyId("p")))
        await settle()
        assert controller.is_loading_children(ReplyId("p"))
        cache.remove_node(ReplyId("p"))
        gate.set()

        assert await pending is False
        assert cache.get(ReplyId("c")) is None

    @pytest.mark.asyncio
    async def test_load_more_children_appends_next_page(self, backend, credentials):
        controller, cache, _ = make_controller(backend, credentials)
        cache.replace_top_level([make_reply("p", child_count=3)], append=False)
        backend.respond_next(
            "list_children",
            ReplyPage(items=[make_reply("c1"), make_reply("c2")], has_next_page=True),
        )
        backend.respond_next(
            "list_children", ReplyPage(items=[make_reply("c3")], page=2)
        )

        await controller.load_children(ReplyId("p"))
        assert controller.has_more_children(ReplyId("p"))
        assert await controller.load_more_children(ReplyId("p"))

        assert [c.id for c in cache.children_of(ReplyId("p"))] == ["c1", "c2", "c3"]
        assert not controller.has_more_children(ReplyId("p"))
        assert backend.requests[-1][1][1] == 2
