"""Pagination controller.

Two independent pagination scopes feed the TreeCache: the top-level list
(paged by page number under the active sort key) and, per parent, that
parent's children. Identical fetches share one in-flight request.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import logfire

from debate.domain.error import ValidationError
from debate.domain.model import MAX_DEPTH, ReplyNode
from debate.domain.repository import ReplyRepository
from debate.domain.value import OpinionRef, ReplyId, SortKey

from .auth import CredentialProvider, with_auth_retry
from .base import Service
from .sort_controller import SortState
from .tree_cache import TreeCache

ScopeKey = tuple


def place(node: ReplyNode, parent_id: Optional[ReplyId], depth: int) -> ReplyNode:
    """Pin a fetched reply to its position in the tree."""
    return node.model_copy(update={"parent_id": parent_id, "depth": depth})


class PaginationController(Service):
    """Drives top-level and per-parent child fetches for one thread."""

    def __init__(
        self,
        reply_repository: ReplyRepository,
        credentials: CredentialProvider,
        cache: TreeCache,
        sort_state: SortState,
        opinion: OpinionRef,
        top_level_page_size: int = 20,
        child_page_size: int = 50,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        """Initialize pagination controller.

        Args:
            reply_repository: Remote reply API
            credentials: Credential provider for auth refresh
            cache: Tree cache owned by the thread
            sort_state: Active sort key shared with the sort controller
            opinion: Opinion whose replies are listed
            top_level_page_size: Top-level replies per page
            child_page_size: Child replies per page
            max_depth: Depth whose replies have no loadable children
        """
        self.reply_repository = reply_repository
        self.credentials = credentials
        self.cache = cache
        self.sort_state = sort_state
        self.opinion = opinion
        self.top_level_page_size = top_level_page_size
        self.child_page_size = child_page_size
        self.max_depth = max_depth

        self._top_level_page = 0
        self._top_level_has_more = False
        self._child_pages: dict[ReplyId, int] = {}
        self._child_has_more: dict[ReplyId, bool] = {}
        self._in_flight: dict[ScopeKey, asyncio.Task] = {}

    @property
    def top_level_page(self) -> int:
        return self._top_level_page

    def has_more_top_level(self) -> bool:
        return self._top_level_has_more

    def has_more_children(self, reply_id: ReplyId) -> bool:
        return self._child_has_more.get(reply_id, False)

    def is_loading_top_level(self) -> bool:
        return any(key[0] == "top" for key in self._in_flight)

    def is_loading_children(self, reply_id: ReplyId) -> bool:
        return any(
            key[0] == "children" and key[1] == reply_id for key in self._in_flight
        )

    def reset_top_level(self) -> None:
        """Forget top-level progress so the next load starts at page 1."""
        self._top_level_page = 0
        self._top_level_has_more = False

    async def load_first_page(self) -> bool:
        """Load (or reload) page 1 of the top-level list."""
        return await self.load_top_level(1)

    async def load_next_page(self) -> bool:
        """Load the next top-level page if the server reported one.

        Returns:
            True if a page was applied
        """
        if not self._top_level_has_more:
            return False
        return await self.load_top_level(self._top_level_page + 1)

    async def load_top_level(self, page: int) -> bool:
        """Fetch a top-level page and fold it into the cache.

        Page 1 replaces the list, later pages append to it.

        Args:
            page: 1-based page number

        Returns:
            True if the page was applied, False if it arrived after a sort
            change and was discarded

        Raises:
            ReplyApiError: If the request fails (cache left unchanged)
        """
        sort_key = self.sort_state.key
        epoch = self.sort_state.epoch
        return await self._single_flight(
            ("top", epoch, page),
            lambda: self._fetch_top_level(page, sort_key, epoch),
        )

    async def load_children(self, reply_id: ReplyId, page: int = 1) -> bool:
        """Fetch a page of children for a reply and fold it into the cache.

        Args:
            reply_id: Parent reply ID
            page: 1-based page number (1 replaces the loaded children)

        Returns:
            True if the page was applied, False if the parent left the cache
            while the request was in flight

        Raises:
            ValidationError: If the parent is unknown or sits at the depth cap
            ReplyApiError: If the request fails (cache left unchanged)
        """
        parent = self.cache.get(reply_id)
        if parent is None:
            raise ValidationError(f"Reply {reply_id} is not loaded")
        if parent.depth >= self.max_depth:
            raise ValidationError(
                f"Reply {reply_id} is at depth {parent.depth} and has no loadable replies"
            )

        sort_key = self.sort_state.key
        depth = parent.depth + 1
        return await self._single_flight(
            ("children", reply_id, page),
            lambda: self._fetch_children(reply_id, page, sort_key, depth),
        )

    async def load_more_children(self, reply_id: ReplyId) -> bool:
        """Load the next page of children if the server reported one."""
        if not self.has_more_children(reply_id):
            return False
        return await self.load_children(
            reply_id, self._child_pages.get(reply_id, 0) + 1
        )

    async def _fetch_top_level(self, page: int, sort_key: SortKey, epoch: int) -> bool:
        with logfire.span(
            "pagination.load_top_level",
            page=page,
            sort_key=sort_key.value,
            participant_user_id=self.opinion.participant_user_id,
        ):
            result = await with_auth_retry(
                lambda: self.reply_repository.list_top_level(
                    self.opinion, page, self.top_level_page_size, sort_key
                ),
                self.credentials,
                "list_top_level",
            )

            if self.sort_state.epoch != epoch or self.sort_state.key != sort_key:
                logfire.info(
                    "Discarding stale top-level page",
                    page=page,
                    requested_sort=sort_key.value,
                    current_sort=self.sort_state.key.value,
                )
                return False

            nodes = [place(node, None, 0) for node in result.items]
            self.cache.replace_top_level(nodes, append=page > 1)
            self._top_level_page = page
            self._top_level_has_more = result.has_next_page

            logfire.info(
                "Top-level page applied",
                page=page,
                count=len(nodes),
                has_next_page=result.has_next_page,
            )
            return True

    async def _fetch_children(
        self, reply_id: ReplyId, page: int, sort_key: SortKey, depth: int
    ) -> bool:
        with logfire.span(
            "pagination.load_children",
            parent_id=reply_id,
            page=page,
            sort_key=sort_key.value,
        ):
            result = await with_auth_retry(
                lambda: self.reply_repository.list_children(
                    reply_id, page, self.child_page_size, sort_key
                ),
                self.credentials,
                "list_children",
            )

            if not self.cache.contains(reply_id):
                logfire.info("Discarding children of removed reply", parent_id=reply_id)
                return False

            nodes = [place(node, reply_id, depth) for node in result.items]
            self.cache.set_children(reply_id, nodes, append=page > 1)
            self._child_pages[reply_id] = page
            self._child_has_more[reply_id] = result.has_next_page

            logfire.info(
                "Child page applied",
                parent_id=reply_id,
                page=page,
                count=len(nodes),
                has_next_page=result.has_next_page,
            )
            return True

    async def _single_flight(
        self, key: ScopeKey, fetch: Callable[[], Awaitable[bool]]
    ) -> bool:
        """Run a fetch unless an identical one is already in flight.

        Late callers await the in-flight task, so they see its outcome
        (including its error) without issuing a second request.
        """
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(fetch())
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logfire.info("Joining in-flight fetch", scope=str(key))

        return await asyncio.shield(task)

    def _forget(self, key: ScopeKey, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
