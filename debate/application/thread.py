"""Reply thread.

One ReplyThread backs one open opinion thread view. It owns the TreeCache
and the controllers around it, accepts user intents, and reports every
outcome as an IntentResult instead of raising. The view reads state back
through the read-only accessors.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import logfire

from debate.config import ReplySettings
from debate.domain.error import DomainError
from debate.domain.model import ReplyNode
from debate.domain.repository import ReplyRepository
from debate.domain.service import (
    CredentialProvider,
    MutationRouter,
    PaginationController,
    SortController,
    SortState,
    TreeCache,
    VoteReconciler,
)
from debate.domain.value import OpinionRef, ReplyId, SortKey

from .result import IntentResult


@dataclass
class ThreadSession:
    """Per-view UI state, owned by the thread rather than held globally."""

    has_loaded: bool = False
    reply_target: Optional[ReplyId] = None


class ReplyThread:
    """Reply engine for one open opinion thread."""

    def __init__(
        self,
        opinion: OpinionRef,
        reply_repository: ReplyRepository,
        credentials: CredentialProvider,
        settings: ReplySettings,
    ) -> None:
        """Initialize reply thread.

        Args:
            opinion: Opinion whose replies are shown
            reply_repository: Remote reply API
            credentials: Credential provider for auth refresh
            settings: Reply settings (page sizes, depth cap, default sort)
        """
        self.opinion = opinion
        self.cache = TreeCache()
        self.session = ThreadSession()

        self._sort_state = SortState(key=settings.default_sort)
        self.pagination = PaginationController(
            reply_repository=reply_repository,
            credentials=credentials,
            cache=self.cache,
            sort_state=self._sort_state,
            opinion=opinion,
            top_level_page_size=settings.top_level_page_size,
            child_page_size=settings.child_page_size,
            max_depth=settings.max_depth,
        )
        self.sorting = SortController(self._sort_state, self.cache, self.pagination)
        self.votes = VoteReconciler(
            reply_repository=reply_repository,
            credentials=credentials,
            cache=self.cache,
        )
        self.router = MutationRouter(
            reply_repository=reply_repository,
            credentials=credentials,
            cache=self.cache,
            vote_reconciler=self.votes,
            opinion=opinion,
            max_depth=settings.max_depth,
            max_content_length=settings.max_content_length,
        )

    # State out

    @property
    def sort_key(self) -> SortKey:
        return self.sorting.key

    @property
    def max_depth(self) -> int:
        return self.router.max_depth

    def top_level(self) -> list[ReplyNode]:
        return self.cache.top_level()

    def children_of(self, reply_id: ReplyId) -> list[ReplyNode]:
        return self.cache.children_of(reply_id)

    def is_expanded(self, reply_id: ReplyId) -> bool:
        return self.cache.is_expanded(reply_id)

    def is_vote_pending(self, reply_id: ReplyId) -> bool:
        return self.cache.is_vote_pending(reply_id)

    def is_loading_children(self, reply_id: ReplyId) -> bool:
        return self.pagination.is_loading_children(reply_id)

    def is_loading_top_level(self) -> bool:
        return self.pagination.is_loading_top_level()

    def has_more_top_level(self) -> bool:
        return self.pagination.has_more_top_level()

    def has_more_children(self, reply_id: ReplyId) -> bool:
        return self.pagination.has_more_children(reply_id)

    # Intents in

    async def open(self) -> IntentResult:
        """Load the first page once per session."""
        if self.session.has_loaded:
            return IntentResult.success(message="Already loaded")

        async def load() -> IntentResult:
            if not await self.pagination.load_first_page():
                return IntentResult.stale("Sort changed while loading")
            self.session.has_loaded = True
            return IntentResult.success()

        return await self._guard("open", load)

    async def submit_reply(
        self, content: str, reply_to_id: Optional[ReplyId] = None
    ) -> IntentResult:
        """Submit a reply to the opinion or to a reply.

        Args:
            content: Reply text
            reply_to_id: Reply being answered; defaults to the session's
                reply target, None for a top-level reply
        """
        target = reply_to_id if reply_to_id is not None else self.session.reply_target

        async def submit() -> IntentResult:
            node = await self.router.create(content, target)
            self.session.reply_target = None
            return IntentResult.success(value=node)

        return await self._guard("submit_reply", submit)

    async def toggle_expand(self, reply_id: ReplyId) -> IntentResult:
        """Show or hide the replies under a reply.

        Children are fetched on first expansion only; later toggles reuse
        the loaded list.
        """
        node = self.cache.get(reply_id)
        if node is None:
            return IntentResult.rejected(f"Reply {reply_id} is not loaded")

        if self.cache.is_expanded(reply_id):
            self.cache.set_expanded(reply_id, False)
            return IntentResult.success(value=False)

        if self.cache.set_expanded(reply_id, True):
            return IntentResult.success(value=True)

        if node.child_count == 0:
            return IntentResult.rejected(f"Reply {reply_id} has no replies")

        async def expand() -> IntentResult:
            if not await self.pagination.load_children(reply_id):
                return IntentResult.stale(f"Reply {reply_id} left the thread")
            self.cache.set_expanded(reply_id, True)
            return IntentResult.success(value=True)

        return await self._guard("toggle_expand", expand)

    async def toggle_upvote(self, reply_id: ReplyId) -> IntentResult:
        """Toggle the current user's upvote on a reply."""

        async def vote() -> IntentResult:
            return IntentResult.success(value=await self.router.vote(reply_id))

        return await self._guard("toggle_upvote", vote)

    async def delete_reply(self, reply_id: ReplyId) -> IntentResult:
        """Delete one of the current user's replies."""

        async def delete() -> IntentResult:
            outcome = await self.router.delete(reply_id)
            if self.session.reply_target == reply_id:
                self.session.reply_target = None
            return IntentResult.success(value=outcome)

        return await self._guard("delete_reply", delete)

    async def edit_reply(self, reply_id: ReplyId, content: str) -> IntentResult:
        """Replace the text of one of the current user's replies."""

        async def edit() -> IntentResult:
            return IntentResult.success(value=await self.router.edit(reply_id, content))

        return await self._guard("edit_reply", edit)

    async def change_sort(self, key: SortKey) -> IntentResult:
        """Switch the reply ordering and reload from page 1.

        Choosing the current key again retries page 1 if the last reload
        failed and left the list empty.
        """
        if key == self.sorting.key:
            if self.session.has_loaded or self.pagination.top_level_page > 0:
                return IntentResult.success(value=False, message="Sort unchanged")
            return await self.open()

        async def change() -> IntentResult:
            # open() must refetch if this reload fails
            self.session.has_loaded = False
            if not await self.sorting.change(key):
                return IntentResult.stale(f"Sort changed again before {key.value} loaded")
            self.session.has_loaded = True
            return IntentResult.success(value=True)

        return await self._guard("change_sort", change)

    async def load_more_top_level(self) -> IntentResult:
        """Load the next page of top-level replies, if any."""
        if not self.pagination.has_more_top_level():
            return IntentResult.success(value=False, message="No more replies")

        async def load_more() -> IntentResult:
            if not await self.pagination.load_next_page():
                return IntentResult.stale("Sort changed while loading")
            return IntentResult.success(value=True)

        return await self._guard("load_more_top_level", load_more)

    async def load_more_children(self, reply_id: ReplyId) -> IntentResult:
        """Load the next page of replies under a reply, if any."""
        if not self.pagination.has_more_children(reply_id):
            return IntentResult.success(value=False, message="No more replies")

        async def load_more() -> IntentResult:
            if not await self.pagination.load_more_children(reply_id):
                return IntentResult.stale(f"Reply {reply_id} left the thread")
            return IntentResult.success(value=True)

        return await self._guard("load_more_children", load_more)

    def start_reply_to(self, reply_id: ReplyId) -> IntentResult:
        """Make a reply the target of the next submission."""
        try:
            self.router.validate_reply_target(reply_id)
        except DomainError as e:
            return IntentResult.from_error(e)

        self.session.reply_target = reply_id
        return IntentResult.success(value=reply_id)

    def cancel_reply_to(self) -> None:
        self.session.reply_target = None

    def close(self) -> None:
        """Discard all thread state when the view closes."""
        self.cache.clear()
        self.session = ThreadSession()

    async def _guard(
        self, intent: str, operation: Callable[[], Awaitable[IntentResult]]
    ) -> IntentResult:
        """Run an intent and turn domain errors into a result."""
        try:
            return await operation()
        except DomainError as e:
            result = IntentResult.from_error(e)
            logfire.info(
                "Reply intent not applied",
                intent=intent,
                status=result.status.value,
                error_kind=result.error_kind.value if result.error_kind else None,
                error=str(e),
            )
            return result


class ReplyThreadFactory:
    """Builds a fresh ReplyThread for each opened thread view."""

    def __init__(
        self,
        reply_repository: ReplyRepository,
        credentials: CredentialProvider,
        settings: ReplySettings,
    ) -> None:
        self.reply_repository = reply_repository
        self.credentials = credentials
        self.settings = settings

    def create(self, opinion: OpinionRef) -> ReplyThread:
        """Create an unloaded thread; call ``open()`` to fetch page 1."""
        return ReplyThread(
            opinion=opinion,
            reply_repository=self.reply_repository,
            credentials=self.credentials,
            settings=self.settings,
        )
