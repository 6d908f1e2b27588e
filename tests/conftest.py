"""Test configuration and fixtures."""

import asyncio
from collections import Counter, defaultdict, deque
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from debate.adapter.http import TokenCredentialProvider
from debate.adapter.inmemory import InMemoryReplyRepository
from debate.config import ReplySettings
from debate.domain.model import Author, ReplyNode
from debate.domain.value import DebateRoomId, OpinionRef, ReplyId, UserId

OPINION = OpinionRef(
    debate_room_id=DebateRoomId("room-1"),
    participant_user_id=UserId("participant-1"),
)

NOW = datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc)


def make_author(user_id: str = "author-1", username: str = "alice") -> Author:
    """Helper to build a reply author."""
    return Author(id=UserId(user_id), username=username)


def make_reply(
    reply_id: str,
    parent_id: str | None = None,
    depth: int = 0,
    content: str | None = None,
    author: Author | None = None,
    minutes_old: int = 0,
    **fields: Any,
) -> ReplyNode:
    """Helper to build a reply.

    Extra keyword arguments are passed straight to ReplyNode (upvote_count,
    child_count, is_owner, ...).
    """
    fields.setdefault("created_at", NOW - timedelta(minutes=minutes_old))
    fields.setdefault("updated_at", fields["created_at"])
    return ReplyNode(
        id=ReplyId(reply_id),
        parent_id=ReplyId(parent_id) if parent_id else None,
        depth=depth,
        content=content if content is not None else f"Reply {reply_id}",
        author=author or make_author(),
        **fields,
    )


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run up to their next await."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ScriptedReplyRepository(InMemoryReplyRepository):
    """In-memory backend whose calls can be counted, held, failed or faked.

    Scripts are consumed per method in call order:

        gate = backend.hold("toggle_upvote")   # next call waits for gate.set()
        backend.fail_next("toggle_upvote", NetworkFailureError("down"))
        backend.respond_next("list_top_level", ReplyPage(...))
    """

    def __init__(self, current_user: Optional[Author] = None) -> None:
        super().__init__(current_user)
        self.calls: Counter[str] = Counter()
        self.requests: list[tuple[str, tuple]] = []
        self._gates: defaultdict[str, deque[asyncio.Event]] = defaultdict(deque)
        self._failures: defaultdict[str, deque[Exception]] = defaultdict(deque)
        self._responses: defaultdict[str, deque[Any]] = defaultdict(deque)

    def hold(self, method: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[method].append(gate)
        return gate

    def fail_next(self, method: str, error: Exception) -> None:
        self._failures[method].append(error)

    def respond_next(self, method: str, value: Any) -> None:
        self._responses[method].append(value)

    async def _script(self, method: str, *args: Any) -> tuple[bool, Any]:
        self.calls[method] += 1
        self.requests.append((method, args))

        # Bind this call's script now so a held call keeps its own response
        gate = self._gates[method].popleft() if self._gates[method] else None
        failure = self._failures[method].popleft() if self._failures[method] else None
        scripted = bool(self._responses[method])
        response = self._responses[method].popleft() if scripted else None

        if gate is not None:
            await gate.wait()
        if failure is not None:
            raise failure
        return scripted, response

    async def list_top_level(self, opinion, page, page_size, sort_key):
        scripted, value = await self._script(
            "list_top_level", opinion, page, page_size, sort_key
        )
        if scripted:
            return value
        return await super().list_top_level(opinion, page, page_size, sort_key)

    async def list_children(self, reply_id, page, page_size, sort_key):
        scripted, value = await self._script(
            "list_children", reply_id, page, page_size, sort_key
        )
        if scripted:
            return value
        return await super().list_children(reply_id, page, page_size, sort_key)

    async def create_reply(self, opinion, content, parent_id=None):
        scripted, value = await self._script("create_reply", opinion, content, parent_id)
        if scripted:
            return value
        return await super().create_reply(opinion, content, parent_id)

    async def update_reply(self, reply_id, content):
        scripted, value = await self._script("update_reply", reply_id, content)
        if scripted:
            return value
        return await super().update_reply(reply_id, content)

    async def delete_reply(self, reply_id):
        scripted, value = await self._script("delete_reply", reply_id)
        if scripted:
            return value
        return await super().delete_reply(reply_id)

    async def toggle_upvote(self, reply_id):
        scripted, value = await self._script("toggle_upvote", reply_id)
        if scripted:
            return value
        return await super().toggle_upvote(reply_id)


class CountingCredentials(TokenCredentialProvider):
    """Token credentials that count refreshes."""

    def __init__(self, token: str = "token-1") -> None:
        self.refreshes = 0
        super().__init__(token=token, refresher=self._next_token)

    async def _next_token(self) -> str:
        self.refreshes += 1
        return f"token-{self.refreshes + 1}"


@pytest.fixture
def backend() -> ScriptedReplyRepository:
    return ScriptedReplyRepository()


@pytest.fixture
def credentials() -> CountingCredentials:
    return CountingCredentials()


@pytest.fixture
def reply_settings() -> ReplySettings:
    return ReplySettings(top_level_page_size=2, child_page_size=50)
