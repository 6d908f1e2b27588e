"""Wire format of the opinion reply API.

Responses use the envelope ``{"data": ..., "meta": {...}}`` with camelCase
keys; a bare body is read as the envelope's data. It is validated once here
so the rest of the engine only ever sees domain models.
"""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from debate.domain.error import NetworkFailureError
from debate.domain.model import Author, ReplyNode, ReplyPage, VoteResult
from debate.domain.value import ReplyId, UserId

T = TypeVar("T")


class WireModel(BaseModel):
    """Base for API payloads (camelCase on the wire, snake_case in Python)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class UserPayload(WireModel):
    """Reply author as sent by the API."""

    id: str
    username: str
    image: Optional[str] = None


class ReplyPayload(WireModel):
    """A single reply as sent by the API."""

    id: str
    content: str = ""
    user: UserPayload
    created_at: datetime
    updated_at: Optional[datetime] = None
    upvotes: int = 0
    is_upvoted: bool = False
    is_edited: bool = False
    is_owner: bool = False
    is_deleted: bool = False
    child_replies_count: int = 0
    parent_reply_id: Optional[str] = None

    def to_domain(self) -> ReplyNode:
        """Convert to a ReplyNode.

        Depth defaults to 0; the pagination controller and mutation router
        pin the real position when the reply enters the tree.
        """
        return ReplyNode(
            id=ReplyId(self.id),
            parent_id=ReplyId(self.parent_reply_id) if self.parent_reply_id else None,
            content="" if self.is_deleted else self.content,
            is_deleted=self.is_deleted,
            author=Author(
                id=UserId(self.user.id),
                username=self.user.username,
                image=self.user.image,
            ),
            created_at=self.created_at,
            updated_at=self.updated_at or self.created_at,
            is_edited=self.is_edited,
            upvoted=self.is_upvoted,
            upvote_count=max(0, self.upvotes),
            child_count=max(0, self.child_replies_count),
            is_owner=self.is_owner,
        )


class PageMeta(WireModel):
    """Pagination metadata."""

    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False


class UpvotePayload(WireModel):
    """Vote state after a toggle."""

    upvoted: bool
    upvote_count: int

    def to_domain(self) -> VoteResult:
        return VoteResult(upvoted=self.upvoted, upvote_count=max(0, self.upvote_count))


class Envelope(WireModel, Generic[T]):
    """Response envelope shared by every endpoint."""

    data: T
    meta: Optional[PageMeta] = None

    @model_validator(mode="before")
    @classmethod
    def wrap_bare_body(cls, value: Any) -> Any:
        """Some endpoints answer with the bare object instead of ``{"data": ...}``."""
        if isinstance(value, list) or (isinstance(value, dict) and "data" not in value):
            return {"data": value}
        return value


class ReplyListEnvelope(Envelope[list[ReplyPayload]]):
    """Paged reply listing."""

    meta: PageMeta = Field(default_factory=PageMeta)

    def to_domain(self) -> ReplyPage:
        return ReplyPage(
            items=[reply.to_domain() for reply in self.data],
            has_next_page=self.meta.has_next_page,
            page=max(1, self.meta.page),
            page_size=max(1, self.meta.page_size),
            total=max(0, self.meta.total),
            total_pages=max(0, self.meta.total_pages),
            has_prev_page=self.meta.has_prev_page,
        )


class ReplyEnvelope(Envelope[ReplyPayload]):
    """Single reply."""

    pass


class UpvoteEnvelope(Envelope[UpvotePayload]):
    """Upvote toggle result."""

    pass


E = TypeVar("E", bound=Envelope)


def parse_envelope(envelope_type: type[E], payload: Any) -> E:
    """Validate a decoded JSON body against an envelope type.

    Raises:
        NetworkFailureError: If the body does not match the envelope
    """
    try:
        return envelope_type.model_validate(payload)
    except PydanticValidationError as e:
        raise NetworkFailureError(
            f"Malformed {envelope_type.__name__} response: {e.error_count()} error(s)"
        ) from e
