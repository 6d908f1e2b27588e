"""Paged reply listing."""

from pydantic import Field

from debate.domain.model.common import DomainModel
from debate.domain.model.reply import ReplyNode


class ReplyPage(DomainModel):
    """One page of replies for a pagination scope (top level or one parent)."""

    items: list[ReplyNode] = Field(default_factory=list)
    has_next_page: bool = False
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)
    total: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    has_prev_page: bool = False
