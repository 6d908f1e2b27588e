"""Domain models."""

from debate.domain.model.page import ReplyPage
from debate.domain.model.reply import MAX_DEPTH, Author, ReplyNode
from debate.domain.model.vote import VoteResult

__all__ = [
    "Author",
    "MAX_DEPTH",
    "ReplyNode",
    "ReplyPage",
    "VoteResult",
]
