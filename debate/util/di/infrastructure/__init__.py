"""Infrastructure providers."""

# Import bases
from .reply_api import ReplyApiProvider

# Import implementations (needed for __subclasses__())
from .reply_api import ProdReplyApiProvider  # noqa: F401

__all__ = [
    "ProdReplyApiProvider",
    "ReplyApiProvider",
]
