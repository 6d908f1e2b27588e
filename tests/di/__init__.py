"""Mock providers for testing."""

from .reply_api import MockReplyApiProvider
from .container import build_test_container

__all__ = [
    "MockReplyApiProvider",
    "build_test_container",
]
