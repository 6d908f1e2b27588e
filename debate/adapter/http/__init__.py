"""HTTP reply API adapter."""

from .auth import TokenCredentialProvider, reload_configured_token
from .client import HttpReplyRepository

__all__ = ["HttpReplyRepository", "TokenCredentialProvider", "reload_configured_token"]
