"""Bearer token credentials for the reply API."""

from typing import Awaitable, Callable, Optional

import logfire

from debate.config import Settings
from debate.domain.service import CredentialProvider

TokenRefresher = Callable[[], Awaitable[Optional[str]]]


async def reload_configured_token() -> Optional[str]:
    """Read ``API__AUTH_TOKEN`` again so a rotated token is picked up.

    The host app owns sign-in; it rotates the token by updating the
    environment (or ``.env``) this process reads.
    """
    return Settings().api.auth_token


class TokenCredentialProvider(CredentialProvider):
    """Holds the current bearer token and delegates refresh to the auth layer."""

    def __init__(
        self, token: Optional[str] = None, refresher: Optional[TokenRefresher] = None
    ) -> None:
        """Initialize token credential provider.

        Args:
            token: Initial bearer token (None for unauthenticated calls)
            refresher: Coroutine function returning a fresh token
        """
        self._token = token
        self._refresher = refresher

    async def get_token(self) -> Optional[str]:
        return self._token

    async def refresh(self) -> None:
        """Fetch a new token from the refresher, if one is configured."""
        if self._refresher is None:
            logfire.warn("No credential refresher configured; retrying with same token")
            return

        previous = self._token
        self._token = await self._refresher()
        logfire.info(
            "Credential refreshed",
            has_token=self._token is not None,
            changed=self._token != previous,
        )
