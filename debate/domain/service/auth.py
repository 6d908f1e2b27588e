"""Credential handling for reply API calls."""

from typing import Awaitable, Callable, TypeVar

import logfire

from debate.domain.error import AuthExpiredError, NetworkFailureError

T = TypeVar("T")


class CredentialProvider:
    """Generic credential interface for the reply API.

    The refresh flow itself belongs to the authentication collaborator; the
    reply engine only asks for a token and, at most once per operation, for
    a refresh.
    """

    async def get_token(self) -> str | None:
        """Return the bearer token for the current user, if any."""
        raise NotImplementedError

    async def refresh(self) -> None:
        """Run the collaborator's credential refresh flow."""
        raise NotImplementedError


async def with_auth_retry(
    operation: Callable[[], Awaitable[T]],
    credentials: CredentialProvider,
    name: str = "reply_api",
) -> T:
    """Run a reply API operation, refreshing credentials at most once.

    Args:
        operation: Zero-argument coroutine factory performing the request
        credentials: Credential provider to refresh on AuthExpiredError
        name: Operation name for logging

    Returns:
        The operation result

    Raises:
        NetworkFailureError: If the refresh or the retried operation is
            rejected again
        ReplyApiError: Any other failure from the operation
    """
    try:
        return await operation()
    except AuthExpiredError:
        logfire.info("Credential expired, refreshing once", operation=name)

    try:
        await credentials.refresh()
    except AuthExpiredError as e:
        logfire.warn("Credential refresh rejected", operation=name)
        raise NetworkFailureError(f"{name} failed: credential refresh rejected") from e

    try:
        return await operation()
    except AuthExpiredError as e:
        logfire.warn("Credential still rejected after refresh", operation=name)
        raise NetworkFailureError(
            f"{name} failed: credential rejected after refresh"
        ) from e
