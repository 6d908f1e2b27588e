"""HTTP implementation of the reply repository.

Talks to the opinion reply REST API with httpx and maps transport and status
failures onto the domain error taxonomy.
"""

from typing import Any, Optional

import httpx
import logfire

from debate.domain.error import (
    AuthExpiredError,
    NetworkFailureError,
    NotFoundError,
    RequestRejectedError,
)
from debate.domain.model import ReplyNode, ReplyPage, VoteResult
from debate.domain.repository import ReplyRepository
from debate.domain.service import CredentialProvider
from debate.domain.value import OpinionRef, ReplyId, SortKey

from .envelope import ReplyEnvelope, ReplyListEnvelope, UpvoteEnvelope, parse_envelope


class HttpReplyRepository(ReplyRepository):
    """Reply repository backed by the opinion reply REST API."""

    def __init__(self, client: httpx.AsyncClient, credentials: CredentialProvider) -> None:
        """Initialize HTTP reply repository.

        Args:
            client: httpx client with base_url and timeout configured
            credentials: Source of the bearer token
        """
        self.client = client
        self.credentials = credentials

    async def list_top_level(
        self,
        opinion: OpinionRef,
        page: int,
        page_size: int,
        sort_key: SortKey,
    ) -> ReplyPage:
        """List top-level replies to an opinion."""
        body = await self._request(
            "GET",
            f"/opinion-reply/opinion/{opinion.participant_user_id}",
            params=self._page_params(page, page_size, sort_key),
        )
        return parse_envelope(ReplyListEnvelope, body).to_domain()

    async def list_children(
        self,
        reply_id: ReplyId,
        page: int,
        page_size: int,
        sort_key: SortKey,
    ) -> ReplyPage:
        """List direct children of a reply."""
        body = await self._request(
            "GET",
            f"/opinion-reply/{reply_id}/replies",
            params=self._page_params(page, page_size, sort_key),
        )
        return parse_envelope(ReplyListEnvelope, body).to_domain()

    async def create_reply(
        self,
        opinion: OpinionRef,
        content: str,
        parent_id: Optional[ReplyId] = None,
    ) -> ReplyNode:
        """Create a top-level or nested reply."""
        payload: dict[str, Any] = {
            "debateRoomId": opinion.debate_room_id,
            "participantUserId": opinion.participant_user_id,
            "content": content,
        }
        if parent_id is not None:
            payload["parentReplyId"] = parent_id
            path = f"/opinion-reply/{parent_id}/reply"
        else:
            path = "/opinion-reply"

        body = await self._request("POST", path, json=payload)
        return parse_envelope(ReplyEnvelope, body).data.to_domain()

    async def update_reply(self, reply_id: ReplyId, content: str) -> ReplyNode:
        """Replace the text of a reply."""
        body = await self._request(
            "PATCH", f"/opinion-reply/{reply_id}", json={"content": content}
        )
        return parse_envelope(ReplyEnvelope, body).data.to_domain()

    async def delete_reply(self, reply_id: ReplyId) -> None:
        """Delete a reply."""
        await self._request("DELETE", f"/opinion-reply/{reply_id}")

    async def toggle_upvote(self, reply_id: ReplyId) -> VoteResult:
        """Flip the current user's upvote on a reply."""
        body = await self._request("POST", f"/opinion-reply/{reply_id}/upvote")
        return parse_envelope(UpvoteEnvelope, body).data.to_domain()

    @staticmethod
    def _page_params(page: int, page_size: int, sort_key: SortKey) -> dict[str, str]:
        return {
            "page": str(page),
            "pageSize": str(page_size),
            "orderBy": sort_key.value,
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None if empty).

        Raises:
            NetworkFailureError: Transport failure, timeout, 5xx or bad JSON
            AuthExpiredError: 401 response
            NotFoundError: 404 response
            RequestRejectedError: 400/422 response
        """
        headers = {"Accept": "application/json"}
        token = await self.credentials.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self.client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logfire.warn("Reply API timeout", method=method, path=path)
            raise NetworkFailureError(f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            logfire.warn("Reply API transport error", method=method, path=path, error=str(e))
            raise NetworkFailureError(f"{method} {path} failed: {e}") from e

        self._raise_for_status(method, path, response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkFailureError(f"{method} {path} returned invalid JSON") from e

    @staticmethod
    def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        logfire.warn("Reply API error response", method=method, path=path, status=status)
        if status == 401:
            raise AuthExpiredError(f"{method} {path} rejected credential")
        if status == 404:
            raise NotFoundError("reply", path)
        if status in (400, 422):
            raise RequestRejectedError(
                _error_message(response) or f"{method} {path} rejected"
            )
        raise NetworkFailureError(f"{method} {path} failed with status {status}")


def _error_message(response: httpx.Response) -> Optional[str]:
    """Pull a human-readable message out of an error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, list):
            return "; ".join(str(m) for m in message)
        if message is not None:
            return str(message)
    return None
