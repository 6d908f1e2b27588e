"""Reply API infrastructure providers."""

from typing import AsyncIterable

import httpx
from dishka import Scope, provide

from debate.adapter.http import (
    HttpReplyRepository,
    TokenCredentialProvider,
    reload_configured_token,
)
from debate.config import APISettings
from debate.domain.repository import ReplyRepository
from debate.domain.service import CredentialProvider
from debate.util.di.base import ProviderBase
from debate.util.observability import instrument_httpx


class ReplyApiProvider(ProviderBase):
    """Reply API component base."""

    __mock_component__ = "reply_api"


class ProdReplyApiProvider(ReplyApiProvider):
    """Production reply API provider backed by the REST backend."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_http_client(
        self, settings: APISettings
    ) -> AsyncIterable[httpx.AsyncClient]:
        """Provide the shared httpx client, closed with the container."""
        instrument_httpx()
        async with httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
        ) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_credentials(self, settings: APISettings) -> CredentialProvider:
        """Provide bearer token credentials from settings.

        A rejected token is refreshed by re-reading the configured token.
        """
        return TokenCredentialProvider(
            token=settings.auth_token, refresher=reload_configured_token
        )

    @provide(scope=Scope.APP)
    def get_reply_repository(
        self, client: httpx.AsyncClient, credentials: CredentialProvider
    ) -> ReplyRepository:
        """Provide HTTP reply repository."""
        return HttpReplyRepository(client=client, credentials=credentials)
