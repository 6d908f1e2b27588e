"""Application layer DI providers."""

from dishka import Scope, provide

from debate.application import ReplyThreadFactory
from debate.config import ReplySettings
from debate.domain.repository import ReplyRepository
from debate.domain.service import CredentialProvider
from debate.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_reply_thread_factory(
        self,
        reply_repository: ReplyRepository,
        credentials: CredentialProvider,
        settings: ReplySettings,
    ) -> ReplyThreadFactory:
        """Provide reply thread factory."""
        return ReplyThreadFactory(
            reply_repository=reply_repository,
            credentials=credentials,
            settings=settings,
        )
