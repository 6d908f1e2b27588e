"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from debate.config import APISettings, ReplySettings, Settings
from debate.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_api_settings(self, settings: Settings) -> APISettings:
        """Provide reply API settings."""
        return settings.api

    @provide(scope=Scope.APP)
    def provide_reply_settings(self, settings: Settings) -> ReplySettings:
        """Provide reply thread settings."""
        return settings.replies
