"""Application configuration."""

from typing import Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from debate.domain.value import SortKey
from debate.util.error import ConfigurationError


class APISettings(BaseModel):
    """Remote reply API configuration."""

    # Base URL of the debate backend (EXPO_PUBLIC_BASE_URL in the mobile app)
    base_url: str = "http://localhost:3000"

    # Transport timeout; expiry surfaces as an ordinary network failure
    timeout_seconds: float = 10.0

    # Bearer token for the current user (optional - unauthenticated if unset)
    # Can be set via API__AUTH_TOKEN env var
    auth_token: str | None = None


class ReplySettings(BaseModel):
    """Reply thread configuration."""

    # Top-level replies per page
    top_level_page_size: int = 20

    # Child replies per page, fetched in full on first expand
    child_page_size: int = 50

    # Deepest nesting level (0 = top-level). Replies at this depth are terminal.
    max_depth: int = 2

    # Maximum reply length in characters
    max_content_length: int = 10000

    # Sort order used when a thread is opened
    default_sort: SortKey = SortKey.BEST


class ObservabilitySettings(BaseModel):
    """Observability configuration for Logfire."""

    # Logfire API token (optional - if not set, logs only go to console)
    # Can be set via OBSERVABILITY__LOGFIRE_TOKEN env var
    logfire_token: str | None = None

    # Whether to send telemetry to Logfire cloud
    # If None, will auto-determine: sends if token is present, otherwise console-only
    send_to_logfire: bool | None = None


class Settings(BaseSettings):
    """Application settings.

    Set environment variables to override, using ``__`` for nested values:

        ENVIRONMENT=production
        API__BASE_URL=https://api.example.com
        API__AUTH_TOKEN=...
        REPLIES__TOP_LEVEL_PAGE_SIZE=20
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # Allows API__BASE_URL syntax
    )

    environment: Literal["test", "development", "staging", "production"] = "development"
    debug: bool = False

    # Nested settings
    api: APISettings = APISettings()
    replies: ReplySettings = ReplySettings()
    observability: ObservabilitySettings = ObservabilitySettings()

    @model_validator(mode="after")
    def validate_reply_settings(self) -> "Settings":
        """Reject page sizes and depth caps the thread engine cannot honour."""
        if self.replies.top_level_page_size < 1 or self.replies.child_page_size < 1:
            raise ConfigurationError("Page sizes must be positive")
        if not 0 <= self.replies.max_depth <= 2:
            raise ConfigurationError("max_depth must be between 0 and 2")

        self.api.base_url = self.api.base_url.rstrip("/")
        return self
