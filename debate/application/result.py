"""Intent results handed back to the presentation layer."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from debate.domain.error import (
    AuthExpiredError,
    ContentDeletedException,
    DomainError,
    NetworkFailureError,
    NotAuthorizedError,
    NotFoundError,
    RequestRejectedError,
    ValidationError,
    VoteInFlightError,
)


class IntentStatus(str, Enum):
    """Outcome of a user intent."""

    OK = "ok"
    REJECTED = "rejected"  # Refused locally, no request made
    FAILED = "failed"  # Request failed, state unchanged
    STALE = "stale"  # Result arrived too late and was discarded


class ErrorKind(str, Enum):
    """Failure category for user-visible messaging."""

    NETWORK_FAILURE = "network_failure"
    AUTH_EXPIRED = "auth_expired"
    NOT_FOUND = "not_found"
    VALIDATION_FAILURE = "validation_failure"
    NOT_AUTHORIZED = "not_authorized"
    IN_FLIGHT = "in_flight"


class IntentResult(BaseModel):
    """Result of a ReplyThread intent."""

    status: IntentStatus
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status is IntentStatus.OK

    @property
    def retryable(self) -> bool:
        """Whether the UI should offer a retry affordance."""
        return self.error_kind in (ErrorKind.NETWORK_FAILURE, ErrorKind.AUTH_EXPIRED)

    @classmethod
    def success(cls, value: Any = None, message: Optional[str] = None) -> "IntentResult":
        return cls(status=IntentStatus.OK, value=value, message=message)

    @classmethod
    def stale(cls, message: str) -> "IntentResult":
        return cls(status=IntentStatus.STALE, message=message)

    @classmethod
    def rejected(cls, message: str) -> "IntentResult":
        return cls(
            status=IntentStatus.REJECTED,
            error_kind=ErrorKind.VALIDATION_FAILURE,
            message=message,
        )

    @classmethod
    def from_error(cls, error: DomainError) -> "IntentResult":
        """Map a domain error onto a result."""
        if isinstance(error, VoteInFlightError):
            status, kind = IntentStatus.REJECTED, ErrorKind.IN_FLIGHT
        elif isinstance(error, (ValidationError, ContentDeletedException)):
            status, kind = IntentStatus.REJECTED, ErrorKind.VALIDATION_FAILURE
        elif isinstance(error, NotAuthorizedError):
            status, kind = IntentStatus.REJECTED, ErrorKind.NOT_AUTHORIZED
        elif isinstance(error, RequestRejectedError):
            status, kind = IntentStatus.FAILED, ErrorKind.VALIDATION_FAILURE
        elif isinstance(error, NotFoundError):
            status, kind = IntentStatus.FAILED, ErrorKind.NOT_FOUND
        elif isinstance(error, AuthExpiredError):
            status, kind = IntentStatus.FAILED, ErrorKind.AUTH_EXPIRED
        elif isinstance(error, NetworkFailureError):
            status, kind = IntentStatus.FAILED, ErrorKind.NETWORK_FAILURE
        else:
            status, kind = IntentStatus.FAILED, None
        return cls(status=status, error_kind=kind, message=str(error))
