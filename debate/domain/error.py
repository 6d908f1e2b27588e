"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Rejected before any request is made (empty content, depth cap, ...)."""

    pass


class BusinessRuleViolationError(DomainError):
    """Business rule violation error."""

    pass


class VoteInFlightError(BusinessRuleViolationError):
    """Raised when a reply already has an outstanding vote toggle."""

    def __init__(self, reply_id: str):
        self.reply_id = reply_id
        super().__init__(f"Vote already in flight for reply {reply_id}")


class NotAuthorizedError(DomainError):
    """Raised when a user attempts to modify a reply they don't own."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"Not authorized to modify {resource} {resource_id}")


class ContentDeletedException(DomainError):
    """Raised when attempting to act on deleted content."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"Cannot act on deleted {resource} {resource_id}")


class ReplyApiError(DomainError):
    """Base error for remote reply API failures."""

    pass


class NetworkFailureError(ReplyApiError):
    """Transient transport failure. Retryable; no state change applied."""

    pass


class AuthExpiredError(ReplyApiError):
    """The credential was rejected; one refresh and one retry are allowed."""

    pass


class NotFoundError(ReplyApiError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class RequestRejectedError(ReplyApiError):
    """The server refused the request as invalid (400/422). Not retryable."""

    pass
