class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"
    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "invalid_input"
    http_status = 400


class NotFoundError(DomainError):
    """Raised when a member or record does not exist."""

    kind = "not_found"
    http_status = 404


class LimitExceededError(DomainError):
    """Raised when a payment would exceed the subscription amount."""

    kind = "limit_exceeded"
    http_status = 400


class AuthenticationError(DomainError):
    """Raised when credentials or tokens are invalid."""

    kind = "unauthenticated"
    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "unauthorized"
    http_status = 403
