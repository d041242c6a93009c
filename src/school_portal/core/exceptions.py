class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised by a store when the targeted message no longer exists."""


class StoreUnavailableError(DomainError):
    """Raised by a store when the underlying persistence cannot be reached."""
