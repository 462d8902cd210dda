class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an employee or attendance record does not exist."""


class ConflictError(DomainError):
    """Raised on duplicate check-in/check-out or a unique-key collision."""


class AuthorizationError(DomainError):
    """Raised when an actor lacks permission for an action."""
