"""Domain-specific exceptions for accounts services."""

from apps.core.exceptions import NotFoundError, ValidationError


class InvalidTokenError(ValidationError):
    """Raised when an auth token is malformed or expired."""
    pass


class UserNotFoundError(NotFoundError):
    """Raised when user does not exist."""
    pass
