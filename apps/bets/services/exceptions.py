"""
Domain-specific exceptions for bets app.

These exceptions represent lifecycle and authorization rule violations
and should be caught in views and converted to appropriate HTTP responses.
"""

from apps.core.exceptions import AuthorizationError, ConflictError, NotFoundError


class BetNotFoundError(NotFoundError):
    """Raised when a bet does not exist."""
    pass


class InvalidBetTransitionError(ConflictError):
    """Raised when a bet is not in the state the transition requires."""
    pass


class NotPairedError(AuthorizationError):
    """Raised when an unpaired user tries to create a bet."""
    pass


class NotBetParticipantError(AuthorizationError):
    """Raised when a user acts on a bet of another couple."""
    pass


class CannotRespondToOwnBetError(AuthorizationError):
    """Raised when the creator tries to approve or decline its own bet."""
    pass


class NotBetCreatorError(AuthorizationError):
    """Raised when someone other than the creator tries to delete a bet."""
    pass
