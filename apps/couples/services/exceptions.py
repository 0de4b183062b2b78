"""
Domain-specific exceptions for couples app.

These exceptions represent pairing rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""

from apps.core.exceptions import (
    GenerationExhaustedError,
    InconsistentPairingStateError,
    NotFoundError,
    ValidationError,
)


class CoupleNotFoundError(NotFoundError):
    """Raised when no couple matches a code or ID."""
    pass


class PartnerNotFoundError(NotFoundError):
    """Raised when the couple has no member left to pair with."""
    pass


class CoupleFullError(ValidationError):
    """Raised when a couple already has two paired members."""
    pass


class AlreadyPairedError(ValidationError):
    """Raised when a paired user tries to join again."""
    pass


class CoupleCodeExhaustedError(GenerationExhaustedError):
    """Raised when couple code generation keeps colliding."""
    pass


class PairingStateError(InconsistentPairingStateError):
    """Raised when a half-completed pairing is detected."""
    pass
