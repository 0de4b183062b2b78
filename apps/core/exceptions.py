"""
Shared error taxonomy for the couple bets services.

Every app-level service exception inherits from one of these categories so
views can map them to HTTP responses consistently:

    ServiceError (base)
    ├── ValidationError                 bad user input, no state change
    ├── AuthorizationError              acting user lacks rights
    ├── NotFoundError                   couple / bet / partner missing
    ├── ConflictError                   state changed under the caller
    │   └── InconsistentPairingStateError
    ├── GenerationExhaustedError        couple code retries exhausted
    └── BackendUnavailableError         database failure
        └── BackendTimeoutError

Usage:
    from apps.core.exceptions import NotFoundError

    class BetNotFoundError(NotFoundError):
        pass
"""


class ServiceError(Exception):
    """Base exception for all service-layer errors."""
    pass


class ValidationError(ServiceError):
    """
    Raised when user input is invalid.

    Recoverable: shown to the user, nothing was written.
    """
    pass


class AuthorizationError(ServiceError):
    """Raised when the acting user may not perform the operation."""
    pass


class NotFoundError(ServiceError):
    """Raised when a referenced record does not exist."""
    pass


class ConflictError(ServiceError):
    """Raised when the stored state no longer allows the operation."""
    pass


class InconsistentPairingStateError(ConflictError):
    """
    Raised when a user's pairing fields disagree with its partner's.

    A half-completed pairing or unlinking must be repaired, not trusted.
    See ``apps.couples.services.pairing.repair_couple_pairing``.
    """
    pass


class GenerationExhaustedError(ServiceError):
    """Raised when no unique couple code could be generated."""
    pass


class BackendUnavailableError(ServiceError):
    """Raised when the database cannot be reached or fails."""
    pass


class BackendTimeoutError(BackendUnavailableError):
    """Raised when a database call exceeds the configured timeout."""
    pass
