"""
Database call guard.

Translates driver-level failures into the service error taxonomy so callers
only ever see ``BackendUnavailableError`` / ``BackendTimeoutError``.
Integrity errors are business signals (unique code collisions, duplicate
rows) and propagate unchanged.
"""

import functools
import logging

from django.db import DatabaseError, IntegrityError, OperationalError

from .exceptions import BackendTimeoutError, BackendUnavailableError

logger = logging.getLogger(__name__)

TIMEOUT_MARKERS = (
    'database is locked',
    'statement timeout',
    'canceling statement',
    'timeout expired',
    'timed out',
)


def is_timeout_error(exc: Exception) -> bool:
    """Return True if a database error was caused by a timeout."""
    message = str(exc).lower()
    return any(marker in message for marker in TIMEOUT_MARKERS)


def backend_call(func):
    """
    Decorate a service function that talks to the database.

    Must wrap the outermost layer (outside ``transaction.atomic``) so the
    transaction is already rolled back when the error is translated.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError:
            raise
        except OperationalError as exc:
            if is_timeout_error(exc):
                logger.warning("Backend timeout in %s: %s", func.__name__, exc)
                raise BackendTimeoutError("The request to the database timed out") from exc
            logger.error("Backend unavailable in %s: %s", func.__name__, exc)
            raise BackendUnavailableError("The database is unavailable") from exc
        except DatabaseError as exc:
            logger.error("Backend error in %s: %s", func.__name__, exc)
            raise BackendUnavailableError("The database request failed") from exc

    return wrapper
