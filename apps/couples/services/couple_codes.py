"""
Couple code service.

Owns the couple code namespace: lookup, eligibility checks, and generation
of fresh codes with a bounded number of collision retries.
"""

import logging
from typing import Callable, Iterator, Optional

from django.conf import settings
from django.db import DatabaseError

from apps.accounts.services.tokens import random_couple_code
from apps.core.backend import backend_call
from apps.core.validation import is_valid_couple_code
from apps.couples.models import Couple, User

from .exceptions import CoupleCodeExhaustedError

logger = logging.getLogger(__name__)


def is_couple_code_exists(code: str) -> bool:
    """
    Check whether a couple already uses ``code``.

    On a database error this answers True: handing out a code that might
    collide is worse than drawing another one.
    """
    try:
        return Couple.objects.filter(couple_code=code).exists()
    except DatabaseError as exc:
        logger.warning("Couple code lookup failed for %s, assuming it exists: %s", code, exc)
        return True


def _max_attempts(max_attempts: Optional[int]) -> int:
    if max_attempts is None:
        return getattr(settings, 'COUPLE_CODE_MAX_ATTEMPTS', 10)
    return max_attempts


def free_couple_codes(
    *,
    max_attempts: Optional[int] = None,
    exists: Optional[Callable[[str], bool]] = None
) -> Iterator[str]:
    """
    Yield codes not yet in use, drawing at most ``max_attempts`` codes.

    Callers that can still lose a code to a concurrent insert keep pulling
    from the same iterator, so insert collisions spend the same budget.
    """
    if exists is None:
        exists = is_couple_code_exists

    for attempt in range(1, _max_attempts(max_attempts) + 1):
        code = random_couple_code()
        if exists(code):
            continue
        logger.debug("Couple code generated after %d attempt(s)", attempt)
        yield code


def generate_couple_code(
    *,
    max_attempts: Optional[int] = None,
    exists: Optional[Callable[[str], bool]] = None
) -> str:
    """
    Generate a couple code not yet in use.

    36^6 codes is few enough that collisions happen at modest scale, so the
    retry bound is part of the contract.

    Args:
        max_attempts: Maximum number of codes to draw
            (default: settings.COUPLE_CODE_MAX_ATTEMPTS)
        exists: Directory lookup used to detect collisions
            (default: is_couple_code_exists)

    Returns:
        A 6 character code from [A-Z0-9]

    Raises:
        CoupleCodeExhaustedError: If every drawn code was taken
    """
    max_attempts = _max_attempts(max_attempts)
    for code in free_couple_codes(max_attempts=max_attempts, exists=exists):
        return code

    logger.error("Failed to generate unique couple code after %d attempts", max_attempts)
    raise CoupleCodeExhaustedError(
        f"Unable to generate unique couple code after {max_attempts} attempts"
    )


@backend_call
def get_couple_by_code(code: str) -> Optional[Couple]:
    if not is_valid_couple_code(code):
        return None
    return Couple.objects.filter(couple_code=code).first()


def can_join_couple(code: str) -> bool:
    """
    Check whether a new member may join the couple with ``code``.

    True only if the couple exists and at most one of its users is paired:
    0 paired means nobody is linked yet (fresh or fully unlinked couple),
    1 paired means someone is waiting for a partner.
    """
    try:
        couple = Couple.objects.filter(couple_code=code).first()
        if couple is None:
            return False
        return couple.paired_members().count() <= 1
    except DatabaseError as exc:
        logger.error("Error checking if couple %s can be joined: %s", code, exc)
        return False


def can_rejoin_couple(code: str, token: Optional[str]) -> bool:
    """
    Check whether the owner of ``token`` may reclaim its membership.

    True only if that user already belongs to the couple and is currently
    not paired (it was unlinked earlier).
    """
    if not token:
        return False

    try:
        user = (
            User.objects
            .filter(couple__couple_code=code, auth_token=token)
            .only('id', 'is_paired')
            .first()
        )
    except DatabaseError as exc:
        logger.error("Error checking if user can rejoin couple %s: %s", code, exc)
        return False

    if user is None:
        return False

    return not user.is_paired
