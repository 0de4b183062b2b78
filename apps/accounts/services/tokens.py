"""
Token generation service.

Produces the opaque session tokens stored on devices and the short
human-shareable couple codes.

Token format::

    token_<base36 millisecond timestamp>_<16 random bytes, base64url>

The timestamp makes tokens self-expiring without a server-side lookup; the
random part makes them unguessable.
"""

import base64
import logging
import random
import re
import secrets
import string
import time
from typing import Optional

from django.conf import settings

logger = logging.getLogger(__name__)

TOKEN_PREFIX = 'token'
TOKEN_RANDOM_BYTES = 16
TOKEN_PATTERN = re.compile(r'^token_[a-z0-9]+_[A-Za-z0-9_-]+$')

COUPLE_CODE_LENGTH = 6
COUPLE_CODE_ALPHABET = string.ascii_uppercase + string.digits

BASE36_DIGITS = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return int(time.time() * 1000)


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("Negative values cannot be encoded")
    if value == 0:
        return '0'
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_DIGITS[remainder])
    return ''.join(reversed(digits))


def generate_secure_token(length: int = 32) -> str:
    """
    Generate a URL-safe random string from ``length`` random bytes.

    Uses the OS secure random source. When the platform has none
    (``os.urandom`` raises ``NotImplementedError``) a non-cryptographic
    generator is used instead and a warning is logged: tokens issued that way
    are guessable and should be rotated.
    """
    try:
        raw = secrets.token_bytes(length)
    except NotImplementedError:
        logger.warning("No secure random source available, falling back to a weak generator")
        alphabet = string.ascii_letters + string.digits + '-_'
        return ''.join(random.choice(alphabet) for _ in range(length * 2))
    return base64.urlsafe_b64encode(raw).rstrip(b'=').decode('ascii')


def generate_auth_token(now_ms: Optional[int] = None) -> str:
    """Generate a new auth token embedding the issue time."""
    timestamp = to_base36(_now_ms() if now_ms is None else now_ms)
    return f"{TOKEN_PREFIX}_{timestamp}_{generate_secure_token(TOKEN_RANDOM_BYTES)}"


def is_valid_token_format(token) -> bool:
    if not isinstance(token, str):
        return False
    return TOKEN_PATTERN.match(token) is not None


def token_issued_at_ms(token: str) -> Optional[int]:
    """Return the embedded timestamp, or None if the token is malformed."""
    if not is_valid_token_format(token):
        return None
    # The random part is base64url and may itself contain underscores
    _, timestamp, _ = token.split('_', 2)
    try:
        return int(timestamp, 36)
    except ValueError:
        return None


def is_token_expired(token, now_ms: Optional[int] = None) -> bool:
    """
    Check whether a token is too old to be accepted.

    Malformed tokens count as expired so every failure leads to
    re-authentication rather than access.
    """
    issued_at = token_issued_at_ms(token)
    if issued_at is None:
        return True

    max_age_days = getattr(settings, 'AUTH_TOKEN_MAX_AGE_DAYS', 30)
    max_age_ms = max_age_days * 24 * 60 * 60 * 1000
    current = _now_ms() if now_ms is None else now_ms

    return issued_at < current - max_age_ms


def random_couple_code() -> str:
    """Draw a couple code uniformly from [A-Z0-9]."""
    return ''.join(secrets.choice(COUPLE_CODE_ALPHABET) for _ in range(COUPLE_CODE_LENGTH))


def token_preview(token: Optional[str]) -> str:
    """Shortened token for log messages."""
    if not token:
        return '<none>'
    return f"{token[:12]}..."
