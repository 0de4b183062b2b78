"""
Input validation and sanitization.

Each ``validate_*`` function returns the sanitized value or raises
``ValidationError`` with a message suitable for showing to the user.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings

from .exceptions import ValidationError

MAX_LENGTHS = {
    'name': 50,
    'title': 100,
    'option': 200,
}

MIN_LENGTH = 1
MAX_RAW_LENGTH = 1000

COUPLE_CODE_PATTERN = re.compile(r'^[A-Z0-9]{6}$')
UNSAFE_CHARACTERS = re.compile(r'[<>\'"]')

CHOICES = ('a', 'b')
BET_STATUSES = ('pending', 'active', 'concluded')

TWO_PLACES = Decimal('0.01')


def sanitize_string(value: str) -> str:
    """Trim, drop markup and quote characters, cap the length."""
    return UNSAFE_CHARACTERS.sub('', value.strip())[:MAX_RAW_LENGTH].strip()


def _validate_text(value, field: str, label: str) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError(f"{label} is required")

    sanitized = sanitize_string(value)
    max_length = MAX_LENGTHS[field]

    if len(sanitized) < MIN_LENGTH:
        raise ValidationError(f"{label} must be at least {MIN_LENGTH} character long")

    if len(sanitized) > max_length:
        raise ValidationError(f"{label} must be no more than {max_length} characters long")

    return sanitized


def validate_name(name) -> str:
    return _validate_text(name, 'name', 'Name')


def validate_title(title) -> str:
    return _validate_text(title, 'title', 'Title')


def validate_option(option) -> str:
    return _validate_text(option, 'option', 'Option')


def validate_amount(amount) -> Decimal:
    """
    Parse and round a bet amount.

    Accepts strings, ints and Decimals. The result is rounded half-up to two
    decimal places and must lie in (0, BET_MAX_AMOUNT].
    """
    if amount is None or amount == '':
        raise ValidationError("Amount is required")
    if isinstance(amount, bool):
        raise ValidationError("Amount must be a valid number")

    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a valid number")

    if not value.is_finite():
        raise ValidationError("Amount must be a valid number")

    if value <= 0:
        raise ValidationError("Amount must be greater than 0")

    max_amount = Decimal(str(getattr(settings, 'BET_MAX_AMOUNT', 1000000)))

    try:
        value = value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Too many digits to hold two decimal places, far above any limit
        raise ValidationError(f"Amount cannot exceed {max_amount:,}")

    if value <= 0:
        raise ValidationError("Amount must be greater than 0")
    if value > max_amount:
        raise ValidationError(f"Amount cannot exceed {max_amount:,}")

    return value


def is_valid_couple_code(code) -> bool:
    return isinstance(code, str) and COUPLE_CODE_PATTERN.match(code) is not None


def validate_couple_code(code) -> str:
    if not code or not isinstance(code, str):
        raise ValidationError("Couple code is required")

    sanitized = code.strip().upper()

    if len(sanitized) != 6:
        raise ValidationError("Couple code must be exactly 6 characters long")

    if not is_valid_couple_code(sanitized):
        raise ValidationError("Couple code must contain only letters and numbers")

    return sanitized


def _validate_choice(value, label: str) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError(f"{label} is required")

    sanitized = value.strip().lower()
    if sanitized not in CHOICES:
        raise ValidationError(f'{label} must be either "a" or "b"')

    return sanitized


def validate_creator_choice(choice) -> str:
    return _validate_choice(choice, 'Creator choice')


def validate_winner_option(option) -> str:
    return _validate_choice(option, 'Winner option')


def validate_bet_status(value) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError("Status is required")

    sanitized = value.strip().lower()
    if sanitized not in BET_STATUSES:
        raise ValidationError('Status must be "pending", "active", or "concluded"')

    return sanitized
