"""Services for identity and token handling."""

from .exceptions import (
    InvalidTokenError,
    UserNotFoundError,
)
from .tokens import (
    generate_auth_token,
    generate_secure_token,
    is_valid_token_format,
    is_token_expired,
    random_couple_code,
)
from .identity import (
    resolve_user,
    get_current_user,
    get_current_couple_id,
    get_current_couple,
    is_authenticated,
    login_with_token,
    logout,
    update_user_name,
)

__all__ = [
    # Exceptions
    'InvalidTokenError',
    'UserNotFoundError',
    # Tokens
    'generate_auth_token',
    'generate_secure_token',
    'is_valid_token_format',
    'is_token_expired',
    'random_couple_code',
    # Identity
    'resolve_user',
    'get_current_user',
    'get_current_couple_id',
    'get_current_couple',
    'is_authenticated',
    'login_with_token',
    'logout',
    'update_user_name',
]
