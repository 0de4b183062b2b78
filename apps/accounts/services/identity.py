"""
Identity resolution service.

Maps an opaque auth token to the acting user and its couple. Bad tokens are
never an error here: they resolve to ``None`` and the caller treats that as
"not authenticated".
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction

from apps.core.backend import backend_call
from apps.core.validation import validate_name
from apps.couples.models import Couple, User
from apps.accounts.token_storage import TokenStore

from .exceptions import InvalidTokenError, UserNotFoundError
from .tokens import is_token_expired, is_valid_token_format, token_preview

logger = logging.getLogger(__name__)


def is_usable_token(token) -> bool:
    return is_valid_token_format(token) and not is_token_expired(token)


@backend_call
def resolve_user(token) -> Optional[User]:
    """
    Return the user owning ``token``.

    Returns None for a missing, malformed, expired or unknown token.
    """
    if not token or not is_usable_token(token):
        return None

    return (
        User.objects
        .select_related('couple', 'partner')
        .filter(auth_token=token)
        .first()
    )


def get_current_user(store: TokenStore) -> Optional[User]:
    """
    Resolve the user from the token held in local storage.

    An invalid or expired stored token is cleared as a side effect.
    """
    token = store.get()
    if not token:
        return None

    if not is_usable_token(token):
        logger.warning("Stored token %s is invalid or expired, clearing it", token_preview(token))
        store.clear()
        return None

    return resolve_user(token)


def get_current_couple_id(store: TokenStore) -> Optional[UUID]:
    user = get_current_user(store)
    return user.couple_id if user else None


def get_current_couple(store: TokenStore) -> Optional[Couple]:
    user = get_current_user(store)
    return user.couple if user else None


def is_authenticated(store: TokenStore) -> bool:
    return get_current_user(store) is not None


def login_with_token(store: TokenStore, token: str) -> Optional[User]:
    """
    Store ``token`` locally and resolve its user.

    Raises:
        InvalidTokenError: If the token is malformed or expired
    """
    if not is_usable_token(token):
        raise InvalidTokenError("Auth token is invalid or expired")

    store.store(token)
    return get_current_user(store)


@backend_call
@transaction.atomic
def logout(*, user: User, store: Optional[TokenStore] = None) -> None:
    """
    Log the user out.

    The server-side token is discarded (never reassigned) and the local copy,
    if a store is given, is removed.
    """
    User.objects.filter(id=user.id).update(auth_token=None)
    user.auth_token = None

    if store is not None:
        store.clear()

    logger.info("User %s logged out", user.id)


@backend_call
@transaction.atomic
def update_user_name(*, user_id: UUID, name: str) -> User:
    """
    Rename a user.

    Raises:
        ValidationError: If the name is empty or too long
        UserNotFoundError: If the user doesn't exist
    """
    sanitized = validate_name(name)

    try:
        user = User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with ID {user_id} not found")

    user.name = sanitized
    user.save(update_fields=['name'])

    return user
