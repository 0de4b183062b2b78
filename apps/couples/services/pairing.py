"""
Pairing service.

Handles couple creation, the join/rejoin protocol, unlinking, and the
detection and repair of half-completed pairings.

Pairing always writes two user rows (the user and its partner). Every
operation that does so runs in one transaction with the couple row locked,
so concurrent joiners are serialized and either both rows change or
neither does.
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from django.db import transaction, IntegrityError

from apps.accounts.services.exceptions import UserNotFoundError
from apps.accounts.services.tokens import generate_auth_token
from apps.core.backend import backend_call
from apps.core.validation import validate_couple_code, validate_name
from apps.couples.models import Couple, User

from .couple_codes import free_couple_codes
from .exceptions import (
    AlreadyPairedError,
    CoupleCodeExhaustedError,
    CoupleFullError,
    CoupleNotFoundError,
    PairingStateError,
    PartnerNotFoundError,
)

logger = logging.getLogger(__name__)


@backend_call
def create_couple(*, name: str, max_attempts: Optional[int] = None) -> Tuple[Couple, User, str]:
    """
    Create a couple together with its first member.

    This is a multi-step operation wrapped in a transaction:
    1. Generate unique couple code
    2. Create the couple
    3. Create the (unpaired) user with a fresh auth token
    4. Record the user as the couple's creator

    A code taken between generation and insert counts against the same
    attempt bound as codes found taken during generation.

    Args:
        name: Display name of the creating user
        max_attempts: Maximum number of codes to draw
            (default: settings.COUPLE_CODE_MAX_ATTEMPTS)

    Returns:
        Tuple of (couple, user, auth_token)

    Raises:
        ValidationError: If the name is invalid
        CoupleCodeExhaustedError: If no unique code could be generated
    """
    sanitized = validate_name(name)

    # Retry logic outside transaction to handle code collisions
    for code in free_couple_codes(max_attempts=max_attempts):
        token = generate_auth_token()

        try:
            # Each attempt is a separate transaction
            with transaction.atomic():
                couple = Couple.objects.create(couple_code=code)
                user = User.objects.create(
                    name=sanitized,
                    couple=couple,
                    auth_token=token,
                    is_paired=False,
                )
                couple.created_by_user = user
                couple.save(update_fields=['created_by_user'])
        except IntegrityError:
            # Code taken by a concurrent insert
            logger.warning("Couple code %s taken on insert, drawing another", code)
            continue

        logger.info("Couple %s created by user %s", couple.id, user.id)
        return couple, user, token

    logger.error("Failed to create couple: no unique couple code available")
    raise CoupleCodeExhaustedError("Failed to generate unique couple code")


def _link(user: User, partner: User) -> None:
    user.is_paired = True
    user.partner = partner
    user.save(update_fields=['is_paired', 'partner'])

    partner.is_paired = True
    partner.partner = user
    partner.save(update_fields=['is_paired', 'partner'])


def _clear(user: User) -> None:
    user.is_paired = False
    user.partner = None
    user.save(update_fields=['is_paired', 'partner'])


@backend_call
@transaction.atomic
def join_couple(
    *,
    couple_code: str,
    name: Optional[str] = None,
    token: Optional[str] = None
) -> Tuple[User, User, str]:
    """
    Join a couple with its code, or rejoin it after an unlink.

    If ``token`` belongs to an unpaired member of the couple, that member
    reclaims its place (rejoin). Otherwise a new member is created, which
    requires a name and a couple with at most one paired member.

    The joining user is paired with the earliest other member of the couple
    that has no partner link. Both rows are written in this transaction.

    Args:
        couple_code: 6 character couple code (case-insensitive)
        name: Display name for a new member
        token: Auth token already stored on the device, if any

    Returns:
        Tuple of (user, partner, auth_token)

    Raises:
        ValidationError: If the code or name is invalid
        CoupleNotFoundError: If no couple has this code
        AlreadyPairedError: If the token's user is already paired
        CoupleFullError: If the couple has two paired members
        PartnerNotFoundError: If nobody is left to pair with
    """
    code = validate_couple_code(couple_code)

    # Lock the couple to serialize concurrent joins
    try:
        couple = Couple.objects.select_for_update().get(couple_code=code)
    except Couple.DoesNotExist:
        raise CoupleNotFoundError("Invalid couple code")

    user = None
    if token:
        user = (
            User.objects
            .select_for_update()
            .filter(couple=couple, auth_token=token)
            .first()
        )
        if user is not None and user.is_paired:
            raise AlreadyPairedError("You are already paired in this couple")

    if user is not None:
        logger.info("User %s is rejoining couple %s", user.id, couple.id)
    else:
        sanitized = validate_name(name)

        if couple.paired_members().count() > 1:
            raise CoupleFullError("Invalid couple code or couple is already full")

        token = generate_auth_token()
        user = User.objects.create(
            name=sanitized,
            couple=couple,
            auth_token=token,
            is_paired=False,
        )
        logger.info("User %s created in couple %s", user.id, couple.id)

    partner = (
        User.objects
        .select_for_update()
        .filter(couple=couple, partner__isnull=True)
        .exclude(id=user.id)
        .order_by('created_at')
        .first()
    )
    if partner is None:
        # Rolls back the user created above
        raise PartnerNotFoundError("Could not find partner")

    _link(user, partner)
    logger.info("Users %s and %s paired in couple %s", user.id, partner.id, couple.id)

    return user, partner, token


@backend_call
@transaction.atomic
def unlink(*, user_id: UUID) -> Optional[User]:
    """
    Unlink a user from its partner.

    Clears ``is_paired`` and ``partner`` on both users. The partner row is
    only touched if it still points back at this user. Calling this on an
    unpaired user does nothing.

    Args:
        user_id: UUID of the user requesting the unlink

    Returns:
        The former partner, or None if there was nothing to unlink

    Raises:
        UserNotFoundError: If the user doesn't exist
    """
    try:
        couple_id = User.objects.values_list('couple_id', flat=True).get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with ID {user_id} not found")

    # Same lock order as join_couple: couple first, then users
    Couple.objects.select_for_update().get(id=couple_id)
    user = User.objects.select_for_update().get(id=user_id)

    if not user.is_paired and user.partner_id is None:
        return None

    partner = None
    if user.partner_id is not None:
        partner = User.objects.select_for_update().filter(id=user.partner_id).first()

    _clear(user)

    if partner is not None and partner.partner_id in (user.id, None):
        _clear(partner)

    logger.info("User %s unlinked from %s", user.id, partner.id if partner else None)
    return partner


def check_pairing_consistency(user: User) -> None:
    """
    Verify that ``user`` and its partner point at each other.

    Raises:
        PairingStateError: If the pairing is half-completed or dangling
    """
    if user.partner_id is None:
        if user.is_paired:
            raise PairingStateError("User is marked as paired but has no partner")
        return

    if not user.is_paired:
        raise PairingStateError("User has a partner link but is not marked as paired")

    partner = User.objects.filter(id=user.partner_id).first()

    if partner is None:
        raise PairingStateError("Partner no longer exists")

    if partner.couple_id != user.couple_id:
        raise PairingStateError("Partner belongs to a different couple")

    if not partner.is_paired or partner.partner_id != user.id:
        raise PairingStateError("Partner is not linked back to this user")


@backend_call
@transaction.atomic
def repair_couple_pairing(*, couple_id: UUID) -> int:
    """
    Re-symmetrize the pairing fields of a couple's members.

    Mutual links are kept (and both sides marked paired). Any link that is
    not returned by the other side is cleared, which rolls a half-completed
    join back to unpaired and finishes a half-completed unlink.

    Args:
        couple_id: UUID of the couple

    Returns:
        Number of users whose pairing fields were changed

    Raises:
        CoupleNotFoundError: If couple doesn't exist
    """
    try:
        Couple.objects.select_for_update().get(id=couple_id)
    except Couple.DoesNotExist:
        raise CoupleNotFoundError(f"Couple with ID {couple_id} not found")

    members = list(User.objects.select_for_update().filter(couple_id=couple_id))
    by_id = {member.id: member for member in members}

    # Decide from the original state before writing anything
    mutual = {
        member.id: (
            member.partner_id in by_id
            and by_id[member.partner_id].partner_id == member.id
        )
        for member in members
    }

    fixed = 0
    for member in members:
        if mutual[member.id]:
            if not member.is_paired:
                member.is_paired = True
                member.save(update_fields=['is_paired'])
                fixed += 1
        elif member.is_paired or member.partner_id is not None:
            _clear(member)
            fixed += 1

    if fixed:
        logger.warning("Repaired pairing state of %d user(s) in couple %s", fixed, couple_id)

    return fixed


def get_partner(user: User) -> Optional[User]:
    if not user.is_paired or user.partner_id is None:
        return None
    return User.objects.filter(id=user.partner_id, couple_id=user.couple_id).first()


@backend_call
def get_couple_overview(*, user: User) -> dict:
    """
    Load the user's couple and partner, repairing a broken pairing first.

    Returns:
        Dictionary with:
        - couple: Couple
        - user: User (reloaded)
        - partner: User | None
        - repaired: int - users fixed by the repair pass
    """
    repaired = 0
    try:
        check_pairing_consistency(user)
    except PairingStateError as e:
        logger.warning("Inconsistent pairing for user %s: %s", user.id, e)
        repaired = repair_couple_pairing(couple_id=user.couple_id)
        user = User.objects.select_related('couple').get(id=user.id)

    return {
        'couple': user.couple,
        'user': user,
        'partner': get_partner(user),
        'repaired': repaired,
    }
