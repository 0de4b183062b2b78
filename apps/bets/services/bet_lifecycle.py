"""
Bet lifecycle service.

State machine::

    pending --approve--> active --conclude--> concluded (terminal)
    pending --decline--> deleted
    pending|active --delete (creator)--> deleted

Every transition locks the bet row and then writes with a conditional
update (``WHERE status = <expected>``). A retried or concurrent request
that finds the bet already moved on fails with
``InvalidBetTransitionError`` instead of applying the change twice.
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.core.backend import backend_call
from apps.core.exceptions import AuthorizationError
from apps.core.validation import (
    validate_amount,
    validate_bet_status,
    validate_creator_choice,
    validate_option,
    validate_title,
    validate_winner_option,
)
from apps.bets.models import Bet, BetStatus
from apps.bets.notifications import BetChange, UPDATE, bet_to_row, publish_on_commit
from apps.couples.models import User

from .exceptions import (
    BetNotFoundError,
    CannotRespondToOwnBetError,
    InvalidBetTransitionError,
    NotBetCreatorError,
    NotBetParticipantError,
    NotPairedError,
)

logger = logging.getLogger(__name__)

OPEN_STATUSES = [BetStatus.PENDING, BetStatus.ACTIVE]


def _require_user(user: Optional[User]) -> User:
    if user is None:
        raise AuthorizationError("Authentication required")
    return user


def _lock_bet(bet_id: UUID, user: User) -> Bet:
    try:
        bet = Bet.objects.select_for_update().get(id=bet_id)
    except Bet.DoesNotExist:
        raise BetNotFoundError(f"Bet with ID {bet_id} not found")

    if bet.couple_id != user.couple_id:
        raise NotBetParticipantError("This bet belongs to another couple")

    return bet


def _transition(bet: Bet, expected: str, **changes) -> Bet:
    """Apply ``changes`` only if the bet is still in ``expected`` status."""
    updated = (
        Bet.objects
        .filter(id=bet.id, status=expected)
        .update(**changes)
    )
    if updated == 0:
        raise InvalidBetTransitionError(f"Bet is no longer {expected}")

    bet.refresh_from_db()
    # QuerySet.update() bypasses post_save
    publish_on_commit(BetChange(event_type=UPDATE, new=bet_to_row(bet)))
    return bet


def _require_status(bet: Bet, expected: str, action: str) -> None:
    if bet.status == expected:
        return
    if bet.status == BetStatus.CONCLUDED:
        raise InvalidBetTransitionError(f"Bet is already concluded and cannot be {action}")
    raise InvalidBetTransitionError(
        f"Only {expected} bets can be {action} (bet is {bet.status})"
    )


def default_requires_approval() -> bool:
    return getattr(settings, 'BETS_REQUIRE_APPROVAL', True)


@backend_call
@transaction.atomic
def create_bet(
    *,
    user: Optional[User],
    title: str,
    amount,
    option_a: str,
    option_b: str,
    creator_choice: str,
    require_approval: Optional[bool] = None
) -> Bet:
    """
    Create a bet in the creator's couple.

    The bet starts ``pending`` (waiting for the partner's approval) or
    directly ``active``, depending on ``require_approval``.

    Args:
        user: Creating user (must be paired)
        title: Bet title (1-100 characters after sanitizing)
        amount: Stake, parsed and rounded half-up to 2 decimals
        option_a: First outcome
        option_b: Second outcome
        creator_choice: 'a' or 'b'
        require_approval: Override of settings.BETS_REQUIRE_APPROVAL

    Returns:
        Created Bet instance

    Raises:
        AuthorizationError: If no user is given
        NotPairedError: If the user has no partner
        ValidationError: If any input is invalid
    """
    user = _require_user(user)
    if not user.is_paired:
        raise NotPairedError("You must be paired with a partner to create bets")

    clean_title = validate_title(title)
    clean_amount: Decimal = validate_amount(amount)
    clean_option_a = validate_option(option_a)
    clean_option_b = validate_option(option_b)
    clean_choice = validate_creator_choice(creator_choice)

    if require_approval is None:
        require_approval = default_requires_approval()

    bet = Bet.objects.create(
        title=clean_title,
        amount=clean_amount,
        option_a=clean_option_a,
        option_b=clean_option_b,
        creator=user,
        creator_choice=clean_choice,
        opponent_id=user.partner_id,
        status=BetStatus.PENDING if require_approval else BetStatus.ACTIVE,
        couple_id=user.couple_id,
    )

    logger.info("Bet %s created by %s as %s", bet.id, user.id, bet.status)
    return bet


@backend_call
@transaction.atomic
def approve_bet(*, bet_id: UUID, user: Optional[User]) -> Bet:
    """
    Approve a pending bet (pending -> active).

    Only the creator's partner, i.e. a member of the same couple who did not
    create the bet, may approve.

    Raises:
        BetNotFoundError: If bet doesn't exist
        NotBetParticipantError: If the bet belongs to another couple
        CannotRespondToOwnBetError: If the user created the bet
        InvalidBetTransitionError: If the bet is not pending
    """
    user = _require_user(user)
    bet = _lock_bet(bet_id, user)

    if bet.creator_id == user.id:
        raise CannotRespondToOwnBetError("You cannot approve your own bet")

    _require_status(bet, BetStatus.PENDING, 'approved')

    bet = _transition(bet, BetStatus.PENDING, status=BetStatus.ACTIVE)
    logger.info("Bet %s approved by %s", bet.id, user.id)
    return bet


@backend_call
@transaction.atomic
def decline_bet(*, bet_id: UUID, user: Optional[User]) -> None:
    """
    Decline a pending bet, deleting it.

    Same authorization as approve. No record of the declined bet is kept.

    Raises:
        BetNotFoundError: If bet doesn't exist
        NotBetParticipantError: If the bet belongs to another couple
        CannotRespondToOwnBetError: If the user created the bet
        InvalidBetTransitionError: If the bet is not pending
    """
    user = _require_user(user)
    bet = _lock_bet(bet_id, user)

    if bet.creator_id == user.id:
        raise CannotRespondToOwnBetError("You cannot decline your own bet")

    _require_status(bet, BetStatus.PENDING, 'declined')

    deleted, _ = (
        Bet.objects
        .filter(id=bet.id, couple_id=user.couple_id, status=BetStatus.PENDING)
        .delete()
    )
    if deleted == 0:
        raise InvalidBetTransitionError("Bet is no longer pending")

    logger.info("Bet %s declined by %s", bet_id, user.id)


@backend_call
@transaction.atomic
def conclude_bet(*, bet_id: UUID, user: Optional[User], winner_option: str) -> Bet:
    """
    Conclude an active bet with its winning option (active -> concluded).

    Either member of the couple may conclude. Irreversible.

    Raises:
        ValidationError: If winner_option is not 'a' or 'b'
        BetNotFoundError: If bet doesn't exist
        NotBetParticipantError: If the bet belongs to another couple
        InvalidBetTransitionError: If the bet is not active
    """
    user = _require_user(user)
    winner = validate_winner_option(winner_option)
    bet = _lock_bet(bet_id, user)

    _require_status(bet, BetStatus.ACTIVE, 'concluded')

    bet = _transition(
        bet,
        BetStatus.ACTIVE,
        status=BetStatus.CONCLUDED,
        winner_option=winner,
        concluded_at=timezone.now(),
        concluded_by=user,
    )
    logger.info("Bet %s concluded by %s, winner option %s", bet.id, user.id, winner)
    return bet


@backend_call
@transaction.atomic
def delete_bet(*, bet_id: UUID, user: Optional[User]) -> None:
    """
    Delete a pending or active bet (creator only).

    The delete query repeats the creator and status checks, so the row is
    only removed if both the service check and the query filter agree.

    Raises:
        BetNotFoundError: If bet doesn't exist
        NotBetParticipantError: If the bet belongs to another couple
        NotBetCreatorError: If the user did not create the bet
        InvalidBetTransitionError: If the bet is already concluded
    """
    user = _require_user(user)
    bet = _lock_bet(bet_id, user)

    if bet.creator_id != user.id:
        raise NotBetCreatorError("Only the creator can delete this bet")

    if not bet.is_open():
        raise InvalidBetTransitionError("Concluded bets cannot be deleted")

    deleted, _ = (
        Bet.objects
        .filter(id=bet.id, creator_id=user.id, status__in=OPEN_STATUSES)
        .delete()
    )
    if deleted == 0:
        raise InvalidBetTransitionError("Bet could not be deleted")

    logger.info("Bet %s deleted by %s", bet_id, user.id)


def get_couple_bets(*, user: User, status: Optional[str] = None) -> QuerySet[Bet]:
    """
    Bets of the user's couple, newest first.

    Raises:
        ValidationError: If status is not a known bet status
    """
    queryset = (
        Bet.objects
        .filter(couple_id=user.couple_id)
        .select_related('creator', 'concluded_by')
    )
    if status:
        queryset = queryset.filter(status=validate_bet_status(status))
    return queryset


@backend_call
def get_bet(*, bet_id: UUID, user: User) -> Bet:
    """
    Get one bet of the user's couple.

    Raises:
        BetNotFoundError: If bet doesn't exist or belongs to another couple
    """
    try:
        return (
            Bet.objects
            .select_related('creator', 'concluded_by')
            .get(id=bet_id, couple_id=user.couple_id)
        )
    except Bet.DoesNotExist:
        raise BetNotFoundError(f"Bet with ID {bet_id} not found")
