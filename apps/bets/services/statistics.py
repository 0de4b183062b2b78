"""
Bet statistics and history.

Winner identity is never stored. It is projected from ``creator_choice`` and
``winner_option`` every time it is needed: the creator won when both match,
otherwise the opponent recorded on the bet did.

Example:
    Leaderboard data for the current couple::

        from apps.bets.services import get_couple_stats

        stats = get_couple_stats(couple_id=user.couple_id)
        for member in stats['members']:
            print(f"{member['name']}: {member['total_wins']} wins")

Note:
    This module is read-only. All functions return plain dictionaries and
    lists suitable for JSON serialization.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from apps.core.backend import backend_call
from apps.bets.models import Bet, BetStatus
from apps.couples.models import User

logger = logging.getLogger(__name__)

UNKNOWN_NAME = 'Unknown'
RECENT_BETS_LIMIT = 5


def creator_won(bet: Bet) -> bool:
    return bet.winner_option == bet.creator_choice


def winner_user_id(bet: Bet, partner_id: Optional[UUID]) -> Optional[UUID]:
    """
    Project the winning person of a concluded bet.

    Args:
        bet: Concluded bet
        partner_id: ID of the creator's opponent in this bet

    Returns:
        Creator ID if the creator's choice won, otherwise ``partner_id``.
        None for bets that are not concluded.
    """
    if bet.status != BetStatus.CONCLUDED or bet.winner_option is None:
        return None
    return bet.creator_id if creator_won(bet) else partner_id


def loser_user_id(bet: Bet, partner_id: Optional[UUID]) -> Optional[UUID]:
    winner = winner_user_id(bet, partner_id)
    if winner is None:
        return None
    return partner_id if winner == bet.creator_id else bet.creator_id


def _opponent_resolver(members: List[User]):
    """
    Build a lookup from a bet to the creator's counterpart in that bet.

    The counterpart is the partner recorded on the bet when it was created,
    so later re-pairing does not move past wins. Bets without a recorded
    opponent fall back to the creator's current partner, then to the only
    other member of the couple when there is exactly one.
    """
    by_id = {member.id: member for member in members}

    def opponent_of(bet: Bet) -> Optional[UUID]:
        if bet.opponent_id is not None:
            return bet.opponent_id
        creator = by_id.get(bet.creator_id)
        if creator is not None and creator.partner_id is not None:
            return creator.partner_id
        others = [member_id for member_id in by_id if member_id != bet.creator_id]
        if len(others) == 1:
            return others[0]
        return None

    return opponent_of


def _empty_stats(user_id: Optional[UUID], name: str) -> Dict:
    return {
        'user_id': user_id,
        'name': name,
        'total_wins': 0,
        'total_amount': Decimal('0.00'),
        'win_rate': 0.0,
        'current_streak': 0,
    }


@backend_call
def get_couple_stats(*, couple_id: UUID) -> Dict:
    """
    Fold a couple's concluded bets into per-member statistics.

    Bets are folded in ``concluded_at`` order. For each bet the winner's
    wins, amount and streak grow and the loser's streak resets to 0.
    Win rate is ``wins / total concluded bets * 100``.

    A winner that cannot be matched to a current member is reported under
    the placeholder name ``'Unknown'`` rather than failing the whole result.

    Args:
        couple_id: Couple to summarize

    Returns:
        dict: A dictionary containing:
            - total_bets (int): Number of concluded bets.
            - members (list): Per-user dicts with user_id, name, total_wins,
              total_amount, win_rate and current_streak.
            - recent_bets (list): The latest concluded bets (newest first).
    """
    members = list(
        User.objects
        .filter(couple_id=couple_id)
        .order_by('created_at')
    )
    opponent_of = _opponent_resolver(members)

    stats: Dict[Optional[UUID], Dict] = {
        member.id: _empty_stats(member.id, member.name) for member in members
    }

    concluded = list(
        Bet.objects
        .filter(couple_id=couple_id, status=BetStatus.CONCLUDED)
        .order_by('concluded_at', 'created_at')
    )

    for bet in concluded:
        partner_id = opponent_of(bet)
        winner_id = winner_user_id(bet, partner_id)
        loser_id = loser_user_id(bet, partner_id)

        if winner_id not in stats:
            logger.warning("Winner of bet %s is not a member of couple %s", bet.id, couple_id)
            stats[winner_id] = _empty_stats(winner_id, UNKNOWN_NAME)

        winner = stats[winner_id]
        winner['total_wins'] += 1
        winner['total_amount'] += bet.amount
        winner['current_streak'] += 1

        if loser_id in stats:
            stats[loser_id]['current_streak'] = 0

    total = len(concluded)
    for entry in stats.values():
        entry['win_rate'] = round(entry['total_wins'] / total * 100, 2) if total else 0.0

    return {
        'total_bets': total,
        'members': list(stats.values()),
        'recent_bets': [
            {
                'id': bet.id,
                'title': bet.title,
                'amount': bet.amount,
                'concluded_at': bet.concluded_at,
            }
            for bet in reversed(concluded[-RECENT_BETS_LIMIT:])
        ],
    }


@backend_call
def get_bet_history(*, couple_id: UUID) -> List[Dict]:
    """
    Concluded bets of a couple, newest first, with the winner projected.

    Each entry carries ``winner`` (``'Creator won'`` or ``'Partner won'``)
    and ``winner_name``, which falls back to ``'Unknown'``.
    """
    members = list(User.objects.filter(couple_id=couple_id))
    names = {member.id: member.name for member in members}
    opponent_of = _opponent_resolver(members)

    bets = (
        Bet.objects
        .filter(couple_id=couple_id, status=BetStatus.CONCLUDED)
        .select_related('creator')
        .order_by('-concluded_at', '-created_at')
    )

    history = []
    for bet in bets:
        winner_id = winner_user_id(bet, opponent_of(bet))
        history.append({
            'id': bet.id,
            'title': bet.title,
            'amount': bet.amount,
            'option_a': bet.option_a,
            'option_b': bet.option_b,
            'creator_choice': bet.creator_choice,
            'winner_option': bet.winner_option,
            'winner': 'Creator won' if creator_won(bet) else 'Partner won',
            'winner_id': winner_id,
            'winner_name': names.get(winner_id, UNKNOWN_NAME),
            'creator_name': bet.creator.name,
            'concluded_at': bet.concluded_at,
        })
    return history
