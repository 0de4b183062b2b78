"""
Bets app services layer.

Services own the bet lifecycle state machine and the statistics fold.
Transitions run inside transactions with the bet row locked and write
through conditional updates.
"""

from .exceptions import (
    BetNotFoundError,
    InvalidBetTransitionError,
    NotPairedError,
    NotBetParticipantError,
    CannotRespondToOwnBetError,
    NotBetCreatorError,
)

from .bet_lifecycle import (
    create_bet,
    approve_bet,
    decline_bet,
    conclude_bet,
    delete_bet,
    get_bet,
    get_couple_bets,
)

from .statistics import (
    creator_won,
    winner_user_id,
    get_couple_stats,
    get_bet_history,
)


__all__ = [
    # Exceptions
    'BetNotFoundError',
    'InvalidBetTransitionError',
    'NotPairedError',
    'NotBetParticipantError',
    'CannotRespondToOwnBetError',
    'NotBetCreatorError',

    # Lifecycle
    'create_bet',
    'approve_bet',
    'decline_bet',
    'conclude_bet',
    'delete_bet',
    'get_bet',
    'get_couple_bets',

    # Statistics
    'creator_won',
    'winner_user_id',
    'get_couple_stats',
    'get_bet_history',
]
