"""
Couples app services layer.

Services contain the pairing protocol and orchestrate operations across
couples and users. All state-changing operations use transactions and
row locks on the couple.
"""

from .exceptions import (
    CoupleNotFoundError,
    PartnerNotFoundError,
    CoupleFullError,
    AlreadyPairedError,
    CoupleCodeExhaustedError,
    PairingStateError,
)

from .couple_codes import (
    is_couple_code_exists,
    generate_couple_code,
    free_couple_codes,
    get_couple_by_code,
    can_join_couple,
    can_rejoin_couple,
)

from .pairing import (
    create_couple,
    join_couple,
    unlink,
    check_pairing_consistency,
    repair_couple_pairing,
    get_partner,
    get_couple_overview,
)


__all__ = [
    # Exceptions
    'CoupleNotFoundError',
    'PartnerNotFoundError',
    'CoupleFullError',
    'AlreadyPairedError',
    'CoupleCodeExhaustedError',
    'PairingStateError',

    # Couple codes
    'is_couple_code_exists',
    'generate_couple_code',
    'free_couple_codes',
    'get_couple_by_code',
    'can_join_couple',
    'can_rejoin_couple',

    # Pairing
    'create_couple',
    'join_couple',
    'unlink',
    'check_pairing_consistency',
    'repair_couple_pairing',
    'get_partner',
    'get_couple_overview',
]
