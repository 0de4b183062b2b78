"""
Service layer unit tests for couples app.

Tests cover:
- Couple code generation and collision handling
- Join / rejoin protocol and capacity rules
- Symmetric pairing and unlinking
- Detection and repair of half-completed pairings
- Concurrent joins racing for the same slot
"""

import threading
from unittest.mock import patch

import pytest
from django.db import DatabaseError, connection

from apps.core.exceptions import ValidationError
from apps.couples.models import Couple, User
from apps.couples.services import (
    AlreadyPairedError,
    CoupleCodeExhaustedError,
    CoupleFullError,
    CoupleNotFoundError,
    PairingStateError,
    PartnerNotFoundError,
    can_join_couple,
    can_rejoin_couple,
    check_pairing_consistency,
    create_couple,
    generate_couple_code,
    get_couple_by_code,
    get_couple_overview,
    get_partner,
    is_couple_code_exists,
    join_couple,
    repair_couple_pairing,
    unlink,
)
from apps.accounts.services import is_valid_token_format


# =============================================================================
# Couple Code Tests
# =============================================================================

@pytest.mark.django_db
class TestCoupleCodes:
    """Tests for couple_codes.py service functions."""

    def test_generated_code_format(self):
        code = generate_couple_code()
        assert len(code) == 6
        assert code.isalnum()
        assert code == code.upper()

    def test_generation_retries_on_collision(self):
        taken = iter([True, True, False])
        with patch(
            'apps.couples.services.couple_codes.random_couple_code',
            side_effect=['AAAAAA', 'BBBBBB', 'CCCCCC'],
        ):
            code = generate_couple_code(exists=lambda code: next(taken))

        assert code == 'CCCCCC'

    def test_generation_exhausted(self):
        with pytest.raises(CoupleCodeExhaustedError):
            generate_couple_code(max_attempts=3, exists=lambda code: True)

    def test_exhaustion_uses_setting(self, settings):
        settings.COUPLE_CODE_MAX_ATTEMPTS = 2
        calls = []

        def exists(code):
            calls.append(code)
            return True

        with pytest.raises(CoupleCodeExhaustedError):
            generate_couple_code(exists=exists)
        assert len(calls) == 2

    def test_existing_code_detected(self, new_couple):
        assert is_couple_code_exists(new_couple['couple'].couple_code) is True
        assert is_couple_code_exists('ZZZZZ9') is False

    def test_existence_check_fails_toward_exists(self):
        with patch.object(Couple.objects, 'filter', side_effect=DatabaseError('down')):
            assert is_couple_code_exists('ABC123') is True

    def test_get_couple_by_code(self, new_couple):
        couple = new_couple['couple']
        assert get_couple_by_code(couple.couple_code) == couple
        assert get_couple_by_code('bad') is None


# =============================================================================
# Couple Creation Tests
# =============================================================================

@pytest.mark.django_db
class TestCreateCouple:

    def test_create_couple(self):
        couple, user, token = create_couple(name='  Alice  ')

        assert user.name == 'Alice'
        assert user.couple == couple
        assert user.is_paired is False
        assert user.partner is None
        assert user.auth_token == token
        assert is_valid_token_format(token)
        assert couple.created_by_user == user

    def test_create_couple_invalid_name(self):
        with pytest.raises(ValidationError):
            create_couple(name='')
        assert Couple.objects.count() == 0

    def test_create_couple_with_fixed_code(self):
        with patch(
            'apps.couples.services.couple_codes.random_couple_code',
            return_value='X7K2M9',
        ):
            couple, _, _ = create_couple(name='Alice')

        assert couple.couple_code == 'X7K2M9'

    def test_create_couple_code_exhausted(self):
        Couple.objects.create(couple_code='X7K2M9')
        with patch(
            'apps.couples.services.couple_codes.random_couple_code',
            return_value='X7K2M9',
        ):
            with pytest.raises(CoupleCodeExhaustedError):
                create_couple(name='Alice')

    def test_insert_collision_retries_with_new_code(self):
        Couple.objects.create(couple_code='X7K2M9')
        with patch(
            'apps.couples.services.couple_codes.random_couple_code',
            side_effect=['X7K2M9', 'NEW123'],
        ), patch(
            'apps.couples.services.couple_codes.is_couple_code_exists',
            return_value=False,
        ):
            couple, _, _ = create_couple(name='Alice')

        assert couple.couple_code == 'NEW123'

    def test_insert_collisions_share_attempt_bound(self, settings):
        settings.COUPLE_CODE_MAX_ATTEMPTS = 3
        Couple.objects.create(couple_code='X7K2M9')
        with patch(
            'apps.couples.services.couple_codes.random_couple_code',
            return_value='X7K2M9',
        ) as draw, patch(
            'apps.couples.services.couple_codes.is_couple_code_exists',
            return_value=False,
        ):
            with pytest.raises(CoupleCodeExhaustedError):
                create_couple(name='Alice')

        assert draw.call_count == 3
        assert Couple.objects.count() == 1
        assert not User.objects.exists()


# =============================================================================
# Join Protocol Tests
# =============================================================================

@pytest.mark.django_db
class TestJoinCouple:

    def test_join_pairs_both_users(self, new_couple):
        alice = new_couple['alice']

        bob, partner, token = join_couple(
            couple_code=new_couple['couple'].couple_code,
            name='Bob'
        )
        alice.refresh_from_db()

        assert partner == alice
        assert bob.is_paired and alice.is_paired
        assert bob.partner_id == alice.id
        assert alice.partner_id == bob.id
        assert bob.auth_token == token

    def test_join_code_is_case_insensitive(self, new_couple):
        bob, _, _ = join_couple(
            couple_code=new_couple['couple'].couple_code.lower(),
            name='Bob'
        )
        assert bob.couple == new_couple['couple']

    def test_join_unknown_code(self, db):
        with pytest.raises(CoupleNotFoundError):
            join_couple(couple_code='QQQQQQ', name='Bob')

    def test_join_requires_name(self, new_couple):
        with pytest.raises(ValidationError):
            join_couple(couple_code=new_couple['couple'].couple_code, name='')

    def test_third_member_rejected(self, paired_couple):
        code = paired_couple['couple'].couple_code

        with pytest.raises(CoupleFullError):
            join_couple(couple_code=code, name='Carol')

        assert not User.objects.filter(name='Carol').exists()
        assert can_join_couple(code) is False

    def test_join_without_free_partner_rolls_back(self, new_couple):
        alice = new_couple['alice']
        # Alice still points at a ghost partner but is marked unpaired
        ghost = User.objects.create(name='Ghost', couple=new_couple['couple'])
        User.objects.filter(id=alice.id).update(partner=ghost)
        User.objects.filter(id=ghost.id).update(partner=alice)

        with pytest.raises(PartnerNotFoundError):
            join_couple(couple_code=new_couple['couple'].couple_code, name='Bob')

        assert not User.objects.filter(name='Bob').exists()

    def test_rejoin_after_unlink(self, paired_couple):
        alice, bob = paired_couple['alice'], paired_couple['bob']
        unlink(user_id=alice.id)

        user, partner, token = join_couple(
            couple_code=paired_couple['couple'].couple_code,
            token=paired_couple['alice_token'],
        )
        bob.refresh_from_db()

        assert user.id == alice.id
        assert token == paired_couple['alice_token']
        assert partner.id == bob.id
        assert user.is_partner_of(bob)
        assert User.objects.filter(couple=paired_couple['couple']).count() == 2

    def test_rejoin_while_paired_rejected(self, paired_couple):
        with pytest.raises(AlreadyPairedError):
            join_couple(
                couple_code=paired_couple['couple'].couple_code,
                token=paired_couple['bob_token'],
            )

    def test_new_member_after_full_unlink(self, paired_couple):
        unlink(user_id=paired_couple['bob'].id)

        carol, partner, _ = join_couple(
            couple_code=paired_couple['couple'].couple_code,
            name='Carol'
        )

        # Earliest member without a partner link
        assert partner.id == paired_couple['alice'].id
        assert carol.is_paired


@pytest.mark.django_db
class TestJoinEligibility:

    def test_can_join_fresh_couple(self, new_couple):
        assert can_join_couple(new_couple['couple'].couple_code) is True

    def test_cannot_join_unknown_code(self, db):
        assert can_join_couple('NOPE00') is False

    def test_can_join_after_unlink(self, paired_couple):
        unlink(user_id=paired_couple['alice'].id)
        assert can_join_couple(paired_couple['couple'].couple_code) is True

    def test_can_join_fails_closed(self, new_couple):
        with patch.object(Couple.objects, 'filter', side_effect=DatabaseError('down')):
            assert can_join_couple(new_couple['couple'].couple_code) is False

    def test_can_rejoin_only_when_unpaired(self, paired_couple):
        code = paired_couple['couple'].couple_code
        token = paired_couple['alice_token']

        assert can_rejoin_couple(code, token) is False
        unlink(user_id=paired_couple['alice'].id)
        assert can_rejoin_couple(code, token) is True

    def test_can_rejoin_requires_member_token(self, paired_couple):
        code = paired_couple['couple'].couple_code
        assert can_rejoin_couple(code, None) is False
        assert can_rejoin_couple(code, 'token_abc_def') is False


# =============================================================================
# Unlink Tests
# =============================================================================

@pytest.mark.django_db
class TestUnlink:

    def test_unlink_clears_both(self, paired_couple):
        alice, bob = paired_couple['alice'], paired_couple['bob']

        former = unlink(user_id=alice.id)
        alice.refresh_from_db()
        bob.refresh_from_db()

        assert former.id == bob.id
        assert not alice.is_paired and alice.partner_id is None
        assert not bob.is_paired and bob.partner_id is None

    def test_unlink_is_idempotent(self, paired_couple):
        alice = paired_couple['alice']
        unlink(user_id=alice.id)

        assert unlink(user_id=alice.id) is None
        alice.refresh_from_db()
        assert not alice.is_paired

    def test_unlink_leaves_relinked_partner_alone(self, paired_couple):
        alice, bob = paired_couple['alice'], paired_couple['bob']
        carol = User.objects.create(name='Carol', couple=paired_couple['couple'])
        # Bob already points elsewhere
        User.objects.filter(id=bob.id).update(partner=carol)

        unlink(user_id=alice.id)
        bob.refresh_from_db()

        assert bob.partner_id == carol.id


# =============================================================================
# Consistency and Repair Tests
# =============================================================================

@pytest.mark.django_db
class TestPairingRepair:

    def test_consistent_pairing(self, paired_couple):
        check_pairing_consistency(paired_couple['alice'])
        check_pairing_consistency(paired_couple['bob'])

    def test_half_completed_pairing_detected(self, paired_couple):
        alice, bob = paired_couple['alice'], paired_couple['bob']
        User.objects.filter(id=bob.id).update(is_paired=False, partner=None)

        with pytest.raises(PairingStateError):
            check_pairing_consistency(alice)

    def test_paired_flag_without_partner_detected(self, new_couple):
        alice = new_couple['alice']
        alice.is_paired = True

        with pytest.raises(PairingStateError):
            check_pairing_consistency(alice)

    def test_repair_clears_one_sided_link(self, paired_couple):
        alice, bob = paired_couple['alice'], paired_couple['bob']
        User.objects.filter(id=bob.id).update(is_paired=False, partner=None)

        fixed = repair_couple_pairing(couple_id=paired_couple['couple'].id)
        alice.refresh_from_db()

        assert fixed == 1
        assert not alice.is_paired and alice.partner_id is None

    def test_repair_marks_mutual_link_paired(self, paired_couple):
        bob = paired_couple['bob']
        User.objects.filter(id=bob.id).update(is_paired=False)

        fixed = repair_couple_pairing(couple_id=paired_couple['couple'].id)
        bob.refresh_from_db()

        assert fixed == 1
        assert bob.is_paired

    def test_repair_consistent_couple_is_noop(self, paired_couple):
        assert repair_couple_pairing(couple_id=paired_couple['couple'].id) == 0

    def test_overview_repairs_on_load(self, paired_couple):
        alice, bob = paired_couple['alice'], paired_couple['bob']
        User.objects.filter(id=bob.id).update(is_paired=False, partner=None)
        alice.refresh_from_db()

        overview = get_couple_overview(user=alice)

        assert overview['repaired'] == 1
        assert overview['partner'] is None
        assert overview['user'].is_paired is False

    def test_get_partner(self, paired_couple):
        assert get_partner(paired_couple['alice']) == paired_couple['bob']


# =============================================================================
# Concurrency Tests
# =============================================================================

@pytest.mark.django_db(transaction=True)
class TestConcurrentJoins:
    """Join races against real, committed transactions."""

    def test_single_open_slot_taken_once(self):
        """Concurrent joiners of a one-member couple: exactly one pairs."""
        couple, alice, _ = create_couple(name='Alice')

        results = []
        errors = []

        def join_in_thread(name):
            try:
                user, partner, _ = join_couple(couple_code=couple.couple_code, name=name)
                results.append((user.id, partner.id))
            except CoupleFullError:
                errors.append(name)
            finally:
                connection.close()

        # Spawn 5 threads joining simultaneously
        threads = [
            threading.Thread(target=join_in_thread, args=(f'Joiner {i}',))
            for i in range(5)
        ]

        for thread in threads:
            thread.start()

        for thread in threads:
            thread.join()

        # Verify: one join succeeded, the others found the couple full
        assert len(results) == 1
        assert len(errors) == 4
        assert results[0][1] == alice.id

        # Verify: only the winner was created, and the pair is symmetric
        assert couple.paired_members().count() == 2
        assert User.objects.filter(couple=couple).count() == 2

        joiner = User.objects.get(id=results[0][0])
        alice.refresh_from_db()
        assert alice.partner_id == joiner.id
        assert joiner.partner_id == alice.id
