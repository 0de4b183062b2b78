"""
Service layer unit tests for accounts app.

Tests cover:
- Token format, embedded timestamp and expiry
- Durable token storage
- Identity resolution from stored tokens
- Logout and renaming
"""

import json
import time
import uuid
from unittest.mock import patch

import pytest
from rest_framework.test import APIRequestFactory

from apps.accounts.authentication import BackendUnavailable, CoupleTokenAuthentication
from apps.accounts.services import (
    InvalidTokenError,
    UserNotFoundError,
    generate_auth_token,
    generate_secure_token,
    get_current_couple,
    get_current_couple_id,
    get_current_user,
    is_authenticated,
    is_token_expired,
    is_valid_token_format,
    login_with_token,
    logout,
    random_couple_code,
    resolve_user,
    update_user_name,
)
from apps.accounts.services.tokens import to_base36, token_issued_at_ms
from apps.accounts.token_storage import AUTH_TOKEN_KEY, FileTokenStore
from apps.core.exceptions import BackendUnavailableError, ValidationError
from apps.couples.models import User

DAY_MS = 24 * 60 * 60 * 1000


# =============================================================================
# Token Tests
# =============================================================================

class TestTokens:

    def test_token_format(self):
        token = generate_auth_token()
        assert is_valid_token_format(token)
        assert token.startswith('token_')

    def test_tokens_are_unique(self):
        assert len({generate_auth_token() for _ in range(100)}) == 100

    def test_embedded_timestamp(self):
        token = generate_auth_token(now_ms=1700000000000)
        assert token.split('_')[1] == to_base36(1700000000000)
        assert token_issued_at_ms(token) == 1700000000000

    def test_random_part_with_underscore(self):
        token = 'token_lq2x9k0a_ab_cd-EF'
        assert token_issued_at_ms(token) == int('lq2x9k0a', 36)

    @pytest.mark.parametrize('token', [
        None, '', 'token', 'token_ABC_xyz', 'bearer_abc_xyz', 'token_abc_', 'token_abc_x y',
    ])
    def test_invalid_formats(self, token):
        assert not is_valid_token_format(token)

    def test_fresh_token_not_expired(self):
        assert not is_token_expired(generate_auth_token())

    def test_token_expires_after_30_days(self):
        now = int(time.time() * 1000)
        old = generate_auth_token(now_ms=now - 31 * DAY_MS)
        recent = generate_auth_token(now_ms=now - 29 * DAY_MS)

        assert is_token_expired(old, now_ms=now)
        assert not is_token_expired(recent, now_ms=now)

    def test_max_age_is_configurable(self, settings):
        settings.AUTH_TOKEN_MAX_AGE_DAYS = 1
        now = int(time.time() * 1000)
        assert is_token_expired(generate_auth_token(now_ms=now - 2 * DAY_MS), now_ms=now)

    def test_malformed_token_counts_as_expired(self):
        assert is_token_expired('garbage')

    def test_secure_token_length(self):
        # 32 bytes base64url without padding
        assert len(generate_secure_token()) == 43

    def test_secure_token_fallback(self):
        with patch('apps.accounts.services.tokens.secrets.token_bytes', side_effect=NotImplementedError):
            token = generate_secure_token(8)
        assert len(token) == 16

    def test_couple_code_alphabet(self):
        for _ in range(50):
            code = random_couple_code()
            assert len(code) == 6
            assert all(ch.isdigit() or ('A' <= ch <= 'Z') for ch in code)

    def test_base36(self):
        assert to_base36(0) == '0'
        assert to_base36(35) == 'z'
        assert to_base36(36) == '10'


# =============================================================================
# Token Storage Tests
# =============================================================================

class TestTokenStorage:

    def test_memory_store(self, memory_store):
        assert memory_store.get() is None
        memory_store.store('token_a_b')
        assert memory_store.get() == 'token_a_b'
        memory_store.clear()
        assert memory_store.get() is None

    def test_file_store_survives_new_instance(self, file_store):
        file_store.store('token_a_b')

        reopened = FileTokenStore(path=file_store.path)
        assert reopened.get() == 'token_a_b'

    def test_file_store_fixed_key(self, file_store):
        file_store.store('token_a_b')
        data = json.loads(file_store.path.read_text())
        assert data == {AUTH_TOKEN_KEY: 'token_a_b'}

    def test_file_store_clear(self, file_store):
        file_store.store('token_a_b')
        file_store.clear()
        assert file_store.get() is None

    def test_file_store_missing_file(self, file_store):
        assert file_store.get() is None
        file_store.clear()

    def test_file_store_corrupt_file(self, file_store):
        file_store.path.parent.mkdir(parents=True)
        file_store.path.write_text('{not json')
        assert file_store.get() is None

    def test_file_store_default_path(self, settings, tmp_path):
        settings.AUTH_TOKEN_STORE_PATH = str(tmp_path / 'default.json')
        assert FileTokenStore().path == tmp_path / 'default.json'


# =============================================================================
# Identity Tests
# =============================================================================

@pytest.mark.django_db
class TestIdentity:

    def test_resolve_user(self, member):
        user, token = member
        assert resolve_user(token) == user

    def test_resolve_unknown_token(self, db):
        assert resolve_user(generate_auth_token()) is None

    def test_resolve_invalid_token(self, db):
        assert resolve_user('nope') is None
        assert resolve_user(None) is None

    def test_resolve_expired_token(self, member):
        user, _ = member
        old = generate_auth_token(now_ms=int(time.time() * 1000) - 40 * DAY_MS)
        User.objects.filter(id=user.id).update(auth_token=old)

        assert resolve_user(old) is None

    def test_get_current_user(self, member, memory_store):
        user, token = member
        memory_store.store(token)

        assert get_current_user(memory_store) == user
        assert get_current_couple_id(memory_store) == user.couple_id
        assert get_current_couple(memory_store) == user.couple
        assert is_authenticated(memory_store)

    def test_get_current_user_empty_store(self, db, memory_store):
        assert get_current_user(memory_store) is None
        assert get_current_couple_id(memory_store) is None
        assert not is_authenticated(memory_store)

    def test_invalid_stored_token_is_cleared(self, db, memory_store):
        memory_store.store('garbage')

        assert get_current_user(memory_store) is None
        assert memory_store.get() is None

    def test_expired_stored_token_is_cleared(self, db, memory_store):
        memory_store.store(generate_auth_token(now_ms=1))

        assert get_current_user(memory_store) is None
        assert memory_store.get() is None

    def test_login_with_token(self, member, file_store):
        user, token = member
        assert login_with_token(file_store, token) == user
        assert file_store.get() == token

    def test_login_with_invalid_token(self, db, memory_store):
        with pytest.raises(InvalidTokenError):
            login_with_token(memory_store, 'garbage')
        assert memory_store.get() is None

    def test_logout(self, member, memory_store):
        user, token = member
        memory_store.store(token)

        logout(user=user, store=memory_store)

        assert memory_store.get() is None
        assert resolve_user(token) is None
        user.refresh_from_db()
        assert user.auth_token is None

    def test_update_user_name(self, member):
        user, _ = member
        updated = update_user_name(user_id=user.id, name=' Ally ')
        assert updated.name == 'Ally'

    def test_update_user_name_invalid(self, member):
        user, _ = member
        with pytest.raises(ValidationError):
            update_user_name(user_id=user.id, name='x' * 51)

    def test_update_unknown_user(self, db):
        with pytest.raises(UserNotFoundError):
            update_user_name(user_id=uuid.uuid4(), name='Nobody')


# =============================================================================
# Authentication Class Tests
# =============================================================================

@pytest.mark.django_db
class TestCoupleTokenAuthentication:

    def setup_method(self):
        self.factory = APIRequestFactory()
        self.auth = CoupleTokenAuthentication()

    def test_valid_token(self, member):
        user, token = member
        request = self.factory.get('/', HTTP_AUTHORIZATION=f'Token {token}')

        assert self.auth.authenticate(request) == (user, token)

    def test_missing_header(self, db):
        assert self.auth.authenticate(self.factory.get('/')) is None

    def test_other_keyword(self, member):
        _, token = member
        request = self.factory.get('/', HTTP_AUTHORIZATION=f'Bearer {token}')
        assert self.auth.authenticate(request) is None

    def test_backend_failure(self, member):
        _, token = member
        request = self.factory.get('/', HTTP_AUTHORIZATION=f'Token {token}')

        with patch(
            'apps.accounts.authentication.resolve_user',
            side_effect=BackendUnavailableError('down'),
        ):
            with pytest.raises(BackendUnavailable):
                self.auth.authenticate(request)
