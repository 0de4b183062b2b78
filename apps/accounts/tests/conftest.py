import pytest
from rest_framework.test import APIClient

from apps.accounts.token_storage import FileTokenStore, MemoryTokenStore
from apps.couples.services import create_couple, join_couple


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def member(db):
    """Create a couple with one member; return (user, token)."""
    _, user, token = create_couple(name='Alice')
    return user, token


@pytest.fixture
def paired_member(member):
    """Pair Bob with Alice; return Alice as (user, token)."""
    user, token = member
    join_couple(couple_code=user.couple.couple_code, name='Bob')
    user.refresh_from_db()
    return user, token


@pytest.fixture
def authenticated_client(api_client, member):
    """Return an API client authenticated with Alice's token."""
    _, token = member
    api_client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    return api_client


@pytest.fixture
def memory_store():
    return MemoryTokenStore()


@pytest.fixture
def file_store(tmp_path):
    return FileTokenStore(path=tmp_path / 'auth' / 'token.json')
