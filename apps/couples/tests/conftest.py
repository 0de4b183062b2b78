import pytest
from rest_framework.test import APIClient

from apps.couples.services import create_couple, join_couple


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def client_for():
    """Return a factory building API clients authenticated with a token."""
    def _client_for(token):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
        return client
    return _client_for


@pytest.fixture
def new_couple(db):
    """Create a couple with a single, unpaired member (Alice)."""
    couple, alice, token = create_couple(name='Alice')
    return {'couple': couple, 'alice': alice, 'alice_token': token}


@pytest.fixture
def paired_couple(new_couple):
    """Create a couple where Bob has joined Alice."""
    bob, partner, token = join_couple(
        couple_code=new_couple['couple'].couple_code,
        name='Bob'
    )
    new_couple['alice'].refresh_from_db()
    return {**new_couple, 'bob': bob, 'bob_token': token}
