import pytest
from rest_framework.test import APIClient

from apps.bets.notifications import get_notifier
from apps.bets.services import approve_bet, create_bet
from apps.couples.services import create_couple, join_couple


def _make_couple(first, second):
    couple, a, a_token = create_couple(name=first)
    b, _, b_token = join_couple(couple_code=couple.couple_code, name=second)
    a.refresh_from_db()
    return couple, a, a_token, b, b_token


@pytest.fixture
def couple(db):
    """Alice and Bob, paired."""
    couple, alice, alice_token, bob, bob_token = _make_couple('Alice', 'Bob')
    return {
        'couple': couple,
        'alice': alice,
        'alice_token': alice_token,
        'bob': bob,
        'bob_token': bob_token,
    }


@pytest.fixture
def alice(couple):
    return couple['alice']


@pytest.fixture
def bob(couple):
    return couple['bob']


@pytest.fixture
def other_couple(db):
    """Carol and Dave, paired, in a different couple."""
    couple, carol, carol_token, dave, _ = _make_couple('Carol', 'Dave')
    return {'couple': couple, 'carol': carol, 'carol_token': carol_token, 'dave': dave}


@pytest.fixture
def bet_data():
    return {
        'title': 'Dinner tonight',
        'amount': '500',
        'option_a': 'Pizza',
        'option_b': 'Sushi',
        'creator_choice': 'a',
    }


@pytest.fixture
def pending_bet(alice, bet_data):
    return create_bet(user=alice, require_approval=True, **bet_data)


@pytest.fixture
def active_bet(pending_bet, bob):
    return approve_bet(bet_id=pending_bet.id, user=bob)


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
def alice_client(client_for, couple):
    return client_for(couple['alice_token'])


@pytest.fixture
def bob_client(client_for, couple):
    return client_for(couple['bob_token'])


@pytest.fixture
def notifier():
    """The app's notifier, emptied after the test."""
    notifier = get_notifier()
    yield notifier
    notifier.close()
