"""
Bet change notifications.

A ``BetChangeNotifier`` fans committed insert/update/delete events on bet
rows out to subscribers whose column-equality filter matches the row.

Delivery happens after the database transaction commits and may repeat an
event (for example a retried request). Subscribers should treat events as
hints to merge by ``id`` or re-fetch, never as proof that a mutation
succeeded.

Example:
    Watching the active bets of a couple::

        from apps.bets.notifications import subscribe_to_bets

        subscription = subscribe_to_bets(
            user,
            status='active',
            on_update=lambda row: print(row['id'], row['status']),
        )
        ...
        subscription.unsubscribe()
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from django.apps import apps as django_apps
from django.db import transaction

from apps.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

INSERT = 'INSERT'
UPDATE = 'UPDATE'
DELETE = 'DELETE'

RowCallback = Callable[[dict], None]
IdCallback = Callable[[str], None]


def bet_to_row(bet) -> dict:
    """Flat row representation of a bet, keyed by column name."""
    return {
        'id': str(bet.id),
        'title': bet.title,
        'amount': str(bet.amount),
        'option_a': bet.option_a,
        'option_b': bet.option_b,
        'creator_id': str(bet.creator_id),
        'creator_choice': bet.creator_choice,
        'opponent_id': str(bet.opponent_id) if bet.opponent_id else None,
        'status': bet.status,
        'winner_option': bet.winner_option,
        'created_at': bet.created_at.isoformat() if bet.created_at else None,
        'concluded_at': bet.concluded_at.isoformat() if bet.concluded_at else None,
        'concluded_by_id': str(bet.concluded_by_id) if bet.concluded_by_id else None,
        'couple_id': str(bet.couple_id),
    }


@dataclass(frozen=True)
class BetChange:
    event_type: str
    new: Optional[dict] = None
    old: Optional[dict] = None

    @property
    def row(self) -> Optional[dict]:
        """Row used for filtering: the new row, or the old one for deletes."""
        return self.old if self.event_type == DELETE else self.new


class Subscription:
    """Handle returned by ``BetChangeNotifier.subscribe``."""

    def __init__(
        self,
        notifier: 'BetChangeNotifier',
        filters: Dict[str, str],
        on_insert: Optional[RowCallback] = None,
        on_update: Optional[RowCallback] = None,
        on_delete: Optional[IdCallback] = None,
    ):
        self.notifier = notifier
        self.filters = {key: str(value) for key, value in filters.items()}
        self.on_insert = on_insert
        self.on_update = on_update
        self.on_delete = on_delete

    def matches(self, row: Optional[dict]) -> bool:
        if row is None:
            return False
        return all(row.get(column) == value for column, value in self.filters.items())

    def deliver(self, change: BetChange) -> None:
        if change.event_type == INSERT and self.on_insert:
            self.on_insert(change.new)
        elif change.event_type == UPDATE and self.on_update:
            self.on_update(change.new)
        elif change.event_type == DELETE and self.on_delete:
            self.on_delete(change.old['id'])

    def unsubscribe(self) -> None:
        self.notifier.unsubscribe(self)


class BetChangeNotifier:
    """
    In-process change feed for the ``bets`` table.

    One instance is created when the bets app starts (see ``BetsConfig``)
    and closed when the process stops.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        *,
        filters: Dict[str, str],
        on_insert: Optional[RowCallback] = None,
        on_update: Optional[RowCallback] = None,
        on_delete: Optional[IdCallback] = None,
    ) -> Subscription:
        subscription = Subscription(
            self,
            filters,
            on_insert=on_insert,
            on_update=on_update,
            on_delete=on_delete,
        )
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to bet changes with filters %s", subscription.filters)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, change: BetChange) -> int:
        """
        Deliver ``change`` to every matching subscriber.

        A failing subscriber is logged and does not stop delivery to the
        others. Returns the number of subscribers notified.
        """
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change.row)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.deliver(change)
            except Exception:
                logger.exception("Bet change subscriber failed on %s event", change.event_type)
                continue
            delivered += 1
        return delivered

    def close(self) -> None:
        with self._lock:
            self._subscriptions.clear()


def get_notifier() -> BetChangeNotifier:
    return django_apps.get_app_config('bets').notifier


def publish_on_commit(change: BetChange) -> None:
    """Publish ``change`` once the surrounding transaction commits."""
    notifier = get_notifier()
    transaction.on_commit(lambda: notifier.publish(change))


def subscribe_to_bets(
    user,
    *,
    status: Optional[str] = None,
    on_insert: Optional[RowCallback] = None,
    on_update: Optional[RowCallback] = None,
    on_delete: Optional[IdCallback] = None,
) -> Subscription:
    """
    Subscribe to bet changes of the user's couple, optionally by status.

    Raises:
        NotFoundError: If the user has no couple
    """
    if user is None or user.couple_id is None:
        raise NotFoundError("No couple found for subscription")

    filters = {'couple_id': str(user.couple_id)}
    if status is not None:
        filters['status'] = status

    return get_notifier().subscribe(
        filters=filters,
        on_insert=on_insert,
        on_update=on_update,
        on_delete=on_delete,
    )


def subscribe_to_active_bets(user, **callbacks) -> Subscription:
    return subscribe_to_bets(user, status='active', **callbacks)


def subscribe_to_concluded_bets(user, **callbacks) -> Subscription:
    return subscribe_to_bets(user, status='concluded', **callbacks)
