from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Bet
from .notifications import BetChange, DELETE, INSERT, UPDATE, bet_to_row, publish_on_commit


@receiver(post_save, sender=Bet, dispatch_uid='bets_publish_save')
def publish_bet_save(sender, instance, created, **kwargs):
    row = bet_to_row(instance)
    publish_on_commit(BetChange(event_type=INSERT if created else UPDATE, new=row))


@receiver(post_delete, sender=Bet, dispatch_uid='bets_publish_delete')
def publish_bet_delete(sender, instance, **kwargs):
    publish_on_commit(BetChange(event_type=DELETE, old=bet_to_row(instance)))
