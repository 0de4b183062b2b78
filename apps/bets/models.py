from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class BetStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ACTIVE = 'active', 'Active'
    CONCLUDED = 'concluded', 'Concluded'


class BetOption(models.TextChoices):
    A = 'a', 'Option A'
    B = 'b', 'Option B'


class Bet(models.Model):
    """Wager between the two members of a couple."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    title = models.CharField(max_length=100)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal('0.01')),
            MaxValueValidator(Decimal('1000000.00')),
        ]
    )
    option_a = models.CharField(max_length=200)
    option_b = models.CharField(max_length=200)

    creator = models.ForeignKey(
        'couples.User',
        on_delete=models.CASCADE,
        related_name='created_bets'
    )
    creator_choice = models.CharField(max_length=1, choices=BetOption.choices)
    # Creator's partner at creation time. A win for the other option is credited here.
    opponent = models.ForeignKey(
        'couples.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='opposed_bets'
    )

    # Lifecycle
    status = models.CharField(
        max_length=20,
        choices=BetStatus.choices,
        default=BetStatus.PENDING
    )
    winner_option = models.CharField(
        max_length=1,
        choices=BetOption.choices,
        null=True,
        blank=True
    )
    concluded_at = models.DateTimeField(null=True, blank=True)
    concluded_by = models.ForeignKey(
        'couples.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='concluded_bets'
    )

    # Authorization scope, fixed at creation
    couple = models.ForeignKey(
        'couples.Couple',
        on_delete=models.CASCADE,
        related_name='bets'
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'bets'
        indexes = [
            models.Index(fields=['couple', 'status'], name='bets_couple_status_idx'),
            models.Index(fields=['couple', 'concluded_at'], name='bets_couple_concluded_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.amount} ({self.status})"

    @property
    def creator_won(self):
        """True/False once concluded, None before."""
        if self.winner_option is None:
            return None
        return self.winner_option == self.creator_choice

    def is_open(self):
        return self.status in (BetStatus.PENDING, BetStatus.ACTIVE)
