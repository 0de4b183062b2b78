# ==========================================
# apps/couples/models.py
# ==========================================

from django.db import models
import uuid


class Couple(models.Model):
    """Pairing group of up to two users sharing a code and a pool of bets."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    couple_code = models.CharField(max_length=6, unique=True, editable=False)
    created_by_user = models.ForeignKey(
        'couples.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'couples'
        ordering = ['-created_at']

    def __str__(self):
        return self.couple_code

    def paired_members(self):
        return self.members.filter(is_paired=True)


class User(models.Model):
    """
    Member of a couple, identified by an opaque auth token.

    Not a Django auth user: there is no password, the token stored on the
    device is the only credential.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=50)
    couple = models.ForeignKey(Couple, on_delete=models.CASCADE, related_name='members')

    # Pairing
    partner = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    is_paired = models.BooleanField(default=False)

    # Cleared on logout, never reused
    auth_token = models.CharField(max_length=128, unique=True, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['couple', 'is_paired'], name='users_couple_paired_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return self.name

    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False

    def is_partner_of(self, other):
        return (
            other is not None
            and self.partner_id == other.id
            and other.partner_id == self.id
        )
