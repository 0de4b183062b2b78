from rest_framework import serializers

from .models import Bet, BetStatus


# =============================================================================
# Input Serializers
# =============================================================================

class BetFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for bet listing.

    Query Parameters:
        status (str): Filter by bet status
    """

    status = serializers.ChoiceField(choices=BetStatus.choices, required=False)


class BetCreateSerializer(serializers.Serializer):
    """
    Shape of the bet creation payload.

    Content rules (length bounds, sanitizing, amount rounding) are enforced
    by the lifecycle service so every entry point applies the same rules.
    ``amount`` is accepted as text or number and parsed as a decimal.
    """

    title = serializers.CharField(allow_blank=True, trim_whitespace=False)
    amount = serializers.CharField(trim_whitespace=False)
    option_a = serializers.CharField(allow_blank=True, trim_whitespace=False)
    option_b = serializers.CharField(allow_blank=True, trim_whitespace=False)
    creator_choice = serializers.CharField()


class ConcludeBetSerializer(serializers.Serializer):
    winner_option = serializers.CharField()


# =============================================================================
# Output Serializers
# =============================================================================

class BetSerializer(serializers.ModelSerializer):
    """Full bet representation."""

    creator_name = serializers.CharField(source='creator.name', read_only=True)
    concluded_by_name = serializers.CharField(
        source='concluded_by.name',
        read_only=True,
        default=None
    )
    creator_won = serializers.BooleanField(read_only=True, allow_null=True)

    class Meta:
        model = Bet
        fields = [
            'id',
            'title',
            'amount',
            'option_a',
            'option_b',
            'creator',
            'creator_name',
            'creator_choice',
            'opponent',
            'status',
            'winner_option',
            'creator_won',
            'created_at',
            'concluded_at',
            'concluded_by',
            'concluded_by_name',
            'couple',
        ]
        read_only_fields = fields


class MemberStatsSerializer(serializers.Serializer):
    user_id = serializers.UUIDField(allow_null=True)
    name = serializers.CharField()
    total_wins = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    win_rate = serializers.FloatField()
    current_streak = serializers.IntegerField()


class RecentBetSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    title = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    concluded_at = serializers.DateTimeField()


class CoupleStatsSerializer(serializers.Serializer):
    total_bets = serializers.IntegerField()
    members = MemberStatsSerializer(many=True)
    recent_bets = RecentBetSerializer(many=True)


class BetHistorySerializer(serializers.Serializer):
    """Concluded bet with the projected winner."""

    id = serializers.UUIDField()
    title = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    option_a = serializers.CharField()
    option_b = serializers.CharField()
    creator_choice = serializers.CharField()
    winner_option = serializers.CharField()
    winner = serializers.CharField()
    winner_id = serializers.UUIDField(allow_null=True)
    winner_name = serializers.CharField()
    creator_name = serializers.CharField()
    concluded_at = serializers.DateTimeField()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
