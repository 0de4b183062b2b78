from rest_framework import serializers

from .models import Couple, User


# =============================================================================
# Input Serializers
# =============================================================================

class CreateCoupleSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, trim_whitespace=False)


class JoinCoupleSerializer(serializers.Serializer):
    """
    Validate input for joining a couple.

    Fields:
        couple_code (str): 6 character code shared by the partner
        name (str): Display name, required unless rejoining with a token
    """

    couple_code = serializers.CharField()
    name = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


# =============================================================================
# Output Serializers
# =============================================================================

class UserSerializer(serializers.ModelSerializer):
    """Couple member as seen by the members themselves."""

    partner_id = serializers.UUIDField(read_only=True, allow_null=True)
    couple_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'couple_id', 'partner_id', 'is_paired', 'created_at']
        read_only_fields = fields


class PartnerSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name']
        read_only_fields = fields


class CoupleSerializer(serializers.ModelSerializer):
    members = PartnerSerializer(many=True, read_only=True)

    class Meta:
        model = Couple
        fields = ['id', 'couple_code', 'created_by_user', 'created_at', 'members']
        read_only_fields = fields


class CreateCoupleResponseSerializer(serializers.Serializer):
    couple = CoupleSerializer()
    user = UserSerializer()
    token = serializers.CharField()


class JoinCoupleResponseSerializer(serializers.Serializer):
    user = UserSerializer()
    partner = PartnerSerializer()
    token = serializers.CharField()


class CanJoinResponseSerializer(serializers.Serializer):
    can_join = serializers.BooleanField()
    can_rejoin = serializers.BooleanField()


class CoupleOverviewSerializer(serializers.Serializer):
    couple = CoupleSerializer()
    user = UserSerializer()
    partner = PartnerSerializer(allow_null=True)
    repaired = serializers.IntegerField()


class UnlinkResponseSerializer(serializers.Serializer):
    unlinked = serializers.BooleanField()
    former_partner_id = serializers.UUIDField(allow_null=True)


class RepairResponseSerializer(serializers.Serializer):
    repaired = serializers.IntegerField()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
