from rest_framework import serializers

from apps.couples.models import User


class CurrentUserSerializer(serializers.ModelSerializer):
    """The authenticated member with its couple code and partner."""

    couple_id = serializers.UUIDField(read_only=True)
    couple_code = serializers.CharField(source='couple.couple_code', read_only=True)
    partner_id = serializers.UUIDField(read_only=True, allow_null=True)
    partner_name = serializers.CharField(source='partner.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'couple_id',
            'couple_code',
            'is_paired',
            'partner_id',
            'partner_name',
            'created_at',
        ]
        read_only_fields = fields


class UpdateNameSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, trim_whitespace=False)


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
