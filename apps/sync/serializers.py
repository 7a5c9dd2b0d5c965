from rest_framework import serializers

from statesync.timestamps import parse_timestamp
from statesync.types import SyncEntity


class ResolveRequestSerializer(serializers.Serializer):
    """Body of POST /api/sync/resolve/."""

    entity = serializers.ChoiceField(choices=[entity.value for entity in SyncEntity])
    local_state = serializers.JSONField(allow_null=True)
    local_timestamp = serializers.CharField()

    def validate_local_timestamp(self, value):
        try:
            parse_timestamp(value)
        except ValueError:
            raise serializers.ValidationError("Must be an ISO-8601 timestamp")
        return value

    def validate(self, attrs):
        state = attrs['local_state']
        if attrs['entity'] == SyncEntity.PROFILE.value:
            if state is not None and not isinstance(state, dict):
                raise serializers.ValidationError({'local_state': 'Must be an object or null'})
        elif not isinstance(state, dict):
            raise serializers.ValidationError({'local_state': 'Must be an object'})
        return attrs


class CartEntitySerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField())
    total_items = serializers.IntegerField()
    total_price = serializers.FloatField()
    updated_at = serializers.CharField()
    checksum = serializers.CharField()


class OrdersEntitySerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField())
    count = serializers.IntegerField()
    updated_at = serializers.CharField()
    checksum = serializers.CharField()


class ProfileEntitySerializer(serializers.Serializer):
    data = serializers.DictField(allow_null=True)
    updated_at = serializers.CharField()


class SnapshotSerializer(serializers.Serializer):
    """Schema of the state snapshot (documentation only)."""

    cart = CartEntitySerializer()
    orders = OrdersEntitySerializer()
    profile = ProfileEntitySerializer()
    timestamp = serializers.CharField()


class ResolutionSerializer(serializers.Serializer):
    """Schema of a resolution (documentation only)."""

    action = serializers.ChoiceField(choices=['local_wins', 'server_wins', 'no_conflict'])
    resolved_state = serializers.JSONField(allow_null=True)
    timestamp = serializers.CharField()
