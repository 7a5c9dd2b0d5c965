from rest_framework import serializers

from .services import PROFILE_FIELDS


class ProfileSerializer(serializers.Serializer):
    """Wire form of the profile entity."""

    id = serializers.UUIDField(read_only=True)
    email = serializers.EmailField(read_only=True)
    full_name = serializers.CharField(read_only=True)
    phone = serializers.CharField(read_only=True)
    user_type = serializers.CharField(read_only=True)
    avatar_url = serializers.CharField(read_only=True)
    created_at = serializers.CharField(read_only=True)
    updated_at = serializers.CharField(read_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    """Serializer for profile updates."""

    full_name = serializers.CharField(
        required=False, allow_blank=True, max_length=PROFILE_FIELDS['full_name']
    )
    phone = serializers.CharField(
        required=False, allow_blank=True, max_length=PROFILE_FIELDS['phone']
    )
    avatar_url = serializers.URLField(
        required=False, allow_blank=True, max_length=PROFILE_FIELDS['avatar_url']
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError(
                'At least one field (full_name, phone or avatar_url) must be provided'
            )
        return attrs
