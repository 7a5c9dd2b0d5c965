from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema

from config.responses import success_response, error_response
from .serializers import ProfileSerializer, ProfileUpdateSerializer
from .services import (
    get_profile,
    profile_data,
    update_profile,
    AccountsServiceError,
)


class ErrorResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    error = serializers.CharField()


@extend_schema(
    methods=['GET'],
    responses={200: ProfileSerializer},
    description="Get the current user's profile (null until first written).",
    tags=['users'],
)
@extend_schema(
    methods=['PUT', 'PATCH'],
    request=ProfileUpdateSerializer,
    responses={
        200: ProfileSerializer,
        400: ErrorResponseSerializer,
    },
    description="Update full_name, phone or avatar_url. Advances the profile timestamp.",
    tags=['users'],
)
@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """Read or update the current user's profile."""
    if request.method == 'GET':
        return success_response(profile_data(get_profile(user=request.user)))

    serializer = ProfileUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        updated = update_profile(user=request.user, **serializer.validated_data)
    except AccountsServiceError as e:
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)

    return success_response(profile_data(updated), message='Profile updated successfully')
