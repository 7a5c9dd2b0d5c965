import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema

from apps.realtime.broadcaster import get_broadcaster
from config.responses import success_response, error_response
from .serializers import ResolveRequestSerializer, ResolutionSerializer, SnapshotSerializer
from .services import build_snapshot, resolve_entity, SyncServiceError

logger = logging.getLogger(__name__)


@extend_schema(
    responses={200: SnapshotSerializer},
    description="Cart, orders and profile of the current user with timestamps and checksums.",
    tags=['sync'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sync_state(request):
    """Return the full sync snapshot."""
    return success_response(build_snapshot(request.user))


@extend_schema(
    request=ResolveRequestSerializer,
    responses={200: ResolutionSerializer},
    description=(
        "Adjudicate one entity against the server rows. A newer local cart or "
        "profile is written to the server; orders always resolve to server_wins."
    ),
    tags=['sync'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sync_resolve(request):
    """Resolve one entity."""
    serializer = ResolveRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        resolution = resolve_entity(
            user=request.user,
            broadcaster=get_broadcaster(),
            **serializer.validated_data,
        )
    except SyncServiceError as e:
        logger.warning('Resolve of %s rejected for %s: %s',
                       serializer.validated_data['entity'], request.user.id, e)
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)

    return success_response(resolution)
