"""Services for the sync endpoints."""

from .exceptions import (
    SyncServiceError,
    InvalidLocalStateError,
)
from .state_sync import (
    build_snapshot,
    profile_state,
    push_timestamp,
    resolve_entity,
)

__all__ = [
    # Exceptions
    'SyncServiceError',
    'InvalidLocalStateError',
    # Services
    'build_snapshot',
    'profile_state',
    'push_timestamp',
    'resolve_entity',
]
