"""
Test doubles for the sync client.

``FakeApi`` stands in for the HTTP client so orchestration can be driven
with hand-built snapshots.
"""

from statesync.checksum import calculate_checksum
from statesync.timestamps import EPOCH, format_timestamp
from statesync.types import ConflictResolution, EntityState, SyncAction, SyncEntity, SyncSnapshot

LATER = '2025-01-30T10:00:05.000Z'
EARLIER = '2025-01-30T10:00:00.000Z'


def server_state(entity, payload, timestamp=EPOCH):
    entity = SyncEntity(entity)
    checksum = calculate_checksum(entity, payload) if entity.has_checksum else ''
    return EntityState(entity=entity, payload=payload, timestamp=timestamp, checksum=checksum)


def make_snapshot(cart=None, orders=None, profile=None, cart_ts=EPOCH, orders_ts=EPOCH, profile_ts=EPOCH):
    return SyncSnapshot(
        cart=server_state(SyncEntity.CART, cart or [], cart_ts),
        orders=server_state(SyncEntity.ORDERS, orders or [], orders_ts),
        profile=server_state(SyncEntity.PROFILE, profile, profile_ts),
        timestamp=LATER,
    )


class FakeApi:
    """Records pushes and answers with the pushed state at ``push_timestamp``."""

    def __init__(self, snapshot=None, fetch_error=None, push_errors=None, push_timestamp=LATER):
        self.snapshot = snapshot or make_snapshot()
        self.fetch_error = fetch_error
        self.push_errors = push_errors or {}
        self.push_timestamp = push_timestamp
        self.fetches = 0
        self.pushes = []

    def fetch_state(self):
        self.fetches += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.snapshot

    def resolve(self, entity, local_state, local_timestamp):
        entity = SyncEntity(entity)
        self.pushes.append((entity, local_state, format_timestamp(local_timestamp)))
        if entity in self.push_errors:
            raise self.push_errors[entity]
        resolved = local_state if entity is SyncEntity.PROFILE else list(local_state['items'])
        return ConflictResolution(
            entity=entity,
            action=SyncAction.LOCAL_WINS,
            resolved_state=resolved,
            timestamp=self.push_timestamp,
        )
