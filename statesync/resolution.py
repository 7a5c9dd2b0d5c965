"""
Conflict resolution.

``decide_action`` is the precedence rule shared by the client orchestrator
and the server's resolve endpoint:

    1. equal non-empty checksums  -> no_conflict (nothing visibly changed)
    2. orders                     -> server_wins (never client-authored)
    3. local newer                -> local_wins
       server newer               -> server_wins
       equal timestamps           -> no_conflict

Checksums only tell *whether* something changed; which side is newer is
decided by timestamps alone. Equal timestamps with different payloads keep
the server copy and report no_conflict. The resolve endpoint passes no
checksums for orders, so it always answers server_wins there.
"""

import logging

from .checksum import checksums_match
from .timestamps import compare_timestamps, format_timestamp, max_timestamp
from .types import ConflictResolution, EntityState, SyncAction, SyncEntity

logger = logging.getLogger(__name__)


def decide_action(
    entity,
    *,
    local_timestamp,
    server_timestamp,
    local_checksum: str = '',
    server_checksum: str = '',
) -> SyncAction:
    """
    Decide which copy of ``entity`` prevails.

    Raises:
        ValueError: If either timestamp is not ISO-8601.
    """
    entity = SyncEntity(entity)

    if checksums_match(local_checksum, server_checksum):
        return SyncAction.NO_CONFLICT

    if entity is SyncEntity.ORDERS:
        return SyncAction.SERVER_WINS

    ordering = compare_timestamps(local_timestamp, server_timestamp)
    if ordering > 0:
        return SyncAction.LOCAL_WINS
    if ordering < 0:
        return SyncAction.SERVER_WINS
    return SyncAction.NO_CONFLICT


class ConflictResolver:
    """
    Client-side resolver for one entity at a time.

    On ``local_wins`` the local state is pushed through the resolve endpoint
    (cart: replace-all, profile: upsert) and the server's adjudication is
    returned. Push errors propagate so the caller can record them and leave
    the local copy untouched for the next cycle.
    """

    def __init__(self, api):
        self.api = api

    def resolve(self, local: EntityState, server: EntityState) -> ConflictResolution:
        entity = SyncEntity(local.entity)
        action = decide_action(
            entity,
            local_timestamp=local.timestamp,
            server_timestamp=server.timestamp,
            local_checksum=local.checksum,
            server_checksum=server.checksum,
        )
        logger.debug(
            '%s: local=%s server=%s -> %s', entity, local.timestamp, server.timestamp, action
        )

        if action is SyncAction.SERVER_WINS:
            return ConflictResolution(
                entity=entity,
                action=action,
                resolved_state=server.payload,
                timestamp=format_timestamp(server.timestamp),
            )

        if action is SyncAction.NO_CONFLICT:
            # Both copies are equivalent; keep the server's rendering of it.
            return ConflictResolution(
                entity=entity,
                action=action,
                resolved_state=server.payload if server.payload is not None else local.payload,
                timestamp=max_timestamp(local.timestamp, server.timestamp),
            )

        logger.info('%s: local copy is newer, pushing to server', entity)
        pushed = self.api.resolve(entity, local.wire_state(), local.timestamp)
        return pushed
