"""
statesync - Offline-first state synchronization for the grocery apps.

This package holds the protocol core shared by the Django backend and the
device-side client, plus the client itself.

Protocol core (imported by the server apps too):
- timestamps: millisecond ISO-8601 stamps, epoch sentinel, monotonic advance
- checksum: canonical JSON projection + MD5 digest per entity
- types: SyncEntity, EntityState, SyncSnapshot, ConflictResolution, SyncSummary
- resolution: the timestamp/checksum decision shared by both sides
- events / channels: tagged realtime payloads and stable channel names
- brokers: Redis and in-memory publish/subscribe transports

Client:
- store: LocalStateStore (preferences-style JSON file, one lock)
- api: SyncApiClient (requests, bearer token)
- orchestrator: SyncOrchestrator + SyncCoordinator (single-flight cycles)
- scheduler: PeriodicSyncScheduler (15s foreground / 30s background)
- realtime: RealtimeSubscriber (channel registry, listener thread)
"""

__version__ = '1.0.0'
