"""
Sync Orchestrator and Sync Coordinator.

``SyncOrchestrator.perform_full_sync`` runs one linear cycle:

    1. fetch the server snapshot (one GET)
    2. for cart, orders and profile independently:
       read local state -> resolve -> persist resolved state
    3. return a SyncSummary

``SyncCoordinator`` guarantees at most one cycle in flight per device
session. Triggers arriving mid-cycle are coalesced into one rerun after the
current cycle finishes.
"""

import logging
import threading
from typing import Callable, Optional

from .exceptions import SyncAuthenticationError, SyncError
from .resolution import ConflictResolver
from .types import ALL_ENTITIES, SyncSummary

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    def __init__(self, api, store, resolver: Optional[ConflictResolver] = None):
        self.api = api
        self.store = store
        self.resolver = resolver or ConflictResolver(api)

    def perform_full_sync(self) -> SyncSummary:
        """
        Run one full sync pass.

        Never raises for sync failures: a failed fetch marks every entity
        unsynced with one aggregate error, and a failed entity is recorded in
        ``errors`` while the other entities still resolve.
        """
        summary = SyncSummary()

        try:
            snapshot = self.api.fetch_state()
        except SyncAuthenticationError as exc:
            logger.warning('Sync fetch rejected credentials: %s', exc)
            summary.fetch_failed = True
            summary.auth_failed = True
            summary.errors.append(f'Failed to fetch server state: {exc}')
            return summary
        except SyncError as exc:
            logger.warning('Sync fetch failed: %s', exc)
            summary.fetch_failed = True
            summary.errors.append(f'Failed to fetch server state: {exc}')
            return summary

        for entity in ALL_ENTITIES:
            try:
                with self.store.transaction():
                    local = self.store.get_entity_state(entity)
                    resolution = self.resolver.resolve(local, snapshot.for_entity(entity))
                    self.store.save_entity_state(
                        entity, resolution.resolved_state, resolution.timestamp
                    )
            except SyncAuthenticationError as exc:
                summary.auth_failed = True
                summary.errors.append(f'{entity} sync failed: {exc}')
                logger.warning('%s push rejected credentials: %s', entity, exc)
            except (SyncError, ValueError, OSError) as exc:
                summary.errors.append(f'{entity} sync failed: {exc}')
                logger.warning('%s sync failed: %s', entity, exc)
            else:
                summary.record(entity, resolution.action)

        logger.info(
            'Sync finished: cart=%s orders=%s profile=%s errors=%d',
            summary.actions[ALL_ENTITIES[0]],
            summary.actions[ALL_ENTITIES[1]],
            summary.actions[ALL_ENTITIES[2]],
            len(summary.errors),
        )
        return summary


class SyncCoordinator:
    """
    Single-flight wrapper around an orchestrator.

    ``run()`` executes a cycle on the calling thread; ``request()`` runs it on
    a coordinator-owned worker thread. Either one, while a cycle is already
    running, only flags a rerun that the running cycle honours once.
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        on_summary: Optional[Callable[[SyncSummary], None]] = None,
        on_auth_failure: Optional[Callable[[SyncSummary], None]] = None,
    ):
        self.orchestrator = orchestrator
        self.on_summary = on_summary
        self.on_auth_failure = on_auth_failure
        self.last_summary: Optional[SyncSummary] = None
        self.cycles_run = 0
        self._lock = threading.Lock()
        self._running = False
        self._rerun_requested = False
        self._worker: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def run(self) -> Optional[SyncSummary]:
        """Run a cycle now; returns None when coalesced into the running one."""
        with self._lock:
            if self._running:
                self._rerun_requested = True
                logger.debug('Sync already in flight, rerun requested')
                return None
            self._running = True
        return self._drain()

    def request(self) -> bool:
        """Schedule a cycle without blocking; returns False when coalesced."""
        with self._lock:
            if self._running:
                self._rerun_requested = True
                logger.debug('Sync already in flight, rerun requested')
                return False
            self._running = True
            self._worker = threading.Thread(
                target=self._drain_in_background, name='statesync-coordinator', daemon=True
            )
            self._worker.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the background worker; True once no cycle is running."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return not self.is_running

    def _drain(self) -> SyncSummary:
        try:
            while True:
                summary = self._cycle()
                with self._lock:
                    if not self._rerun_requested:
                        self._running = False
                        return summary
                    self._rerun_requested = False
                logger.debug('Running coalesced sync cycle')
        except BaseException:
            with self._lock:
                self._running = False
                self._rerun_requested = False
            raise

    def _drain_in_background(self) -> None:
        try:
            self._drain()
        except Exception:
            logger.exception('Background sync cycle crashed')

    def _cycle(self) -> SyncSummary:
        summary = self.orchestrator.perform_full_sync()
        self.cycles_run += 1
        self.last_summary = summary
        if summary.auth_failed and self.on_auth_failure is not None:
            self.on_auth_failure(summary)
        if self.on_summary is not None:
            self.on_summary(summary)
        return summary
