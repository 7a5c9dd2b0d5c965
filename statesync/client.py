"""
Device-side wiring of the sync client.

    client = StateSyncClient.from_settings(ClientSettings.from_env(), token_provider)
    client.start(user_id)      # periodic sync + realtime subscriptions
    ...
    client.logout()            # stop everything, wipe local state
"""

import logging
import os
from typing import Optional

from .api import SyncApiClient
from .brokers import create_broker
from .connectivity import ConnectivityProbe
from .orchestrator import SyncCoordinator, SyncOrchestrator
from .realtime import RealtimeSubscriber
from .scheduler import PeriodicSyncScheduler
from .settings import ClientSettings
from .store import PREFS_FILENAME, LocalStateStore

logger = logging.getLogger(__name__)


class StateSyncClient:
    def __init__(self, store, api, coordinator, scheduler, subscriber=None):
        self.store = store
        self.api = api
        self.coordinator = coordinator
        self.scheduler = scheduler
        self.subscriber = subscriber

    @classmethod
    def from_settings(cls, settings: ClientSettings, token_provider, on_auth_failure=None, session=None):
        state_file = settings.state_file
        if state_file and os.path.isdir(state_file):
            state_file = os.path.join(state_file, PREFS_FILENAME)

        store = LocalStateStore(state_file)
        api = SyncApiClient(
            settings.base_url, token_provider, session=session, timeout=settings.request_timeout
        )
        coordinator = SyncCoordinator(SyncOrchestrator(api, store), on_auth_failure=on_auth_failure)
        scheduler = PeriodicSyncScheduler.from_settings(
            coordinator, settings, probe=ConnectivityProbe(settings.base_url)
        )
        subscriber = None
        if settings.broker_url:
            subscriber = RealtimeSubscriber(create_broker(settings.broker_url), coordinator)
        return cls(store, api, coordinator, scheduler, subscriber)

    def start(self, user_id: Optional[str] = None) -> None:
        self.scheduler.start()
        self.scheduler.trigger_now()
        if self.subscriber is not None and user_id:
            self.subscriber.subscribe_customer(user_id)

    def sync_now(self):
        return self.coordinator.run()

    def stop(self) -> None:
        self.scheduler.stop()
        if self.subscriber is not None:
            self.subscriber.close()

    def logout(self) -> None:
        self.stop()
        self.coordinator.wait(timeout=10)
        self.store.clear_all()
        self.api.close()
        logger.info('Sync client logged out')
