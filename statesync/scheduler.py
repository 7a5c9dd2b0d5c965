"""
Periodic Scheduler - the correctness backstop of the protocol.

Runs a sync cycle every 15 s in the foreground and every 30 s in the
background, each interval shortened by a random flex of up to 5 s. A tick
is skipped while the API host is unreachable. A failed cycle is retried
with exponential backoff (``initial * 2 ** attempt``, capped) at most
``max_retries`` times and then abandoned until the next tick.
"""

import logging
import random
import threading
from typing import Callable, Optional

from .connectivity import AlwaysOnline
from .settings import ClientSettings
from .types import SyncSummary

logger = logging.getLogger(__name__)

FOREGROUND = 'foreground'
BACKGROUND = 'background'


class PeriodicSyncScheduler:
    def __init__(
        self,
        coordinator,
        probe: Optional[Callable[[], bool]] = None,
        *,
        foreground_interval: float = 15.0,
        background_interval: float = 30.0,
        flex: float = 5.0,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        max_backoff: float = 60.0,
        sleep: Optional[Callable[[float], bool]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.coordinator = coordinator
        self.probe = probe or AlwaysOnline()
        self.foreground_interval = foreground_interval
        self.background_interval = background_interval
        self.flex = flex
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.mode = FOREGROUND

        self._rng = rng or random.Random()
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._sleep = sleep or self._stop_event.wait
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_settings(cls, coordinator, settings: ClientSettings, probe=None) -> 'PeriodicSyncScheduler':
        return cls(
            coordinator,
            probe,
            foreground_interval=settings.foreground_interval,
            background_interval=settings.background_interval,
            flex=settings.flex,
            max_retries=settings.max_retries,
            initial_backoff=settings.initial_backoff,
            max_backoff=settings.max_backoff,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start the tick loop; a no-op returning False if already scheduled."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                logger.debug('Periodic sync already scheduled')
                return False
            self._stop_event.clear()
            self._wake_event.clear()
            self._thread = threading.Thread(
                target=self._loop, name='statesync-scheduler', daemon=True
            )
            self._thread.start()
        logger.info('Periodic sync started (%s)', self.mode)
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        self._stop_event.set()
        self._wake_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info('Periodic sync stopped')

    def set_foreground(self) -> None:
        self.mode = FOREGROUND

    def set_background(self) -> None:
        self.mode = BACKGROUND

    def trigger_now(self) -> None:
        """Wake the loop for an immediate tick."""
        self._wake_event.set()

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    @property
    def interval(self) -> float:
        return self.foreground_interval if self.mode == FOREGROUND else self.background_interval

    def next_delay(self) -> float:
        return max(0.0, self.interval - self._rng.uniform(0, self.flex))

    def backoff_delay(self, attempt: int) -> float:
        return min(self.initial_backoff * (2 ** attempt), self.max_backoff)

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self._wake_event.wait(self.next_delay())
            self._wake_event.clear()
            if self._stop_event.is_set():
                break
            try:
                self.run_tick()
            except Exception:
                logger.exception('Sync tick crashed')

    def run_tick(self) -> Optional[SyncSummary]:
        """
        One scheduled tick: probe, run a cycle, retry with backoff on failure.

        Returns the last summary, or None when offline or coalesced into a
        cycle that was already running.
        """
        if not self.probe():
            logger.info('Offline, skipping sync tick')
            return None

        summary = None
        for attempt in range(self.max_retries + 1):
            try:
                summary = self.coordinator.run()
            except Exception:
                logger.exception('Sync cycle raised')
                failed = True
            else:
                failed = summary is not None and summary.fetch_failed

            if not failed:
                return summary

            if attempt == self.max_retries:
                logger.warning(
                    'Sync failed after %d retries, waiting for next tick', self.max_retries
                )
                return summary

            delay = self.backoff_delay(attempt)
            logger.info('Sync failed, retry %d/%d in %.1fs', attempt + 1, self.max_retries, delay)
            if self._sleep(delay):
                return summary
            if not self.probe():
                logger.info('Went offline during backoff, abandoning tick')
                return summary
        return summary
