"""
Client configuration.

Values come from the environment (or a ``.env`` file) through
python-decouple, with the cadence of the mobile apps as defaults:

    STATESYNC_BASE_URL             API root, e.g. https://api.example.com
    STATESYNC_STATE_FILE           preferences file for the local store
    STATESYNC_BROKER_URL           realtime broker (redis://... or memory://)
    STATESYNC_FOREGROUND_INTERVAL  seconds between foreground cycles (15)
    STATESYNC_BACKGROUND_INTERVAL  seconds between background cycles (30)
    STATESYNC_FLEX                 random early-run window in seconds (5)
    STATESYNC_MAX_RETRIES          retries of a failed cycle per tick (3)
    STATESYNC_INITIAL_BACKOFF      first retry delay in seconds (1)
    STATESYNC_MAX_BACKOFF          retry delay cap in seconds (60)
    STATESYNC_REQUEST_TIMEOUT      per-request timeout in seconds (10)
"""

from dataclasses import dataclass
from typing import Optional

from decouple import config


@dataclass(frozen=True)
class ClientSettings:
    base_url: str = 'http://localhost:8000'
    state_file: Optional[str] = None
    broker_url: str = 'memory://'
    foreground_interval: float = 15.0
    background_interval: float = 30.0
    flex: float = 5.0
    max_retries: int = 3
    initial_backoff: float = 1.0
    max_backoff: float = 60.0
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> 'ClientSettings':
        return cls(
            base_url=config('STATESYNC_BASE_URL', default=cls.base_url),
            state_file=config('STATESYNC_STATE_FILE', default=None) or None,
            broker_url=config('STATESYNC_BROKER_URL', default=cls.broker_url),
            foreground_interval=config('STATESYNC_FOREGROUND_INTERVAL', default=cls.foreground_interval, cast=float),
            background_interval=config('STATESYNC_BACKGROUND_INTERVAL', default=cls.background_interval, cast=float),
            flex=config('STATESYNC_FLEX', default=cls.flex, cast=float),
            max_retries=config('STATESYNC_MAX_RETRIES', default=cls.max_retries, cast=int),
            initial_backoff=config('STATESYNC_INITIAL_BACKOFF', default=cls.initial_backoff, cast=float),
            max_backoff=config('STATESYNC_MAX_BACKOFF', default=cls.max_backoff, cast=float),
            request_timeout=config('STATESYNC_REQUEST_TIMEOUT', default=cls.request_timeout, cast=float),
        )
