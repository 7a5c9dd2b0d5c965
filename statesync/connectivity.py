"""Network precondition for scheduled sync cycles."""

import logging
import socket
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


class ConnectivityProbe:
    """
    Reports whether the API host accepts TCP connections.

    A cycle is never started while this returns False; the tick is skipped
    and the next one probes again.
    """

    def __init__(self, base_url: str, timeout: float = 3.0):
        parts = urlsplit(base_url)
        self.host = parts.hostname or 'localhost'
        self.port = parts.port or (443 if parts.scheme == 'https' else 80)
        self.timeout = timeout

    def is_online(self) -> bool:
        try:
            socket.create_connection((self.host, self.port), timeout=self.timeout).close()
        except OSError as exc:
            logger.debug('API host %s:%s unreachable: %s', self.host, self.port, exc)
            return False
        return True

    __call__ = is_online


class AlwaysOnline:
    """Probe for in-process servers and tests."""

    def is_online(self) -> bool:
        return True

    __call__ = is_online
