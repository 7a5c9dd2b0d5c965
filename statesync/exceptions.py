"""
Exceptions raised by the sync client.

Exception Hierarchy:
    SyncError (base)
    ├── SyncNetworkError
    ├── SyncHTTPError
    │   └── SyncAuthenticationError
    └── SyncProtocolError
    MalformedEventError

Transient errors (network, HTTP 5xx) are retried by the next cycle. An
authentication error is surfaced to the session layer and otherwise backs
off like any other cycle failure.
"""


class SyncError(Exception):
    """Base exception for all sync client errors."""
    pass


class SyncNetworkError(SyncError):
    """Raised when the server could not be reached (DNS, connect, timeout)."""
    pass


class SyncHTTPError(SyncError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class SyncAuthenticationError(SyncHTTPError):
    """Raised on 401/403: the bearer credential is missing, invalid or expired."""
    pass


class SyncProtocolError(SyncError):
    """Raised when a response body does not match the sync wire format."""
    pass


class MalformedEventError(ValueError):
    """Raised when a realtime message cannot be decoded into a known event."""
    pass
