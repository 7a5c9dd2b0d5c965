"""
Domain-specific exceptions for sync services.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class SyncServiceError(Exception):
    """Base exception for all sync service errors."""
    pass


class InvalidLocalStateError(SyncServiceError):
    """Raised when a pushed local state cannot be applied to the server rows."""
    pass
