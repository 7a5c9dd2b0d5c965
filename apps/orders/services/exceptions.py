"""
Domain-specific exceptions for order services.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class OrderServiceError(Exception):
    """Base exception for all order service errors."""
    pass


class OrderNotFoundError(OrderServiceError):
    """Raised when order doesn't exist."""
    pass


class EmptyCartError(OrderServiceError):
    """Raised when checking out an empty cart."""
    pass


class InvalidStatusError(OrderServiceError):
    """Raised when a status is unknown or the order can no longer change."""
    pass


class DriverNotFoundError(OrderServiceError):
    """Raised when the assignee is not an active delivery driver."""
    pass


class NotAssignedDriverError(OrderServiceError):
    """Raised when a driver acts on an order not assigned to them."""
    pass


class InvalidLocationError(OrderServiceError):
    """Raised when coordinates are out of range."""
    pass
