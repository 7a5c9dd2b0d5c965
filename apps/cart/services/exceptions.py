"""
Domain-specific exceptions for cart services.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class CartServiceError(Exception):
    """Base exception for all cart service errors."""
    pass


class CartItemNotFoundError(CartServiceError):
    """Raised when the cart has no line for a product."""
    pass


class InvalidQuantityError(CartServiceError):
    """Raised when a quantity is not a positive integer."""
    pass


class InvalidCartStateError(CartServiceError):
    """Raised when a pushed cart state cannot be applied."""
    pass
