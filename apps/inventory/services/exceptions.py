"""Domain-specific exceptions for inventory services."""


class InventoryServiceError(Exception):
    """Base exception for inventory services."""
    pass


class ProductNotFoundError(InventoryServiceError):
    """Raised when a product does not exist or is inactive."""
    pass


class InvalidStockError(InventoryServiceError):
    """Raised when a stock level is negative or not an integer."""
    pass


class InsufficientStockError(InventoryServiceError):
    """Raised when a product does not have enough stock for a request."""
    pass
