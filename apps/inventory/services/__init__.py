"""Services for inventory business logic."""

from .exceptions import (
    InventoryServiceError,
    ProductNotFoundError,
    InvalidStockError,
    InsufficientStockError,
)
from .stock_management import (
    AdjustmentType,
    get_product,
    list_inventory,
    low_stock_threshold,
    publish_stock_change,
    update_stock,
)

__all__ = [
    # Exceptions
    'InventoryServiceError',
    'ProductNotFoundError',
    'InvalidStockError',
    'InsufficientStockError',
    # Services
    'AdjustmentType',
    'get_product',
    'list_inventory',
    'low_stock_threshold',
    'publish_stock_change',
    'update_stock',
]
