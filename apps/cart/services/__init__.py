"""Services for cart business logic."""

from .exceptions import (
    CartServiceError,
    CartItemNotFoundError,
    InvalidQuantityError,
    InvalidCartStateError,
)
from .cart_management import (
    CartAction,
    get_cart_items,
    cart_item_data,
    cart_state,
    add_item,
    update_item_quantity,
    remove_item,
    clear_cart,
    replace_cart,
)

__all__ = [
    # Exceptions
    'CartServiceError',
    'CartItemNotFoundError',
    'InvalidQuantityError',
    'InvalidCartStateError',
    # Services
    'CartAction',
    'get_cart_items',
    'cart_item_data',
    'cart_state',
    'add_item',
    'update_item_quantity',
    'remove_item',
    'clear_cart',
    'replace_cart',
]
