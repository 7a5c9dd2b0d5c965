"""Services for order business logic."""

from .exceptions import (
    OrderServiceError,
    OrderNotFoundError,
    EmptyCartError,
    InvalidStatusError,
    DriverNotFoundError,
    NotAssignedDriverError,
    InvalidLocationError,
)
from .order_management import (
    DELIVERY_STATUS_MAP,
    DEFAULT_ESTIMATED_MINUTES,
    get_order,
    list_orders,
    order_data,
    orders_state,
    create_order_from_cart,
    update_order_status,
    assign_driver,
    update_delivery_status,
    post_driver_location,
)

__all__ = [
    # Exceptions
    'OrderServiceError',
    'OrderNotFoundError',
    'EmptyCartError',
    'InvalidStatusError',
    'DriverNotFoundError',
    'NotAssignedDriverError',
    'InvalidLocationError',
    # Services
    'DELIVERY_STATUS_MAP',
    'DEFAULT_ESTIMATED_MINUTES',
    'get_order',
    'list_orders',
    'order_data',
    'orders_state',
    'create_order_from_cart',
    'update_order_status',
    'assign_driver',
    'update_delivery_status',
    'post_driver_location',
]
