"""
Order management service.

Orders are created from the cart and then advanced by staff (status,
driver assignment) and by the assigned driver (delivery status, location).
Each mutation writes ``updated_at`` through ``advance_timestamp`` so the
orders entity timestamp only moves forward, and publishes its realtime
events after commit.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User, UserType
from apps.cart.models import Cart
from apps.cart.services import clear_cart
from apps.inventory.models import Product
from apps.inventory.services import InsufficientStockError, ProductNotFoundError, publish_stock_change
from apps.orders.models import DeliveryLocation, Order, OrderItem, OrderStatus
from statesync.checksum import orders_checksum
from statesync.timestamps import EPOCH, advance_timestamp, format_timestamp, utc_now

from .exceptions import (
    DriverNotFoundError,
    EmptyCartError,
    InvalidLocationError,
    InvalidStatusError,
    NotAssignedDriverError,
    OrderNotFoundError,
)

logger = logging.getLogger(__name__)

# Driver-facing statuses and the order status each one moves to.
DELIVERY_STATUS_MAP = {
    'in_transit': OrderStatus.OUT_FOR_DELIVERY,
    'completed': OrderStatus.DELIVERED,
}

DEFAULT_ESTIMATED_MINUTES = 30


# =============================================================================
# Reads
# =============================================================================

def get_order(*, order_id: UUID, for_update: bool = False) -> Order:
    """
    Args:
        order_id: UUID of the order
        for_update: Lock the row until the transaction ends

    Raises:
        OrderNotFoundError: If the id is malformed or unknown
    """
    queryset = Order.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=order_id)
    except (Order.DoesNotExist, ValidationError, ValueError):
        raise OrderNotFoundError(f"Order with ID {order_id} not found")


def list_orders(*, user: User) -> QuerySet:
    return Order.objects.filter(customer=user).prefetch_related('items').order_by('-created_at')


def order_data(order: Order) -> Dict[str, Any]:
    """Order summary as carried by the orders sync entity."""
    return {
        'id': str(order.id),
        'order_number': order.order_number,
        'status': order.status,
        'total_amount': float(order.total_amount),
        'created_at': format_timestamp(order.created_at),
        'updated_at': format_timestamp(order.updated_at),
        'estimated_delivery_time': (
            format_timestamp(order.estimated_delivery_time)
            if order.estimated_delivery_time else None
        ),
    }


def orders_state(*, user: User) -> Dict[str, Any]:
    """
    Orders entity for the sync snapshot.

    Covers orders created in the last ``SYNC_ORDERS_WINDOW_DAYS`` days,
    newest change first, at most ``SYNC_ORDERS_LIMIT``. The entity
    timestamp is the newest ``updated_at`` among them (epoch when none).
    """
    window_days = getattr(settings, 'SYNC_ORDERS_WINDOW_DAYS', 30)
    limit = getattr(settings, 'SYNC_ORDERS_LIMIT', 20)

    orders = list(
        Order.objects
        .filter(customer=user, created_at__gte=utc_now() - timedelta(days=window_days))
        .order_by('-updated_at', '-created_at')[:limit]
    )
    items = [order_data(order) for order in orders]

    return {
        'items': items,
        'count': len(items),
        'updated_at': max((item['updated_at'] for item in items), default=EPOCH),
        'checksum': orders_checksum(items),
    }


# =============================================================================
# Mutations
# =============================================================================

def _touch(order: Order, fields) -> None:
    order.updated_at = advance_timestamp(order.updated_at)
    order.save(update_fields=list(fields) + ['updated_at'])


@transaction.atomic
def create_order_from_cart(
    *,
    user: User,
    delivery_address: str,
    notes: str = '',
    estimated_delivery_time=None,
    broadcaster=None,
) -> Order:
    """
    Turn the user's cart into an order.

    The total is the sum of the cart lines at their cart price. Stock is
    checked and decremented under row locks and the cart is cleared.

    Args:
        user: Customer placing the order
        delivery_address: Where to deliver
        notes: Optional customer notes
        estimated_delivery_time: Optional ETA set at checkout
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        Created Order with its items

    Raises:
        EmptyCartError: If the cart has no lines
        ProductNotFoundError: If a line's product is no longer active
        InsufficientStockError: If a product has less stock than ordered
    """
    cart, _ = Cart.objects.select_for_update().get_or_create(user=user)
    lines = list(cart.items.select_related('product'))
    if not lines:
        raise EmptyCartError("Cart is empty")

    products = {
        product.id: product
        for product in Product.objects.select_for_update().filter(
            id__in=[line.product_id for line in lines]
        )
    }
    for line in lines:
        product = products.get(line.product_id)
        if product is None or not product.is_active:
            raise ProductNotFoundError(f"Product with ID {line.product_id} not found")
        if product.stock < line.quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}: {product.stock} available"
            )

    now = utc_now()
    order = Order.objects.create(
        customer=user,
        total_amount=sum((line.price * line.quantity for line in lines), Decimal('0.00')),
        delivery_address=delivery_address,
        notes=notes,
        estimated_delivery_time=estimated_delivery_time,
        created_at=now,
        updated_at=now,
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=line.product,
            product_name=line.product.name,
            product_image_url=line.product.image_url,
            quantity=line.quantity,
            unit_price=line.price,
            total_price=line.price * line.quantity,
        )
        for line in lines
    ])

    for line in lines:
        product = products[line.product_id]
        product.stock -= line.quantity
        product.save(update_fields=['stock', 'updated_at'])
        if broadcaster is not None:
            publish_stock_change(broadcaster, product)

    clear_cart(user=user, broadcaster=broadcaster)

    logger.info('Order %s created for %s (%d lines)', order.order_number, user.id, len(lines))

    if broadcaster is not None:
        payload = order_data(order)
        transaction.on_commit(lambda: broadcaster.order_created(order.id, user.id, payload))

    return order


@transaction.atomic
def update_order_status(*, order_id: UUID, status: str, notes: str = '', broadcaster=None) -> Order:
    """
    Move an order to ``status`` (staff action).

    Args:
        order_id: UUID of the order
        status: New OrderStatus value
        notes: Optional notes stored on the order
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        Updated Order

    Raises:
        OrderNotFoundError: If order doesn't exist
        InvalidStatusError: If the status is unknown or the order is
            already delivered or cancelled
    """
    if status not in OrderStatus.values:
        raise InvalidStatusError(
            f"Invalid status. Must be one of: {', '.join(OrderStatus.values)}"
        )

    order = get_order(order_id=order_id, for_update=True)
    if order.is_final and order.status != status:
        raise InvalidStatusError(f"Order is already {order.status}")

    order.status = status
    fields = ['status']
    if status == OrderStatus.DELIVERED and order.delivered_at is None:
        order.delivered_at = utc_now()
        fields.append('delivered_at')
    if notes:
        order.notes = notes
        fields.append('notes')
    _touch(order, fields)

    if broadcaster is not None:
        customer_id, driver_id = order.customer_id, order.driver_id
        transaction.on_commit(
            lambda: broadcaster.order_status_changed(order.id, status, customer_id, driver_id=driver_id)
        )

    return order


@transaction.atomic
def assign_driver(
    *,
    order_id: UUID,
    driver_id: UUID,
    estimated_minutes: int = DEFAULT_ESTIMATED_MINUTES,
    broadcaster=None,
) -> Order:
    """
    Assign an active delivery driver to an order.

    Args:
        order_id: UUID of the order
        driver_id: UUID of the delivery driver
        estimated_minutes: Minutes from now until the estimated delivery
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        Updated Order

    Raises:
        OrderNotFoundError: If order doesn't exist
        DriverNotFoundError: If the user is not an active driver
        InvalidStatusError: If the order is already delivered or cancelled
    """
    try:
        driver = User.objects.get(id=driver_id, user_type=UserType.DELIVERY_DRIVER, is_active=True)
    except (User.DoesNotExist, ValidationError, ValueError):
        raise DriverNotFoundError(f"Delivery driver with ID {driver_id} not found")

    order = get_order(order_id=order_id, for_update=True)
    if order.is_final:
        raise InvalidStatusError(f"Order is already {order.status}")

    now = utc_now()
    order.driver = driver
    order.assigned_at = now
    order.estimated_delivery_time = now + timedelta(minutes=estimated_minutes)
    _touch(order, ['driver', 'assigned_at', 'estimated_delivery_time'])

    if broadcaster is not None:
        customer_id = order.customer_id
        transaction.on_commit(lambda: broadcaster.order_assigned(order.id, driver.id, customer_id))

    return order


@transaction.atomic
def update_delivery_status(
    *,
    driver: User,
    order_id: UUID,
    status: str,
    notes: str = '',
    broadcaster=None,
) -> Order:
    """
    Driver progress report: ``in_transit`` or ``completed``.

    Args:
        driver: Driver reporting (must be assigned to the order)
        order_id: UUID of the order
        status: ``in_transit`` or ``completed``
        notes: Optional delivery notes
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        Updated Order

    Raises:
        InvalidStatusError: If the status is unknown or the order is final
        OrderNotFoundError: If order doesn't exist
        NotAssignedDriverError: If the order is not assigned to ``driver``
    """
    if status not in DELIVERY_STATUS_MAP:
        raise InvalidStatusError(
            f"Invalid status. Must be one of: {', '.join(DELIVERY_STATUS_MAP)}"
        )

    order = get_order(order_id=order_id, for_update=True)
    if order.driver_id != driver.id:
        raise NotAssignedDriverError("Order is not assigned to you")
    if order.is_final:
        raise InvalidStatusError(f"Order is already {order.status}")

    order.status = DELIVERY_STATUS_MAP[status]
    fields = ['status']
    if order.status == OrderStatus.DELIVERED:
        order.delivered_at = utc_now()
        fields.append('delivered_at')
    if notes:
        order.notes = notes
        fields.append('notes')
    _touch(order, fields)

    if broadcaster is not None:
        new_status, customer_id = order.status, order.customer_id
        transaction.on_commit(
            lambda: broadcaster.delivery_status_updated(order.id, new_status, customer_id)
        )

    return order


def _coordinate(value, name: str, bound: float) -> float:
    if isinstance(value, bool):
        raise InvalidLocationError(f"Invalid {name}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidLocationError(f"Invalid {name}")
    if not -bound <= number <= bound:
        raise InvalidLocationError("Invalid coordinates")
    return number


@transaction.atomic
def post_driver_location(
    *,
    driver: User,
    latitude,
    longitude,
    order_id: Optional[UUID] = None,
    accuracy: Optional[float] = None,
    speed: Optional[float] = None,
    heading: Optional[float] = None,
    broadcaster=None,
) -> DeliveryLocation:
    """
    Record a driver position and publish it to trackers.

    Args:
        driver: Driver reporting the position
        latitude: Degrees in [-90, 90]
        longitude: Degrees in [-180, 180]
        order_id: Optional UUID of the order being delivered
        accuracy: Optional accuracy in meters
        speed: Optional speed
        heading: Optional heading in degrees
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        Created DeliveryLocation

    Raises:
        InvalidLocationError: If a coordinate is missing or out of range
        OrderNotFoundError: If ``order_id`` is unknown
        NotAssignedDriverError: If the order is not assigned to ``driver``
    """
    latitude = _coordinate(latitude, 'latitude', 90)
    longitude = _coordinate(longitude, 'longitude', 180)

    order = None
    if order_id is not None:
        order = get_order(order_id=order_id)
        if order.driver_id != driver.id:
            raise NotAssignedDriverError("Order is not assigned to you")

    location = DeliveryLocation.objects.create(
        driver=driver,
        order=order,
        latitude=latitude,
        longitude=longitude,
        accuracy=accuracy,
        speed=speed,
        heading=heading,
    )

    if broadcaster is not None:
        tracked_order_id = order.id if order else None
        transaction.on_commit(
            lambda: broadcaster.driver_location_updated(driver.id, latitude, longitude, order_id=tracked_order_id)
        )

    return location
