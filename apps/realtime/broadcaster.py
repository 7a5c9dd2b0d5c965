"""
Server-side realtime fanout.

Every authoritative mutation (cart line, order status, assignment, stock,
driver position) publishes a small typed event after its transaction
commits. Publishing is fire-and-forget: a broker failure is logged and never
fails the write that triggered it. Clients must not rely on delivery; the
periodic sync repairs anything missed.

One EventBroadcaster is owned by the realtime AppConfig and passed into the
services explicitly::

    from apps.realtime.broadcaster import get_broadcaster

    add_item(user=user, product_id=pid, quantity=1, broadcaster=get_broadcaster())
"""

import logging
import threading
from typing import Dict, Optional, Set

from django.apps import apps

from statesync import channels
from statesync.brokers import BrokerError
from statesync.events import (
    CartUpdated,
    DeliveryStatusUpdated,
    DriverLocationUpdated,
    LowStockAlert,
    OrderAssigned,
    OrderCreated,
    OrderStatusChanged,
    RealtimeEvent,
    StockChanged,
    encode_message,
)

logger = logging.getLogger(__name__)

# Orders in these statuses keep no tracking channel in the registry.
FINISHED_ORDER_STATUSES = frozenset({'delivered', 'cancelled'})


class EventBroadcaster:
    def __init__(self, broker):
        self.broker = broker
        self._lock = threading.Lock()
        self._channels: Set[str] = set()

    # ------------------------------------------------------------------
    # Channel registry
    # ------------------------------------------------------------------

    @property
    def channels(self):
        with self._lock:
            return frozenset(self._channels)

    def subscribe(self, channel: str) -> None:
        with self._lock:
            self._channels.add(channel)

    def unsubscribe(self, channel: str) -> None:
        with self._lock:
            self._channels.discard(channel)

    def close_all(self) -> None:
        """Drop every channel and release the broker connection."""
        with self._lock:
            closed = sorted(self._channels)
            self._channels.clear()
        for channel in closed:
            logger.debug('Closed channel %s', channel)
        try:
            self.broker.close()
        except BrokerError as exc:
            logger.warning('Error closing realtime broker: %s', exc)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def broadcast(self, channel: str, name: str, event: RealtimeEvent) -> int:
        """
        Publish ``event`` as ``name`` on ``channel``.

        Returns the number of subscribers reached; 0 when nobody listens or
        the broker failed.
        """
        self.subscribe(channel)
        message = encode_message(name, event)
        try:
            receivers = self.broker.publish(channel, message)
        except BrokerError as exc:
            logger.warning('Broadcast of %s to %s failed: %s', name, channel, exc)
            return 0
        logger.debug('Broadcasted %s to %s (%d receivers)', name, channel, receivers)
        return receivers

    def _finish_tracking(self, order_id, status: str) -> None:
        if status in FINISHED_ORDER_STATUSES:
            self.unsubscribe(channels.order_tracking_channel(order_id))

    def cart_updated(self, user_id, action: str, item_id=None, product_id=None, quantity=None) -> None:
        event = CartUpdated(
            action=action,
            item_id=str(item_id) if item_id is not None else None,
            product_id=str(product_id) if product_id is not None else None,
            quantity=quantity,
        )
        self.broadcast(channels.cart_channel(user_id), 'updated', event)

    def order_created(self, order_id, user_id, order: Optional[Dict] = None) -> None:
        event = OrderCreated(order_id=str(order_id), order=order or {})
        self.broadcast(channels.ADMIN_ORDERS, 'new_order', event)
        self.broadcast(channels.orders_channel(user_id), 'order_created', event)

    def order_status_changed(self, order_id, status: str, user_id, driver_id=None) -> None:
        event = OrderStatusChanged(order_id=str(order_id), status=status)
        self.broadcast(channels.ADMIN_ORDERS, 'status_changed', event)
        self.broadcast(channels.orders_channel(user_id), 'order_updated', event)
        if driver_id:
            self.broadcast(channels.DELIVERY_ASSIGNMENTS, 'order_status_changed', event)
        self._finish_tracking(order_id, status)

    def order_assigned(self, order_id, driver_id, user_id, assignment_id=None) -> None:
        event = OrderAssigned(
            order_id=str(order_id),
            driver_id=str(driver_id),
            assignment_id=str(assignment_id) if assignment_id else None,
        )
        self.broadcast(channels.driver_channel(driver_id), 'new_assignment', event)
        self.broadcast(channels.orders_channel(user_id), 'order_assigned', event)
        self.broadcast(channels.DELIVERY_ASSIGNMENTS, 'new_assignment', event)

    def delivery_status_updated(self, order_id, status: str, user_id, assignment_id=None) -> None:
        event = DeliveryStatusUpdated(
            order_id=str(order_id),
            status=status,
            assignment_id=str(assignment_id) if assignment_id else None,
        )
        self.broadcast(channels.orders_channel(user_id), 'delivery_status_updated', event)
        self.broadcast(channels.ADMIN_ORDERS, 'delivery_status_updated', event)
        self._finish_tracking(order_id, status)

    def product_stock_changed(self, product_id, stock: int) -> None:
        event = StockChanged(product_id=str(product_id), stock=stock)
        self.broadcast(channels.PRODUCTS, 'stock_updated', event)

    def low_stock_alert(self, product_id, stock: int, threshold: int) -> None:
        event = LowStockAlert(product_id=str(product_id), stock=stock, threshold=threshold)
        self.broadcast(channels.ADMIN_INVENTORY, 'low_stock_alert', event)

    def driver_location_updated(self, driver_id, latitude: float, longitude: float, order_id=None) -> None:
        event = DriverLocationUpdated(
            driver_id=str(driver_id),
            latitude=float(latitude),
            longitude=float(longitude),
            order_id=str(order_id) if order_id else None,
        )
        self.broadcast(channels.driver_channel(driver_id), 'location_updated', event)
        if order_id:
            self.broadcast(channels.order_tracking_channel(order_id), 'driver_location', event)


def get_broadcaster() -> EventBroadcaster:
    """The broadcaster owned by the realtime app."""
    return apps.get_app_config('realtime').broadcaster
