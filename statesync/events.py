"""
Tagged realtime event payloads.

Each event name maps to one frozen dataclass. Messages are validated at the
decoding boundary; anything that does not fit raises MalformedEventError and
is dropped by the subscriber instead of failing later on a bad cast.

Wire message::

    {"event": "order_updated",
     "payload": {"orderId": "...", "status": "confirmed"},
     "timestamp": "2025-01-30T10:00:05.000Z"}

Payload keys are camelCase, as the mobile apps consume them.
"""

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

from .exceptions import MalformedEventError
from .timestamps import now_iso
from .types import SyncEntity


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedEventError(f"'{key}' must be a non-empty string")
    return value


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedEventError(f"'{key}' must be a string")
    return value


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedEventError(f"'{key}' must be an integer")
    return value


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    if payload.get(key) is None:
        return None
    return _require_int(payload, key)


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedEventError(f"'{key}' must be a number")
    return float(value)


@dataclass(frozen=True)
class RealtimeEvent:
    """Base class; ``affects`` lists the sync entities a client should refresh."""

    affects: ClassVar[Tuple[SyncEntity, ...]] = ()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'RealtimeEvent':
        raise NotImplementedError

    def to_payload(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class CartUpdated(RealtimeEvent):
    affects: ClassVar[Tuple[SyncEntity, ...]] = (SyncEntity.CART,)

    action: str
    item_id: Optional[str] = None
    product_id: Optional[str] = None
    quantity: Optional[int] = None

    @classmethod
    def from_payload(cls, payload):
        return cls(
            action=_require_str(payload, 'action'),
            item_id=_optional_str(payload, 'itemId'),
            product_id=_optional_str(payload, 'productId'),
            quantity=_optional_int(payload, 'quantity'),
        )

    def to_payload(self):
        payload = {'action': self.action}
        if self.item_id is not None:
            payload['itemId'] = self.item_id
        if self.product_id is not None:
            payload['productId'] = self.product_id
        if self.quantity is not None:
            payload['quantity'] = self.quantity
        return payload


@dataclass(frozen=True)
class OrderCreated(RealtimeEvent):
    affects: ClassVar[Tuple[SyncEntity, ...]] = (SyncEntity.ORDERS, SyncEntity.CART)

    order_id: str
    order: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload):
        order = payload.get('order') or {}
        if not isinstance(order, dict):
            raise MalformedEventError("'order' must be an object")
        return cls(order_id=_require_str(payload, 'orderId'), order=order)

    def to_payload(self):
        return {'orderId': self.order_id, 'order': dict(self.order)}


@dataclass(frozen=True)
class OrderStatusChanged(RealtimeEvent):
    affects: ClassVar[Tuple[SyncEntity, ...]] = (SyncEntity.ORDERS,)

    order_id: str
    status: str

    @classmethod
    def from_payload(cls, payload):
        return cls(
            order_id=_require_str(payload, 'orderId'),
            status=_require_str(payload, 'status'),
        )

    def to_payload(self):
        return {'orderId': self.order_id, 'status': self.status}


@dataclass(frozen=True)
class OrderAssigned(RealtimeEvent):
    affects: ClassVar[Tuple[SyncEntity, ...]] = (SyncEntity.ORDERS,)

    order_id: str
    driver_id: str
    assignment_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload):
        return cls(
            order_id=_require_str(payload, 'orderId'),
            driver_id=_require_str(payload, 'deliveryPersonnelId'),
            assignment_id=_optional_str(payload, 'assignmentId'),
        )

    def to_payload(self):
        payload = {'orderId': self.order_id, 'deliveryPersonnelId': self.driver_id}
        if self.assignment_id is not None:
            payload['assignmentId'] = self.assignment_id
        return payload


@dataclass(frozen=True)
class DeliveryStatusUpdated(RealtimeEvent):
    affects: ClassVar[Tuple[SyncEntity, ...]] = (SyncEntity.ORDERS,)

    order_id: str
    status: str
    assignment_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload):
        return cls(
            order_id=_require_str(payload, 'orderId'),
            status=_require_str(payload, 'status'),
            assignment_id=_optional_str(payload, 'assignmentId'),
        )

    def to_payload(self):
        payload = {'orderId': self.order_id, 'status': self.status}
        if self.assignment_id is not None:
            payload['assignmentId'] = self.assignment_id
        return payload


@dataclass(frozen=True)
class StockChanged(RealtimeEvent):
    product_id: str
    stock: int

    @classmethod
    def from_payload(cls, payload):
        return cls(
            product_id=_require_str(payload, 'productId'),
            stock=_require_int(payload, 'stock'),
        )

    def to_payload(self):
        return {'productId': self.product_id, 'stock': self.stock}


@dataclass(frozen=True)
class LowStockAlert(RealtimeEvent):
    product_id: str
    stock: int
    threshold: int

    @classmethod
    def from_payload(cls, payload):
        return cls(
            product_id=_require_str(payload, 'productId'),
            stock=_require_int(payload, 'stock'),
            threshold=_require_int(payload, 'threshold'),
        )

    def to_payload(self):
        return {'productId': self.product_id, 'stock': self.stock, 'threshold': self.threshold}


@dataclass(frozen=True)
class DriverLocationUpdated(RealtimeEvent):
    driver_id: str
    latitude: float
    longitude: float
    order_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload):
        latitude = _require_number(payload, 'latitude')
        longitude = _require_number(payload, 'longitude')
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise MalformedEventError('Coordinates out of range')
        return cls(
            driver_id=_require_str(payload, 'driverId'),
            latitude=latitude,
            longitude=longitude,
            order_id=_optional_str(payload, 'orderId'),
        )

    def to_payload(self):
        payload = {
            'driverId': self.driver_id,
            'latitude': self.latitude,
            'longitude': self.longitude,
        }
        if self.order_id is not None:
            payload['orderId'] = self.order_id
        return payload


# Event name on the wire -> payload type. Several names share a type when the
# same fact is announced on different channels.
EVENT_TYPES: Dict[str, Type[RealtimeEvent]] = {
    'updated': CartUpdated,
    'new_order': OrderCreated,
    'order_created': OrderCreated,
    'status_changed': OrderStatusChanged,
    'order_updated': OrderStatusChanged,
    'order_status_changed': OrderStatusChanged,
    'new_assignment': OrderAssigned,
    'order_assigned': OrderAssigned,
    'delivery_status_updated': DeliveryStatusUpdated,
    'stock_updated': StockChanged,
    'low_stock_alert': LowStockAlert,
    'location_updated': DriverLocationUpdated,
    'driver_location': DriverLocationUpdated,
}


@dataclass(frozen=True)
class EventMessage:
    """A decoded message: the channel it arrived on, its name and typed payload."""

    channel: str
    name: str
    event: RealtimeEvent
    timestamp: str


def encode_message(name: str, event: RealtimeEvent, timestamp: Optional[str] = None) -> str:
    if EVENT_TYPES.get(name) is not type(event):
        raise ValueError(f'Event name {name!r} does not carry {type(event).__name__}')
    return json.dumps({
        'event': name,
        'payload': event.to_payload(),
        'timestamp': timestamp or now_iso(),
    }, separators=(',', ':'))


def decode_message(channel: str, raw) -> EventMessage:
    """
    Decode a raw broker message into a typed event.

    Raises:
        MalformedEventError: On invalid JSON, unknown event names or payloads
            that do not match the event's type.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError:
            raise MalformedEventError('Message is not UTF-8')
    try:
        message = json.loads(raw)
    except (TypeError, ValueError):
        raise MalformedEventError('Message is not valid JSON')

    if not isinstance(message, dict):
        raise MalformedEventError('Message must be an object')

    name = message.get('event')
    event_type = EVENT_TYPES.get(name) if isinstance(name, str) else None
    if event_type is None:
        raise MalformedEventError(f'Unknown event: {name!r}')

    payload = message.get('payload')
    if not isinstance(payload, dict):
        raise MalformedEventError("'payload' must be an object")

    timestamp = message.get('timestamp')
    if not isinstance(timestamp, str):
        timestamp = payload.get('timestamp') if isinstance(payload.get('timestamp'), str) else ''

    return EventMessage(
        channel=channel,
        name=name,
        event=event_type.from_payload(payload),
        timestamp=timestamp,
    )
