"""
Realtime subscriber - the client half of the event fanout.

Realtime only shortens the time until the next sync; a missed message is
repaired by the next periodic cycle. The subscriber therefore never writes
local state itself: events that touch a sync entity ask the coordinator for
an out-of-cycle sync, and every event is handed to listeners registered for
its type (UI badges, driver maps).

The subscriber owns its channel registry and its listener thread. ``close()``
stops the thread and drops every subscription (logout / backgrounding).
"""

import logging
import threading
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Type

from . import channels
from .brokers import BrokerError
from .events import EventMessage, RealtimeEvent, decode_message
from .exceptions import MalformedEventError

logger = logging.getLogger(__name__)

EventListener = Callable[[EventMessage], None]


class RealtimeSubscriber:
    def __init__(self, broker, coordinator=None, poll_interval: float = 0.5):
        self.coordinator = coordinator
        self.poll_interval = poll_interval
        self._subscription = broker.subscription()
        self._channels: Set[str] = set()
        self._listeners: Dict[Type[RealtimeEvent], List[EventListener]] = {}
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Channel registry
    # ------------------------------------------------------------------

    @property
    def channels(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._channels)

    def subscribe(self, channel: str) -> bool:
        """Subscribe to ``channel``; False if already subscribed."""
        with self._lock:
            if self._closed:
                raise RuntimeError('Subscriber is closed')
            if channel in self._channels:
                return False
            self._subscription.subscribe(channel)
            self._channels.add(channel)
            self._ensure_listening()
        logger.debug('Subscribed to %s', channel)
        return True

    def unsubscribe(self, channel: str) -> bool:
        with self._lock:
            if channel not in self._channels:
                return False
            self._channels.discard(channel)
            try:
                self._subscription.unsubscribe(channel)
            except BrokerError as exc:
                logger.warning('Unsubscribe from %s failed: %s', channel, exc)
        logger.debug('Unsubscribed from %s', channel)
        return True

    def subscribe_customer(self, user_id) -> None:
        self.subscribe(channels.cart_channel(user_id))
        self.subscribe(channels.orders_channel(user_id))
        self.subscribe(channels.PRODUCTS)

    def subscribe_admin(self) -> None:
        self.subscribe(channels.ADMIN_ORDERS)
        self.subscribe(channels.ADMIN_INVENTORY)
        self.subscribe(channels.PRODUCTS)

    def subscribe_driver(self, driver_id) -> None:
        self.subscribe(channels.DELIVERY_ASSIGNMENTS)
        self.subscribe(channels.driver_channel(driver_id))

    def subscribe_order_tracking(self, order_id) -> None:
        self.subscribe(channels.order_tracking_channel(order_id))

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, event_type: Type[RealtimeEvent], callback: EventListener) -> None:
        """Call ``callback`` for every event of ``event_type`` (or a subclass)."""
        with self._lock:
            self._listeners.setdefault(event_type, []).append(callback)

    def remove_listener(self, event_type: Type[RealtimeEvent], callback: EventListener) -> None:
        with self._lock:
            callbacks = self._listeners.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle_raw(self, channel: str, raw) -> Optional[EventMessage]:
        """Decode and dispatch one broker message; malformed ones are dropped."""
        try:
            message = decode_message(channel, raw)
        except MalformedEventError as exc:
            logger.warning('Ignoring malformed event on %s: %s', channel, exc)
            return None
        self.dispatch(message)
        return message

    def dispatch(self, message: EventMessage) -> None:
        with self._lock:
            callbacks = [
                callback
                for event_type, registered in self._listeners.items()
                if isinstance(message.event, event_type)
                for callback in registered
            ]
        for callback in callbacks:
            try:
                callback(message)
            except Exception:
                logger.exception('Listener for %s failed', message.name)

        if message.event.affects and self.coordinator is not None:
            logger.debug('%s on %s, requesting sync', message.name, message.channel)
            self.coordinator.request()

    # ------------------------------------------------------------------
    # Listener thread
    # ------------------------------------------------------------------

    def _ensure_listening(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._listen, name='statesync-realtime', daemon=True
        )
        self._thread.start()

    def _listen(self) -> None:
        while not self._stop_event.is_set():
            try:
                received = self._subscription.get_message(timeout=self.poll_interval)
            except BrokerError as exc:
                logger.warning('Realtime read failed: %s', exc)
                self._stop_event.wait(1.0)
                continue
            if received is not None:
                self.handle_raw(*received)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop listening and drop every subscription."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
            self._thread = None
        self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        for channel in list(self.channels):
            self.unsubscribe(channel)
        self._subscription.close()
        logger.info('Realtime subscriber closed')
