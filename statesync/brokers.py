"""
Publish/subscribe transports for realtime fanout.

Both brokers expose the same two operations:

    broker.publish(channel, message) -> int   # receivers reached
    broker.subscription() -> Subscription     # subscribe / unsubscribe /
                                              # get_message / close

Delivery is best-effort and at-most-once to subscribers connected at publish
time. Nothing is stored for later replay.

``create_broker(url)`` picks the implementation: ``redis://`` / ``rediss://``
URLs use Redis pub/sub, ``memory://`` the process-local broker.
"""

import logging
import queue
import threading
import time
from typing import Dict, Optional, Set, Tuple

import redis

logger = logging.getLogger(__name__)

Message = Tuple[str, str]


class BrokerError(Exception):
    """Raised when the transport cannot publish or subscribe."""
    pass


class RedisSubscription:
    """
    Thin wrapper over a redis-py PubSub object.

    A PubSub connection must only be used from one thread. Subscribe and
    unsubscribe may be called from any thread, so they are queued and sent
    by whichever thread reads next, right before its read. A command that
    fails stays queued and is retried on the following read.
    """

    read_timeout = 0.1

    def __init__(self, client: redis.Redis):
        self._pubsub = client.pubsub(ignore_subscribe_messages=True)
        self._commands: 'queue.Queue[Tuple[str, str]]' = queue.Queue()

    def subscribe(self, channel: str) -> None:
        self._commands.put(('subscribe', channel))

    def unsubscribe(self, channel: str) -> None:
        self._commands.put(('unsubscribe', channel))

    def _send_commands(self) -> None:
        pending = []
        while True:
            try:
                pending.append(self._commands.get_nowait())
            except queue.Empty:
                break
        for index, (command, channel) in enumerate(pending):
            try:
                getattr(self._pubsub, command)(channel)
            except redis.RedisError as exc:
                for retry in pending[index:]:
                    self._commands.put(retry)
                raise BrokerError(f'Cannot {command} {channel}: {exc}') from exc

    def get_message(self, timeout: float = 1.0) -> Optional[Message]:
        self._send_commands()
        timeout = min(timeout, self.read_timeout)
        if not self._pubsub.subscribed:
            time.sleep(timeout)
            return None
        try:
            message = self._pubsub.get_message(timeout=timeout)
        except redis.RedisError as exc:
            raise BrokerError(f'Subscription read failed: {exc}') from exc
        if not message or message.get('type') != 'message':
            return None
        channel = message['channel']
        if isinstance(channel, bytes):
            channel = channel.decode('utf-8')
        return channel, message['data']

    def close(self) -> None:
        try:
            self._pubsub.close()
        except redis.RedisError as exc:
            logger.warning('Error closing Redis subscription: %s', exc)


class RedisBroker:
    def __init__(self, url: str, client: Optional[redis.Redis] = None):
        self.url = url
        self._client = client or redis.Redis.from_url(url)

    def publish(self, channel: str, message: str) -> int:
        try:
            return int(self._client.publish(channel, message))
        except redis.RedisError as exc:
            raise BrokerError(f'Cannot publish to {channel}: {exc}') from exc

    def subscription(self) -> RedisSubscription:
        return RedisSubscription(self._client)

    def close(self) -> None:
        self._client.close()


class InMemorySubscription:
    def __init__(self, broker: 'InMemoryBroker'):
        self._broker = broker
        self._queue: 'queue.Queue[Message]' = queue.Queue()
        self.channels: Set[str] = set()
        self.closed = False

    def deliver(self, channel: str, message: str) -> None:
        self._queue.put((channel, message))

    def subscribe(self, channel: str) -> None:
        self.channels.add(channel)
        self._broker._attach(channel, self)

    def unsubscribe(self, channel: str) -> None:
        self.channels.discard(channel)
        self._broker._detach(channel, self)

    def get_message(self, timeout: float = 1.0) -> Optional[Message]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        for channel in list(self.channels):
            self.unsubscribe(channel)
        self.closed = True


class InMemoryBroker:
    """Process-local broker for development and tests."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Set[InMemorySubscription]] = {}

    def _attach(self, channel: str, subscription: InMemorySubscription) -> None:
        with self._lock:
            self._subscribers.setdefault(channel, set()).add(subscription)

    def _detach(self, channel: str, subscription: InMemorySubscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(channel)
            if subscribers:
                subscribers.discard(subscription)
                if not subscribers:
                    del self._subscribers[channel]

    def publish(self, channel: str, message: str) -> int:
        with self._lock:
            receivers = list(self._subscribers.get(channel, ()))
        for subscription in receivers:
            subscription.deliver(channel, message)
        return len(receivers)

    def subscription(self) -> InMemorySubscription:
        return InMemorySubscription(self)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, ()))

    def close(self) -> None:
        with self._lock:
            self._subscribers.clear()


def create_broker(url: str):
    """Build a broker from a URL (``memory://`` or ``redis://host:port/db``)."""
    if not url or url.startswith('memory://'):
        return InMemoryBroker()
    if url.startswith(('redis://', 'rediss://', 'unix://')):
        return RedisBroker(url)
    raise ValueError(f'Unsupported broker URL: {url}')
