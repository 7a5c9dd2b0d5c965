"""
Tests for the pub/sub transports.

The Redis side runs against a PubSub double that counts any overlapping use
of its connection, so the listener thread and a subscribing thread can be
raced without a live server.
"""

import queue
import threading
from contextlib import contextmanager

import pytest
import redis

from statesync.brokers import (
    BrokerError,
    InMemoryBroker,
    RedisBroker,
    RedisSubscription,
    create_broker,
)


class SingleConnectionPubSub:
    """Records every time two threads use the connection at once."""

    def __init__(self, fail_with=None):
        self.channels = set()
        self.messages = queue.Queue()
        self.read_timeouts = []
        self.overlaps = 0
        self.reading = threading.Event()
        self.command_threads = set()
        self.closed = False
        self.fail_with = fail_with
        self._busy = threading.Lock()

    @property
    def subscribed(self):
        return bool(self.channels)

    @contextmanager
    def _connection(self):
        acquired = self._busy.acquire(blocking=False)
        if not acquired:
            self.overlaps += 1
        try:
            if self.fail_with is not None:
                raise self.fail_with
            yield
        finally:
            if acquired:
                self._busy.release()

    def subscribe(self, channel):
        with self._connection():
            self.command_threads.add(threading.get_ident())
            self.channels.add(channel)

    def unsubscribe(self, channel):
        with self._connection():
            self.command_threads.add(threading.get_ident())
            self.channels.discard(channel)

    def get_message(self, timeout=0.0):
        with self._connection():
            self.read_timeouts.append(timeout)
            self.reading.set()
            try:
                return self.messages.get(timeout=timeout)
            except queue.Empty:
                return None

    def close(self):
        self.closed = True


class FakeRedis:
    def __init__(self, pubsub=None, publish_error=None):
        self._pubsub = pubsub or SingleConnectionPubSub()
        self.publish_error = publish_error
        self.published = []

    def pubsub(self, ignore_subscribe_messages=False):
        return self._pubsub

    def publish(self, channel, message):
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append((channel, message))
        return 2

    def close(self):
        pass


# =============================================================================
# Redis
# =============================================================================

class TestRedisSubscription:

    def test_subscribing_while_listener_reads_never_shares_the_connection(self):
        pubsub = SingleConnectionPubSub()
        subscription = RedisSubscription(FakeRedis(pubsub))
        subscription.subscribe('cart:u1')
        stop = threading.Event()

        def listen():
            while not stop.is_set():
                subscription.get_message(timeout=0.2)

        listener = threading.Thread(target=listen)
        listener.start()
        try:
            assert pubsub.reading.wait(5)
            subscription.subscribe('orders:u1')
            subscription.subscribe('products')
            subscription.unsubscribe('cart:u1')
        finally:
            stop.set()
            listener.join(5)
        subscription.get_message(timeout=0.01)

        assert pubsub.overlaps == 0
        assert pubsub.channels == {'orders:u1', 'products'}

    def test_commands_are_sent_by_the_reading_thread(self):
        pubsub = SingleConnectionPubSub()
        subscription = RedisSubscription(FakeRedis(pubsub))

        subscription.subscribe('products')
        assert pubsub.channels == set()

        reader = threading.Thread(target=subscription.get_message, kwargs={'timeout': 0.01})
        reader.start()
        reader.join(5)

        assert pubsub.channels == {'products'}
        assert pubsub.command_threads == {reader.ident}

    def test_read_is_capped_at_read_timeout(self):
        pubsub = SingleConnectionPubSub()
        subscription = RedisSubscription(FakeRedis(pubsub))
        subscription.subscribe('products')

        assert subscription.get_message(timeout=5) is None
        assert pubsub.read_timeouts == [RedisSubscription.read_timeout]

    def test_message_channel_is_decoded(self):
        pubsub = SingleConnectionPubSub()
        subscription = RedisSubscription(FakeRedis(pubsub))
        subscription.subscribe('products')
        pubsub.messages.put({'type': 'message', 'channel': b'products', 'data': '{}'})

        assert subscription.get_message(timeout=1) == ('products', '{}')

    def test_control_messages_are_skipped(self):
        pubsub = SingleConnectionPubSub()
        subscription = RedisSubscription(FakeRedis(pubsub))
        subscription.subscribe('products')
        pubsub.messages.put({'type': 'subscribe', 'channel': b'products', 'data': 1})

        assert subscription.get_message(timeout=1) is None

    def test_nothing_subscribed_reads_nothing(self):
        pubsub = SingleConnectionPubSub()
        subscription = RedisSubscription(FakeRedis(pubsub))

        assert subscription.get_message(timeout=0.01) is None
        assert pubsub.read_timeouts == []

    def test_failed_command_is_retried_on_next_read(self):
        pubsub = SingleConnectionPubSub(fail_with=redis.ConnectionError('gone'))
        subscription = RedisSubscription(FakeRedis(pubsub))
        subscription.subscribe('products')

        with pytest.raises(BrokerError):
            subscription.get_message(timeout=0.01)

        pubsub.fail_with = None
        subscription.get_message(timeout=0.01)

        assert pubsub.channels == {'products'}


class TestRedisBroker:

    def test_publish_returns_receivers(self):
        client = FakeRedis()
        broker = RedisBroker('redis://localhost:6379/0', client=client)

        assert broker.publish('products', 'hello') == 2
        assert client.published == [('products', 'hello')]

    def test_publish_failure(self):
        broker = RedisBroker('redis://localhost:6379/0', client=FakeRedis(publish_error=redis.ConnectionError('down')))

        with pytest.raises(BrokerError):
            broker.publish('products', 'hello')


# =============================================================================
# In-memory
# =============================================================================

class TestInMemoryBroker:

    def test_publish_reaches_current_subscribers_only(self):
        broker = InMemoryBroker()
        subscription = broker.subscription()

        assert broker.publish('products', 'early') == 0
        subscription.subscribe('products')
        assert broker.publish('products', 'late') == 1

        assert subscription.get_message(timeout=1) == ('products', 'late')
        assert subscription.get_message(timeout=0.01) is None

    def test_close_detaches(self):
        broker = InMemoryBroker()
        subscription = broker.subscription()
        subscription.subscribe('products')

        subscription.close()

        assert broker.subscriber_count('products') == 0


class TestCreateBroker:

    @pytest.mark.parametrize('url', ['', 'memory://'])
    def test_memory(self, url):
        assert isinstance(create_broker(url), InMemoryBroker)

    def test_redis(self):
        assert isinstance(create_broker('redis://localhost:6379/0'), RedisBroker)

    def test_unknown_scheme(self):
        with pytest.raises(ValueError):
            create_broker('amqp://localhost')
