"""
Fixtures shared by every app's tests.
"""

from decimal import Decimal

import pytest
from django.apps import apps as django_apps
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User, UserType
from apps.inventory.models import Product
from apps.realtime.broadcaster import EventBroadcaster
from statesync.brokers import InMemoryBroker
from statesync.events import decode_message


class RecordingBroker(InMemoryBroker):
    """In-memory broker that also keeps every decoded message it published."""

    def __init__(self):
        super().__init__()
        self.published = []

    def publish(self, channel, message):
        self.published.append(decode_message(channel, message))
        return super().publish(channel, message)

    def names_on(self, channel):
        return [message.name for message in self.published if message.channel == channel]

    def on(self, channel):
        return [message for message in self.published if message.channel == channel]


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def make_client():
    """Return a factory for API clients authenticated as a given user."""
    def _make(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return client
    return _make


@pytest.fixture
def user(db):
    """Create and return a test customer."""
    return User.objects.create_user(
        email='testuser@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def other_user(db):
    """Create and return another customer."""
    return User.objects.create_user(
        email='otheruser@example.com',
        password='OtherPass123!',
    )


@pytest.fixture
def driver(db):
    """Create and return a delivery driver."""
    return User.objects.create_user(
        email='driver@example.com',
        password='TestPass123!',
        user_type=UserType.DELIVERY_DRIVER,
    )


@pytest.fixture
def admin_user(db):
    """Create and return a superuser."""
    return User.objects.create_superuser(
        email='admin@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def authenticated_client(make_client, user):
    """Return an API client authenticated as ``user``."""
    return make_client(user)


@pytest.fixture
def admin_client(make_client, admin_user):
    return make_client(admin_user)


@pytest.fixture
def driver_client(make_client, driver):
    return make_client(driver)


@pytest.fixture
def make_product(db):
    """Return a factory for active products."""
    def _make(name='Milk', price='1.50', stock=50, **extra):
        return Product.objects.create(name=name, price=Decimal(price), stock=stock, **extra)
    return _make


@pytest.fixture
def milk(make_product):
    return make_product(name='Milk', price='1.50', stock=50)


@pytest.fixture
def bread(make_product):
    return make_product(name='Bread', price='2.25', stock=20)


@pytest.fixture
def events(monkeypatch):
    """
    Route the realtime app's broadcaster to a recording broker.

    Events are published on commit; wrap the call under test in
    ``django_capture_on_commit_callbacks(execute=True)`` to see them.
    """
    broker = RecordingBroker()
    monkeypatch.setattr(django_apps.get_app_config('realtime'), 'broadcaster', EventBroadcaster(broker))
    return broker


@pytest.fixture
def broadcaster(events):
    """The recording broadcaster, for passing into services directly."""
    return django_apps.get_app_config('realtime').broadcaster
