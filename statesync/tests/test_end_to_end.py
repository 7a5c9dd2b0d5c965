"""
Full client cycles against the Django application.

``RequestsClient`` routes the client's requests session into the WSGI app,
so the real endpoints, serializers and services adjudicate each entity.
"""

import pytest
from rest_framework.test import RequestsClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.cart.models import CartItem
from apps.cart.services import add_item
from statesync.api import SyncApiClient
from statesync.orchestrator import SyncCoordinator, SyncOrchestrator
from statesync.store import LocalStateStore
from statesync.types import SyncAction, SyncEntity

pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def token(user):
    return str(RefreshToken.for_user(user).access_token)


@pytest.fixture
def coordinator(token, tmp_path):
    api = SyncApiClient('http://testserver', lambda: token, session=RequestsClient())
    store = LocalStateStore(str(tmp_path / 'state_sync_prefs.json'))
    return SyncCoordinator(SyncOrchestrator(api, store))


def local_store(coordinator):
    return coordinator.orchestrator.store


def test_first_sync_downloads_server_cart(coordinator, user, milk):
    add_item(user=user, product_id=milk.id, quantity=2)

    summary = coordinator.run()

    assert summary.ok
    assert summary.actions[SyncEntity.CART] is SyncAction.SERVER_WINS
    assert summary.actions[SyncEntity.ORDERS] is SyncAction.SERVER_WINS
    cart = local_store(coordinator).get_entity_state(SyncEntity.CART)
    assert [(line['product_id'], line['quantity']) for line in cart.payload] == [(str(milk.id), 2)]


def test_offline_edit_is_pushed_then_settles(coordinator, user, milk, bread):
    add_item(user=user, product_id=milk.id, quantity=2)
    coordinator.run()

    local_store(coordinator).save_entity_state(
        SyncEntity.CART,
        [{'product_id': str(bread.id), 'quantity': 3, 'price': 2.25}],
    )
    pushed = coordinator.run()

    assert pushed.actions[SyncEntity.CART] is SyncAction.LOCAL_WINS
    lines = CartItem.objects.filter(cart__user=user)
    assert [(line.product_id, line.quantity) for line in lines] == [(bread.id, 3)]

    settled = coordinator.run()

    assert settled.ok
    assert all(action is SyncAction.NO_CONFLICT for action in settled.actions.values())


def test_rejected_token_reports_auth_failure(tmp_path):
    api = SyncApiClient('http://testserver', lambda: 'not-a-token', session=RequestsClient())
    coordinator = SyncCoordinator(SyncOrchestrator(api, LocalStateStore(str(tmp_path / 'prefs.json'))))

    summary = coordinator.run()

    assert summary.fetch_failed
    assert summary.auth_failed
