import pytest

from statesync.exceptions import SyncHTTPError
from statesync.store import LocalStateStore

from .fakes import FakeApi


@pytest.fixture
def store(tmp_path):
    return LocalStateStore(str(tmp_path / 'state_sync_prefs.json'))


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def server_error():
    return SyncHTTPError('Internal server error', status_code=500)


@pytest.fixture
def cart_lines():
    return [
        {'product_id': 'P1', 'quantity': 2, 'price': 10.0},
        {'product_id': 'P2', 'quantity': 1, 'price': 3.5},
    ]
