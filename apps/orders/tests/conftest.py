import pytest

from apps.cart.services import add_item
from apps.orders.services import create_order_from_cart


@pytest.fixture
def filled_cart(user, milk, bread):
    """Put 2 x Milk and 1 x Bread in ``user``'s cart."""
    add_item(user=user, product_id=milk.id, quantity=2)
    add_item(user=user, product_id=bread.id, quantity=1)
    return user


@pytest.fixture
def order(filled_cart):
    """A pending order placed from ``filled_cart``."""
    return create_order_from_cart(user=filled_cart, delivery_address='Main Street 1')


@pytest.fixture
def assigned_order(order, driver):
    order.driver = driver
    order.save(update_fields=['driver'])
    return order
