"""
Service layer unit tests for cart app.

Tests cover:
- Monotonic cart timestamps
- Replace-all semantics of local-wins pushes
- Validation of pushed cart lines
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from apps.cart.models import Cart, CartItem
from apps.cart.services import (
    add_item,
    cart_state,
    clear_cart,
    remove_item,
    replace_cart,
    update_item_quantity,
)
from apps.cart.services.exceptions import (
    CartItemNotFoundError,
    InvalidCartStateError,
    InvalidQuantityError,
)
from statesync.checksum import cart_checksum
from statesync.timestamps import format_timestamp, parse_timestamp


# =============================================================================
# Cart Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestCartManagement:

    def test_add_item_copies_product_price(self, user, milk):
        item = add_item(user=user, product_id=milk.id, quantity=2)

        assert item.price == Decimal('1.50')
        assert item.total_price == Decimal('3.00')

    def test_add_item_rejects_bool_quantity(self, user, milk):
        with pytest.raises(InvalidQuantityError):
            add_item(user=user, product_id=milk.id, quantity=True)

    def test_every_mutation_advances_header(self, user, milk, bread):
        stamps = []
        add_item(user=user, product_id=milk.id)
        stamps.append(Cart.objects.get(user=user).updated_at)
        add_item(user=user, product_id=bread.id)
        stamps.append(Cart.objects.get(user=user).updated_at)
        update_item_quantity(user=user, product_id=milk.id, quantity=3)
        stamps.append(Cart.objects.get(user=user).updated_at)
        remove_item(user=user, product_id=bread.id)
        stamps.append(Cart.objects.get(user=user).updated_at)
        clear_cart(user=user)
        stamps.append(Cart.objects.get(user=user).updated_at)

        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)

    def test_remove_missing_line(self, user, milk):
        with pytest.raises(CartItemNotFoundError):
            remove_item(user=user, product_id=milk.id)

    def test_cart_state_checksum_matches_items(self, user, milk, bread):
        add_item(user=user, product_id=milk.id, quantity=2)
        add_item(user=user, product_id=bread.id, quantity=1)

        state = cart_state(user=user)

        assert state['checksum'] == cart_checksum(state['items'])
        assert state['total_items'] == 3
        assert state['total_price'] == 5.25

    def test_clear_cart_publishes(self, user, milk, broadcaster, events, django_capture_on_commit_callbacks):
        add_item(user=user, product_id=milk.id)

        with django_capture_on_commit_callbacks(execute=True):
            removed = clear_cart(user=user, broadcaster=broadcaster)

        assert removed == 1
        assert [message.event.action for message in events.published] == ['cleared']


@pytest.mark.django_db
class TestReplaceCart:
    """Replace-all used when a device's cart is newer than the server's."""

    STAMP = datetime(2030, 5, 1, 8, 30, tzinfo=timezone.utc)

    def test_replaces_all_lines(self, user, milk, bread):
        add_item(user=user, product_id=milk.id, quantity=5)

        replace_cart(
            user=user,
            items=[{'product_id': str(bread.id), 'quantity': 2, 'price': 2.25}],
            timestamp=self.STAMP,
        )

        lines = list(CartItem.objects.filter(cart__user=user))
        assert [(line.product_id, line.quantity) for line in lines] == [(bread.id, 2)]
        assert format_timestamp(Cart.objects.get(user=user).updated_at) == '2030-05-01T08:30:00.000Z'
        assert lines[0].updated_at == self.STAMP

    def test_empty_list_clears(self, user, milk):
        add_item(user=user, product_id=milk.id)

        replace_cart(user=user, items=[], timestamp=self.STAMP)

        assert not CartItem.objects.filter(cart__user=user).exists()

    def test_price_defaults_to_product_price(self, user, bread):
        replace_cart(user=user, items=[{'product_id': str(bread.id), 'quantity': 1}], timestamp=self.STAMP)

        assert CartItem.objects.get(cart__user=user).price == Decimal('2.25')

    def test_local_price_kept(self, user, bread):
        replace_cart(
            user=user,
            items=[{'product_id': str(bread.id), 'quantity': 1, 'price': 1.99}],
            timestamp=self.STAMP,
        )

        assert CartItem.objects.get(cart__user=user).price == Decimal('1.99')

    @pytest.mark.parametrize('items', [
        [{'quantity': 1}],
        [{'product_id': 'not-a-uuid', 'quantity': 1}],
        ['not-an-object'],
    ])
    def test_malformed_lines_rejected(self, user, items):
        with pytest.raises(InvalidCartStateError):
            replace_cart(user=user, items=items, timestamp=self.STAMP)

    def test_invalid_quantity_rejected(self, user, milk):
        with pytest.raises(InvalidCartStateError):
            replace_cart(user=user, items=[{'product_id': str(milk.id), 'quantity': 0}], timestamp=self.STAMP)

    def test_duplicate_products_rejected(self, user, milk):
        items = [
            {'product_id': str(milk.id), 'quantity': 1},
            {'product_id': str(milk.id), 'quantity': 2},
        ]
        with pytest.raises(InvalidCartStateError):
            replace_cart(user=user, items=items, timestamp=self.STAMP)

    def test_unknown_product_leaves_cart_untouched(self, user, milk):
        add_item(user=user, product_id=milk.id, quantity=3)
        before = cart_state(user=user)

        with pytest.raises(InvalidCartStateError):
            replace_cart(user=user, items=[{'product_id': str(uuid4()), 'quantity': 1}], timestamp=self.STAMP)

        after = cart_state(user=user)
        assert after['checksum'] == before['checksum']
        assert parse_timestamp(after['updated_at']) == parse_timestamp(before['updated_at'])
