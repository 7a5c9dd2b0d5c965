"""
Cart management service.

Every mutation locks the cart header, advances its timestamp with
``advance_timestamp`` and stamps the touched lines with the same value.
``CartUpdated`` is published on the user's cart channel after commit.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.cart.models import Cart, CartItem
from apps.inventory.models import Product
from apps.inventory.services import get_product
from statesync.checksum import cart_checksum
from statesync.timestamps import EPOCH, advance_timestamp, format_timestamp

from .exceptions import CartItemNotFoundError, InvalidCartStateError, InvalidQuantityError


class CartAction:
    ITEM_ADDED = 'item_added'
    QUANTITY_UPDATED = 'quantity_updated'
    ITEM_REMOVED = 'item_removed'
    CLEARED = 'cleared'
    REPLACED = 'replaced'


# =============================================================================
# Reads
# =============================================================================

def get_cart_items(*, user: User) -> QuerySet:
    """Cart lines of ``user``, most recently changed first."""
    return (
        CartItem.objects
        .filter(cart__user=user)
        .select_related('product')
        .order_by('-updated_at', 'product__name')
    )


def cart_item_data(item: CartItem) -> Dict[str, Any]:
    """Wire form of one cart line."""
    return {
        'id': str(item.id),
        'product_id': str(item.product_id),
        'product_name': item.product.name if item.product else 'Unknown Product',
        'image_url': item.product.image_url if item.product else '',
        'quantity': item.quantity,
        'price': float(item.price),
        'total_price': float(item.total_price),
        'updated_at': format_timestamp(item.updated_at),
    }


def cart_state(*, user: User) -> Dict[str, Any]:
    """
    Cart entity as served in the sync snapshot.

    ``updated_at`` is the header timestamp (epoch for a never-used cart),
    ``checksum`` the canonical cart checksum of ``items``.
    """
    items = [cart_item_data(item) for item in get_cart_items(user=user)]
    cart = Cart.objects.filter(user=user).first()
    total_price = sum((Decimal(str(item['price'])) * item['quantity'] for item in items), Decimal('0'))

    return {
        'items': items,
        'total_items': sum(item['quantity'] for item in items),
        'total_price': float(total_price),
        'updated_at': format_timestamp(cart.updated_at) if cart else EPOCH,
        'checksum': cart_checksum(items),
    }


# =============================================================================
# Mutations
# =============================================================================

def _locked_cart(user: User) -> Cart:
    cart, _ = Cart.objects.select_for_update().get_or_create(user=user)
    return cart


def _touch(cart: Cart, timestamp: Optional[datetime] = None) -> datetime:
    cart.updated_at = timestamp or advance_timestamp(cart.updated_at)
    cart.save(update_fields=['updated_at'])
    return cart.updated_at


def _validate_quantity(quantity, allow_zero: bool = False) -> int:
    minimum = 0 if allow_zero else 1
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < minimum:
        raise InvalidQuantityError("Valid quantity is required")
    return quantity


def _publish(broadcaster, user: User, action: str, item_id=None, product_id=None, quantity=None) -> None:
    if broadcaster is None:
        return
    user_id = user.id
    transaction.on_commit(
        lambda: broadcaster.cart_updated(
            user_id, action, item_id=item_id, product_id=product_id, quantity=quantity
        )
    )


@transaction.atomic
def add_item(*, user: User, product_id: UUID, quantity: int = 1, broadcaster=None) -> CartItem:
    """
    Add ``quantity`` of a product; an existing line is incremented.

    Args:
        user: Cart owner
        product_id: UUID of the product
        quantity: Units to add
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        The created or incremented CartItem

    Raises:
        InvalidQuantityError: If quantity < 1
        ProductNotFoundError: If product doesn't exist
    """
    _validate_quantity(quantity)
    product = get_product(product_id=product_id)
    cart = _locked_cart(user)
    stamp = _touch(cart)

    item = CartItem.objects.filter(cart=cart, product=product).first()
    if item:
        item.quantity += quantity
        item.updated_at = stamp
        item.save(update_fields=['quantity', 'updated_at'])
    else:
        item = CartItem.objects.create(
            cart=cart,
            product=product,
            quantity=quantity,
            price=product.price,
            created_at=stamp,
            updated_at=stamp,
        )

    _publish(broadcaster, user, CartAction.ITEM_ADDED, item.id, product.id, item.quantity)
    return item


@transaction.atomic
def update_item_quantity(*, user: User, product_id: UUID, quantity: int, broadcaster=None) -> Optional[CartItem]:
    """
    Set a line's quantity; zero removes the line and returns None.

    Args:
        user: Cart owner
        product_id: UUID of the product on the line
        quantity: New quantity (0 removes the line)
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        Updated CartItem, or None when the line was removed

    Raises:
        InvalidQuantityError: If quantity < 0
        CartItemNotFoundError: If the cart has no line for the product
    """
    _validate_quantity(quantity, allow_zero=True)
    if quantity == 0:
        remove_item(user=user, product_id=product_id, broadcaster=broadcaster)
        return None

    cart = _locked_cart(user)
    item = _get_line(cart, product_id)
    stamp = _touch(cart)
    item.quantity = quantity
    item.updated_at = stamp
    item.save(update_fields=['quantity', 'updated_at'])

    _publish(broadcaster, user, CartAction.QUANTITY_UPDATED, item.id, item.product_id, quantity)
    return item


@transaction.atomic
def remove_item(*, user: User, product_id: UUID, broadcaster=None) -> None:
    """
    Remove a product's line.

    Args:
        user: Cart owner
        product_id: UUID of the product on the line
        broadcaster: EventBroadcaster notified after commit, if given

    Raises:
        CartItemNotFoundError: If the cart has no line for the product
    """
    cart = _locked_cart(user)
    item = _get_line(cart, product_id)
    item_id = item.id
    item.delete()
    _touch(cart)

    _publish(broadcaster, user, CartAction.ITEM_REMOVED, item_id, product_id)


@transaction.atomic
def clear_cart(*, user: User, broadcaster=None) -> int:
    """Delete every line; returns the number removed."""
    cart = _locked_cart(user)
    deleted, _ = CartItem.objects.filter(cart=cart).delete()
    _touch(cart)

    _publish(broadcaster, user, CartAction.CLEARED)
    return deleted


@transaction.atomic
def replace_cart(*, user: User, items: List[Dict[str, Any]], timestamp: datetime, broadcaster=None) -> List[CartItem]:
    """
    Replace every line with ``items`` (local-wins push).

    Each item needs ``product_id`` and a positive integer ``quantity``;
    ``price`` defaults to the product's current price. All lines and the
    header are stamped with ``timestamp``.

    Args:
        user: Cart owner
        items: Local cart lines
        timestamp: Stamp for the header and every line
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        The created CartItems

    Raises:
        InvalidCartStateError: If an item is malformed, duplicated or names
            an unknown product
    """
    lines = _parse_lines(items)

    products = {
        str(product.id): product
        for product in Product.objects.filter(id__in=[line['product_id'] for line in lines])
    }
    missing = [line['product_id'] for line in lines if line['product_id'] not in products]
    if missing:
        raise InvalidCartStateError(f"Unknown products: {', '.join(missing)}")

    cart = _locked_cart(user)
    CartItem.objects.filter(cart=cart).delete()
    created = CartItem.objects.bulk_create([
        CartItem(
            cart=cart,
            product=products[line['product_id']],
            quantity=line['quantity'],
            price=line['price'] if line['price'] is not None else products[line['product_id']].price,
            created_at=timestamp,
            updated_at=timestamp,
        )
        for line in lines
    ])
    _touch(cart, timestamp)

    _publish(broadcaster, user, CartAction.REPLACED)
    return created


def _get_line(cart: Cart, product_id) -> CartItem:
    try:
        return CartItem.objects.get(cart=cart, product_id=product_id)
    except (CartItem.DoesNotExist, ValidationError, ValueError):
        raise CartItemNotFoundError("Cart item not found")


def _parse_lines(items) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        raise InvalidCartStateError("local_state.items must be a list")

    lines = []
    seen = set()
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get('product_id'):
            raise InvalidCartStateError(f"Item {index} has no product_id")
        try:
            product_id = str(UUID(str(item['product_id'])))
        except ValueError:
            raise InvalidCartStateError(f"Item {index} has an invalid product_id")
        if product_id in seen:
            raise InvalidCartStateError(f"Duplicate product {product_id}")
        seen.add(product_id)

        quantity = item.get('quantity')
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidCartStateError(f"Item {index} has an invalid quantity")

        price = item.get('price')
        if price is not None:
            try:
                price = Decimal(repr(price) if isinstance(price, float) else str(price))
            except InvalidOperation:
                raise InvalidCartStateError(f"Item {index} has an invalid price")
            if price < 0:
                raise InvalidCartStateError(f"Item {index} has an invalid price")
            price = price.quantize(Decimal('0.01'))

        lines.append({'product_id': product_id, 'quantity': quantity, 'price': price})
    return lines
