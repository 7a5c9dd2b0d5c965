"""
Checksum Engine - canonical serialization + MD5 digest.

The client and the server must hash byte-identical strings, so both sides
call these functions instead of serializing on their own.

Canonical form:
    ``json.dumps(records, sort_keys=True, separators=(',', ':'),
    ensure_ascii=False)`` over a per-entity projection of each record:

    cart line:  {product_id: str, quantity: int, price: "0.00"}
                lines sorted by product_id
    order:      {id: str, order_number: str, status: str,
                 total_amount: "0.00", updated_at: ISO ms}
                server order preserved

Numbers are rendered as fixed two-decimal strings so ``10``, ``10.0`` and
``Decimal('10.00')`` hash identically on every platform.

Example::

    from statesync.checksum import cart_checksum

    cart_checksum([{'product_id': 'P1', 'quantity': 2, 'price': 10.0}])
    # '...32 hex chars...'
"""

import hashlib
import json
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from .timestamps import format_timestamp
from .types import SyncEntity

logger = logging.getLogger(__name__)

CART_FIELDS = ('product_id', 'quantity', 'price')
ORDER_FIELDS = ('id', 'order_number', 'status', 'total_amount', 'updated_at')

TWO_PLACES = Decimal('0.01')


def money(value) -> str:
    """Render an amount as a fixed two-decimal string."""
    if value is None or value == '':
        return '0.00'
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f'Invalid amount: {value!r}')
    return str(amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def canonical_cart_line(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'product_id': str(item['product_id']),
        'quantity': int(item['quantity']),
        'price': money(item.get('price')),
    }


def canonical_order(order: Dict[str, Any]) -> Dict[str, Any]:
    updated_at = order.get('updated_at')
    return {
        'id': str(order.get('id', '')),
        'order_number': str(order.get('order_number', '')),
        'status': str(order.get('status', '')),
        'total_amount': money(order.get('total_amount')),
        'updated_at': format_timestamp(updated_at) if updated_at else '',
    }


def canonical_records(entity: SyncEntity, records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Project an entity's item list onto its canonical fields."""
    entity = SyncEntity(entity)
    if entity is SyncEntity.CART:
        lines = [canonical_cart_line(item) for item in records]
        return sorted(lines, key=lambda line: line['product_id'])
    if entity is SyncEntity.ORDERS:
        return [canonical_order(order) for order in records]
    raise ValueError('Profile state is compared by timestamp only')


def canonical_json(data) -> str:
    return json.dumps(data, sort_keys=True, separators=(',', ':'), ensure_ascii=False)


def md5_hex(text: str) -> str:
    """Lowercase hex MD5 of ``text``; empty string if the digest fails."""
    try:
        return hashlib.md5(text.encode('utf-8')).hexdigest()
    except (TypeError, ValueError, AttributeError) as exc:
        logger.error('Checksum digest failed: %s', exc)
        return ''


def calculate_checksum(entity: SyncEntity, records) -> str:
    """
    Checksum of an entity's item list.

    Returns an empty string when the records cannot be projected or
    serialized (missing keys, non-numeric quantities). Callers treat an
    empty checksum as "always changed".
    """
    try:
        canonical = canonical_records(entity, records or [])
        text = canonical_json(canonical)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning('Cannot canonicalize %s records: %s', entity, exc)
        return ''
    return md5_hex(text)


def cart_checksum(items) -> str:
    return calculate_checksum(SyncEntity.CART, items)


def orders_checksum(orders) -> str:
    return calculate_checksum(SyncEntity.ORDERS, orders)


def checksums_match(first: str, second: str) -> bool:
    """Equal non-empty checksums; an empty checksum never matches."""
    return bool(first) and bool(second) and first == second
