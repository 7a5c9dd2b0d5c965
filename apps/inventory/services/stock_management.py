"""
Stock management service.

Stock changes publish ``stock_updated`` on the products channel and, at or
below ``LOW_STOCK_THRESHOLD``, ``low_stock_alert`` on the admin inventory
channel. Events go out after the transaction commits.
"""

from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.inventory.models import Product

from .exceptions import InvalidStockError, ProductNotFoundError


class AdjustmentType:
    SET = 'set'
    ADD = 'add'
    SUBTRACT = 'subtract'

    choices = (SET, ADD, SUBTRACT)


def low_stock_threshold() -> int:
    return getattr(settings, 'LOW_STOCK_THRESHOLD', 10)


def get_product(*, product_id: UUID, for_update: bool = False) -> Product:
    """
    Return an active product.

    Args:
        product_id: UUID of the product
        for_update: Lock the row until the transaction ends

    Returns:
        The Product

    Raises:
        ProductNotFoundError: If the id is malformed, unknown or inactive
    """
    queryset = Product.objects.filter(is_active=True)
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=product_id)
    except (Product.DoesNotExist, ValidationError, ValueError):
        raise ProductNotFoundError(f"Product with ID {product_id} not found")


def list_inventory(*, low_stock_only: bool = False, threshold: int = None) -> QuerySet:
    """Active products ordered by stock, lowest first."""
    queryset = Product.objects.filter(is_active=True).order_by('stock', 'name')
    if low_stock_only:
        queryset = queryset.filter(stock__lte=low_stock_threshold() if threshold is None else threshold)
    return queryset


@transaction.atomic
def update_stock(
    *,
    product_id: UUID,
    stock: int,
    adjustment_type: str = AdjustmentType.SET,
    broadcaster=None,
) -> Product:
    """
    Set, add to or subtract from a product's stock.

    Subtraction floors at zero.

    Args:
        product_id: UUID of the product
        stock: Amount to set, add or subtract
        adjustment_type: One of set, add or subtract
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        Updated Product

    Raises:
        ProductNotFoundError: If product doesn't exist
        InvalidStockError: If stock is negative or the adjustment is unknown
    """
    if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
        raise InvalidStockError("Stock must be a non-negative integer")
    if adjustment_type not in AdjustmentType.choices:
        raise InvalidStockError(
            f"Invalid adjustment_type. Must be one of: {', '.join(AdjustmentType.choices)}"
        )

    product = get_product(product_id=product_id, for_update=True)

    if adjustment_type == AdjustmentType.ADD:
        product.stock += stock
    elif adjustment_type == AdjustmentType.SUBTRACT:
        product.stock = max(0, product.stock - stock)
    else:
        product.stock = stock
    product.save(update_fields=['stock', 'updated_at'])

    if broadcaster is not None:
        publish_stock_change(broadcaster, product)

    return product


def publish_stock_change(broadcaster, product: Product) -> None:
    """Schedule the stock events of ``product`` for after commit."""
    product_id, stock = product.id, product.stock
    threshold = low_stock_threshold()

    def publish():
        broadcaster.product_stock_changed(product_id, stock)
        if stock <= threshold:
            broadcaster.low_stock_alert(product_id, stock, threshold)

    transaction.on_commit(publish)
