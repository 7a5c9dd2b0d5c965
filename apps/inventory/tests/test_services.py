"""
Service layer unit tests for inventory app.
"""

from uuid import uuid4

import pytest

from apps.inventory.services import (
    AdjustmentType,
    get_product,
    list_inventory,
    update_stock,
)
from apps.inventory.services.exceptions import InvalidStockError, ProductNotFoundError


@pytest.mark.django_db
class TestStockManagement:

    def test_get_product_inactive_not_found(self, make_product):
        product = make_product(is_active=False)

        with pytest.raises(ProductNotFoundError):
            get_product(product_id=product.id)

    def test_get_product_malformed_id(self, db):
        with pytest.raises(ProductNotFoundError):
            get_product(product_id='not-a-uuid')

    def test_update_stock_unknown_adjustment(self, milk):
        with pytest.raises(InvalidStockError):
            update_stock(product_id=milk.id, stock=1, adjustment_type='multiply')

    def test_update_stock_rejects_bool(self, milk):
        with pytest.raises(InvalidStockError):
            update_stock(product_id=milk.id, stock=True)

    def test_update_stock_unknown_product(self, db):
        with pytest.raises(ProductNotFoundError):
            update_stock(product_id=uuid4(), stock=1)

    def test_update_without_broadcaster(self, milk):
        product = update_stock(product_id=milk.id, stock=3, adjustment_type=AdjustmentType.ADD)

        assert product.stock == 53

    def test_list_inventory_threshold(self, make_product, settings):
        settings.LOW_STOCK_THRESHOLD = 4
        make_product(name='A', stock=4)
        make_product(name='B', stock=5)

        names = [product.name for product in list_inventory(low_stock_only=True)]

        assert names == ['A']
