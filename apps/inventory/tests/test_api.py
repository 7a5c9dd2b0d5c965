import pytest
from uuid import uuid4
from django.urls import reverse
from rest_framework import status

from statesync import channels


# =============================================================================
# Inventory List Tests
# =============================================================================

@pytest.mark.django_db
class TestInventoryList:
    """Tests for GET /api/admin/inventory/"""

    def test_customer_forbidden(self, authenticated_client):
        response = authenticated_client.get(reverse('inventory:inventory-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['success'] is False

    def test_list_ordered_by_stock(self, admin_client, milk, bread):
        response = admin_client.get(reverse('inventory:inventory-list'))

        assert response.status_code == status.HTTP_200_OK
        names = [item['name'] for item in response.data['data']['items']]
        assert names == ['Bread', 'Milk']
        assert response.data['data']['count'] == 2

    def test_low_stock_filter(self, admin_client, make_product):
        make_product(name='Eggs', stock=3)
        make_product(name='Rice', stock=100)

        response = admin_client.get(reverse('inventory:inventory-list'), {'low_stock': 'true'})

        items = response.data['data']['items']
        assert [item['name'] for item in items] == ['Eggs']
        assert response.data['data']['low_stock_count'] == 1

    def test_invalid_threshold(self, admin_client):
        response = admin_client.get(reverse('inventory:inventory-list'), {'threshold': 'many'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Stock Update Tests
# =============================================================================

@pytest.mark.django_db
class TestStockUpdate:
    """Tests for PATCH /api/admin/inventory/<product_id>/"""

    def test_set_stock_publishes_stock_event(
        self, admin_client, milk, events, django_capture_on_commit_callbacks
    ):
        url = reverse('inventory:inventory-update', args=[milk.id])

        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.patch(url, {'stock': 40}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['stock'] == 40
        stock_events = events.on(channels.PRODUCTS)
        assert len(stock_events) == 1
        assert stock_events[0].event.stock == 40
        assert events.on(channels.ADMIN_INVENTORY) == []

    def test_low_stock_alert(self, admin_client, milk, events, django_capture_on_commit_callbacks):
        url = reverse('inventory:inventory-update', args=[milk.id])

        with django_capture_on_commit_callbacks(execute=True):
            admin_client.patch(url, {'stock': 5, 'adjustment_type': 'set'}, format='json')

        alerts = events.on(channels.ADMIN_INVENTORY)
        assert len(alerts) == 1
        assert alerts[0].name == 'low_stock_alert'
        assert alerts[0].event.threshold == 10

    def test_subtract_floors_at_zero(self, admin_client, bread, events):
        url = reverse('inventory:inventory-update', args=[bread.id])

        response = admin_client.patch(url, {'stock': 500, 'adjustment_type': 'subtract'}, format='json')

        assert response.data['data']['stock'] == 0

    def test_add_stock(self, admin_client, bread, events):
        url = reverse('inventory:inventory-update', args=[bread.id])

        response = admin_client.put(url, {'stock': 5, 'adjustment_type': 'add'}, format='json')

        assert response.data['data']['stock'] == 25

    def test_negative_stock_rejected(self, admin_client, milk, events):
        url = reverse('inventory:inventory-update', args=[milk.id])

        response = admin_client.patch(url, {'stock': -1}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['errors'][0]['field'] == 'stock'

    def test_unknown_product(self, admin_client, events):
        url = reverse('inventory:inventory-update', args=[uuid4()])

        response = admin_client.patch(url, {'stock': 1}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_driver_forbidden(self, driver_client, milk):
        url = reverse('inventory:inventory-update', args=[milk.id])

        response = driver_client.patch(url, {'stock': 1}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
