import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import UserProfile, UserType
from statesync.timestamps import EPOCH, parse_timestamp


# =============================================================================
# User Model Tests
# =============================================================================

@pytest.mark.django_db
class TestUserModel:

    def test_create_user_defaults_to_customer(self, user):
        assert user.user_type == UserType.CUSTOMER
        assert user.check_password('TestPass123!')
        assert not user.is_admin
        assert not user.is_driver

    def test_create_superuser_is_admin(self, admin_user):
        assert admin_user.is_staff
        assert admin_user.is_superuser
        assert admin_user.user_type == UserType.ADMIN
        assert admin_user.is_admin

    def test_driver_flag(self, driver):
        assert driver.is_driver
        assert not driver.is_admin

    def test_email_is_normalized(self, db):
        from apps.accounts.models import User

        created = User.objects.create_user(email='Mixed@EXAMPLE.com', password='TestPass123!')
        assert created.email == 'Mixed@example.com'


# =============================================================================
# Profile Endpoint Tests
# =============================================================================

@pytest.mark.django_db
class TestProfileEndpoint:
    """Tests for GET/PATCH /api/users/profile/"""

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('users:profile'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False

    def test_get_profile_before_first_write_is_null(self, authenticated_client):
        response = authenticated_client.get(reverse('users:profile'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        assert response.data['data'] is None

    def test_patch_creates_profile(self, authenticated_client, user):
        response = authenticated_client.patch(
            reverse('users:profile'),
            {'full_name': 'Jana Novak', 'phone': '+420 123 456 789'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['full_name'] == 'Jana Novak'
        assert data['phone'] == '+420 123 456 789'
        assert data['email'] == user.email
        assert data['updated_at'] != EPOCH
        assert UserProfile.objects.filter(user=user).exists()

    def test_patch_advances_timestamp(self, authenticated_client):
        url = reverse('users:profile')
        first = authenticated_client.patch(url, {'full_name': 'A'}, format='json')
        second = authenticated_client.patch(url, {'full_name': 'B'}, format='json')

        assert parse_timestamp(second.data['data']['updated_at']) > parse_timestamp(first.data['data']['updated_at'])

    def test_patch_empty_body_rejected(self, authenticated_client):
        response = authenticated_client.patch(reverse('users:profile'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False

    def test_put_updates_avatar(self, authenticated_client):
        response = authenticated_client.put(
            reverse('users:profile'),
            {'avatar_url': 'https://cdn.example.com/a.png'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['avatar_url'] == 'https://cdn.example.com/a.png'
