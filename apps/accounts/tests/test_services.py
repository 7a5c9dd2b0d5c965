"""
Service layer unit tests for accounts app.
"""

from datetime import datetime, timezone

import pytest

from apps.accounts.services import (
    apply_profile_state,
    get_profile,
    profile_data,
    update_profile,
)
from apps.accounts.services.exceptions import EmptyProfileUpdateError, InvalidProfileFieldError
from statesync.timestamps import format_timestamp


@pytest.mark.django_db
class TestProfileManagement:

    def test_get_profile_none_until_written(self, user):
        assert get_profile(user=user) is None
        assert profile_data(None) is None

    def test_update_profile_strips_values(self, user):
        profile = update_profile(user=user, full_name='  Jana  ')

        assert profile.full_name == 'Jana'

    def test_update_profile_rejects_unknown_field(self, user):
        with pytest.raises(InvalidProfileFieldError):
            update_profile(user=user, email='x@example.com')

    def test_update_profile_rejects_empty(self, user):
        with pytest.raises(EmptyProfileUpdateError):
            update_profile(user=user)

    def test_update_profile_timestamps_strictly_increase(self, user):
        first = update_profile(user=user, full_name='A').updated_at
        second = update_profile(user=user, full_name='B').updated_at

        assert second > first

    def test_apply_profile_state_uses_given_timestamp(self, user):
        stamp = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

        profile = apply_profile_state(
            user=user,
            data={'full_name': 'Pushed', 'email': 'ignored@example.com', 'id': 'ignored'},
            timestamp=stamp,
        )

        assert profile.full_name == 'Pushed'
        assert profile.user.email == user.email
        assert format_timestamp(profile.updated_at) == '2030-01-01T12:00:00.000Z'

    def test_profile_data_shape(self, user):
        profile = update_profile(user=user, full_name='Jana', phone='123')
        data = profile_data(profile)

        assert set(data) == {
            'id', 'email', 'full_name', 'phone', 'user_type',
            'avatar_url', 'created_at', 'updated_at',
        }
        assert data['id'] == str(user.id)
