"""Profile management service."""

from datetime import datetime
from typing import Any, Dict, Optional

from django.db import transaction

from apps.accounts.models import User, UserProfile
from statesync.timestamps import advance_timestamp, format_timestamp

from .exceptions import EmptyProfileUpdateError, InvalidProfileFieldError

# Writable profile fields and their maximum lengths.
PROFILE_FIELDS = {
    'full_name': 120,
    'phone': 30,
    'avatar_url': 200,
}


def get_profile(*, user: User) -> Optional[UserProfile]:
    """Return the user's profile row, or None if it was never written."""
    return UserProfile.objects.filter(user=user).first()


def profile_data(profile: Optional[UserProfile]) -> Optional[Dict[str, Any]]:
    """Wire form of a profile (the ``profile.data`` member of the snapshot)."""
    if profile is None:
        return None
    user = profile.user
    return {
        'id': str(user.id),
        'email': user.email,
        'full_name': profile.full_name,
        'phone': profile.phone,
        'user_type': user.user_type,
        'avatar_url': profile.avatar_url,
        'created_at': format_timestamp(profile.created_at),
        'updated_at': format_timestamp(profile.updated_at),
    }


def _clean(fields: Dict[str, Any]) -> Dict[str, str]:
    cleaned = {}
    for name, value in fields.items():
        if name in PROFILE_FIELDS and isinstance(value, str):
            cleaned[name] = value.strip()[:PROFILE_FIELDS[name]]
    return cleaned


def _locked_profile(user: User) -> UserProfile:
    profile, _ = UserProfile.objects.select_for_update().get_or_create(user=user)
    return profile


@transaction.atomic
def update_profile(*, user: User, **fields) -> UserProfile:
    """
    Update profile fields from the profile endpoint.

    Args:
        user: Profile owner
        **fields: full_name, phone and/or avatar_url

    Returns:
        Updated UserProfile

    Raises:
        InvalidProfileFieldError: If a field is not writable
        EmptyProfileUpdateError: If no field was provided
    """
    unknown = set(fields) - set(PROFILE_FIELDS)
    if unknown:
        raise InvalidProfileFieldError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    cleaned = _clean(fields)
    if not cleaned:
        raise EmptyProfileUpdateError(
            'At least one field (full_name, phone or avatar_url) must be provided'
        )

    profile = _locked_profile(user)
    for name, value in cleaned.items():
        setattr(profile, name, value)
    profile.updated_at = advance_timestamp(profile.updated_at)
    profile.save()
    return profile


@transaction.atomic
def apply_profile_state(*, user: User, data: Dict[str, Any], timestamp: datetime) -> UserProfile:
    """
    Upsert a client's profile record (local-wins push).

    Read-only and unknown keys (id, email, user_type, timestamps) are
    ignored. The row is stamped with ``timestamp``.

    Args:
        user: Profile owner
        data: Client profile record
        timestamp: Stamp for the row

    Returns:
        Updated UserProfile
    """
    profile = _locked_profile(user)
    for name, value in _clean(data or {}).items():
        setattr(profile, name, value)
    profile.updated_at = timestamp
    profile.save()
    return profile
