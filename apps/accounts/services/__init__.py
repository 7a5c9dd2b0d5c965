"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    InvalidProfileFieldError,
    EmptyProfileUpdateError,
)
from .profile_management import (
    PROFILE_FIELDS,
    get_profile,
    profile_data,
    update_profile,
    apply_profile_state,
)

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'InvalidProfileFieldError',
    'EmptyProfileUpdateError',
    # Services
    'PROFILE_FIELDS',
    'get_profile',
    'profile_data',
    'update_profile',
    'apply_profile_state',
]
