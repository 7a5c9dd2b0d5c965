"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class InvalidProfileFieldError(AccountsServiceError):
    """Raised when a profile update names a field that cannot be written."""
    pass


class EmptyProfileUpdateError(AccountsServiceError):
    """Raised when a profile update carries no writable field."""
    pass
