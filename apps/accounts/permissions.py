from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    """
    Permission: User must be staff or have the admin user type.
    """

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsDeliveryDriver(permissions.BasePermission):
    """
    Permission: User must be a delivery driver.
    """

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_driver)
