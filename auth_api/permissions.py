from rest_framework.permissions import BasePermission

from user_mang.models.custom_user import Custom_User


class IsAdminRole(BasePermission):
    """Platform admins (role=ADMIN)."""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == Custom_User.Role.ADMIN)


class IsListenerOrAdmin(BasePermission):
    message = 'Listener or admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated
            and user.role in (Custom_User.Role.LISTENER, Custom_User.Role.ADMIN)
        )


class IsApprovedListener(BasePermission):
    message = 'Approved listener access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated
            and user.role == Custom_User.Role.LISTENER and user.is_approved
        )


class IsEmailVerified(BasePermission):
    message = 'Email address is not verified.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.email_verified)
