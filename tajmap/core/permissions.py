from rest_framework.permissions import BasePermission, SAFE_METHODS


def is_admin_user(user):
    """Admins are active staff users"""
    return bool(user and user.is_authenticated and user.is_active and user.is_staff)


class IsAdmin(BasePermission):
    message = 'Admin access required'

    def has_permission(self, request, view):
        return is_admin_user(request.user)


class IsAdminOrReadOnly(BasePermission):
    """Anyone may read; only admins may write"""
    message = 'Admin access required'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return is_admin_user(request.user)
