from rest_framework import permissions


def user_has_role(user, *roles) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, 'is_superuser', False) and 'admin' in roles:
        return True
    return getattr(user, 'role', None) in roles


class HasRole(permissions.BasePermission):
    """Checks `User.role` against the view's `allowed_roles`."""

    allowed_roles = ()

    def has_permission(self, request, view):
        allowed = getattr(view, 'allowed_roles', None) or self.allowed_roles
        if not allowed:
            return bool(request.user and request.user.is_authenticated)
        return user_has_role(request.user, *allowed)


class IsAdminRole(HasRole):
    allowed_roles = ('admin',)

    def has_permission(self, request, view):
        return user_has_role(request.user, *self.allowed_roles)


class IsAdminOrReadOnly(IsAdminRole):
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return super().has_permission(request, view)
