"""DRF permission classes built on ``RequestContext`` roles."""

from __future__ import annotations

from rest_framework.permissions import SAFE_METHODS, BasePermission

from modules.core.context import RequestContext


class IsAdminRole(BasePermission):
    """Allow only callers whose context resolves to the admin role."""

    message = "Administrator role required."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return RequestContext.from_user(user).is_admin


class IsAdminOrReadOnly(IsAdminRole):
    """Anyone may read; writes require the admin role."""

    def has_permission(self, request, view) -> bool:
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)
