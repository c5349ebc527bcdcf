from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.accounts.models import UserRole


class IsAdminRole(BasePermission):
    """Grants access only to authenticated users with the ADMIN role."""

    message = "Admin role required."

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and getattr(user, "role", None) == UserRole.ADMIN
        )
