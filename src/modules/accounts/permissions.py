"""Role-based DRF permissions.

Anonymous requests fail authentication first (401); authenticated users
without the required role get a 403 carrying ``message``.
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.accounts.constants import Role


class HasRole(BasePermission):
    role: str = ""

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(
            user and user.is_authenticated and getattr(user, "role", None) == self.role
        )


class IsAdminRole(HasRole):
    role = Role.ADMIN
    message = "Admin access required"


class IsDeliveryRole(HasRole):
    role = Role.DELIVERY
    message = "Delivery access required"
