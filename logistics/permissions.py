"""
Role based permission classes.

Admins pass every role check; they may stand in for nurses and porters.
"""
from rest_framework.permissions import BasePermission

from .models import User


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == User.ROLE_ADMIN


class IsNurseRole(BasePermission):
    """Nurses (and admins)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in {User.ROLE_NURSE, User.ROLE_ADMIN}


class IsPorterRole(BasePermission):
    """Porters (and admins)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in {User.ROLE_PORTER, User.ROLE_ADMIN}

