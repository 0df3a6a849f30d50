"""
Role based permission classes.

``admin`` manages the pharmacy catalog and order fulfilment;
``physician`` and ``admin`` may search the patient and specialist
directory and notify other users.
"""
from rest_framework.permissions import BasePermission

ADMIN_ROLES = {"admin"}
CLINICAL_ROLES = {"physician", "admin"}


def _has_role(request, roles) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class IsAdminRole(BasePermission):
    """Allow access only to users with an administrative role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, ADMIN_ROLES)


class IsClinicalRole(BasePermission):
    """Physicians and administrators (directory and referral search)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, CLINICAL_ROLES)
