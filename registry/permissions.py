"""
Custom permission classes for role and location based access control.
"""
from rest_framework.permissions import BasePermission

from registry.exceptions import LocationNotFound
from registry.services.locations import LocationTree, load_location_tree

ADMIN_ROLE = "admin"

# Client screens and the roles allowed to open them
SCREEN_ROLES = {
    "home": ["county user", "subcounty user", "nurse", "admin"],
    "register": ["county user", "subcounty user", "admin"],
    "users": ["county user", "subcounty user", "admin"],
    "editstaff": ["county user", "subcounty user", "admin"],
    "patient_registration": ["county user", "subcounty user", "nurse", "admin"],
}


def location_tree_for(request) -> LocationTree:
    """The location tree loaded for this request, loading it on first use."""
    tree = getattr(request, "location_tree", None)
    if tree is None:
        tree = load_location_tree()
        request.location_tree = tree
    return tree


def allowed_screens(role_name: str) -> list[str]:
    return [screen for screen, roles in SCREEN_ROLES.items() if role_name in roles]


def role_permissions(user) -> set[str]:
    role = getattr(user, "role", None)
    if role is None:
        return set()
    return set(role.permissions.values_list("action", flat=True))


def is_admin(user) -> bool:
    if not (user and user.is_authenticated):
        return False
    return bool(user.is_superuser or getattr(user, "role_name", "") == ADMIN_ROLE)


def has_role_permission(user, action: str) -> bool:
    if not (user and user.is_authenticated):
        return False
    return is_admin(user) or action in role_permissions(user)


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role (or Django superusers)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return is_admin(getattr(request, "user", None))


def require_permission(action: str):
    """Build a permission class granting access when the user's role carries ``action``."""

    class HasRolePermission(BasePermission):
        message = f"missing permission: {action}"

        def has_permission(self, request, view) -> bool:  # type: ignore[override]
            return has_role_permission(getattr(request, "user", None), action)

    HasRolePermission.__name__ = f"HasRolePermission[{action}]"
    return HasRolePermission


class HasLocationAccess(BasePermission):
    """The target location must sit at or below the user's home location.

    The target comes from the ``location_id`` URL argument or a
    ``locationId`` body field; a request naming neither is refused.
    """
    message = "location outside your area"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        target = (getattr(view, "kwargs", None) or {}).get("location_id")
        if target is None and hasattr(request.data, "get"):
            target = request.data.get("locationId")
        if target is None or not getattr(user, "location_id", None):
            return False
        try:
            target = int(target)
        except (TypeError, ValueError):
            return False
        tree = location_tree_for(request)
        if target not in tree:
            raise LocationNotFound(target)
        return target in tree.get_accessible_location_ids(user.location_id)
