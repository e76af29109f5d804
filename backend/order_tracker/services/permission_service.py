# Overview: Service-layer authorization checks; resolves permissions from the profile role.

"""
Permission checking.

DESIGN PRINCIPLES:
- Fail closed: deny by default, require explicit permission grant
- The role lives on the UserProfile; nothing else grants access
- Denials are logged through the app logger with the profile id
"""

from flask import current_app, has_app_context

from ..errors import PermissionDenied
from ..permissions import ROLE_PERMISSIONS, ROLE_VIEWER, normalize_role, validate_permission_code


def get_role_permissions(role) -> set[str]:
    """Permission codes for a role name; unknown roles get the Viewer set."""
    return set(ROLE_PERMISSIONS.get(normalize_role(role), ROLE_PERMISSIONS[ROLE_VIEWER]))


def get_profile_permissions(profile) -> set[str]:
    if profile is None:
        return set()
    return get_role_permissions(getattr(profile, "role", None))


def has_permission(profile, permission_code: str) -> bool:
    return permission_code in get_profile_permissions(profile)


def require_permission(profile, permission_code: str) -> None:
    """
    Raise PermissionDenied unless the profile's role grants permission_code.

    An unknown code is a programming error and raises ValueError.
    """
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code: {permission_code}")

    if has_permission(profile, permission_code):
        return

    if has_app_context():
        current_app.logger.warning(
            "Permission denied: profile=%s role=%s permission=%s",
            getattr(profile, "id", None),
            getattr(profile, "role", None),
            permission_code,
        )
    raise PermissionDenied(permission_code)
