"""
Permission System Constants and Definitions

Authorization is derived from the role stored on the UserProfile. There is no
per-user override table: the role is the single source of truth, and the team
view is gated by MANAGE_TEAM rather than by comparing an email address.

DESIGN PRINCIPLES:
- Permissions are granular (one action per permission)
- Unknown or free-text roles fall back to the Viewer set (least privilege)
- Admin has all permissions
"""

# =============================================================================
# PERMISSION CATEGORIES
# =============================================================================

class PermissionCategory:
    """Permission categories for organization."""
    ORDERS = "ORDERS"
    INVENTORY = "INVENTORY"
    REPORTS = "REPORTS"
    SYSTEM = "SYSTEM"
    TEAM = "TEAM"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    ("VIEW_ORDERS", "View Orders", "List orders and return details", PermissionCategory.ORDERS),
    ("MANAGE_ORDERS", "Manage Orders", "Record, edit, re-status and delete orders", PermissionCategory.ORDERS),
    ("VIEW_INVENTORY", "View Inventory", "List catalog items and stock levels", PermissionCategory.INVENTORY),
    ("MANAGE_INVENTORY", "Manage Inventory", "Create, edit and delete catalog items", PermissionCategory.INVENTORY),
    ("VIEW_REPORTS", "View Reports", "Dashboard statistics, trends and breakdowns", PermissionCategory.REPORTS),
    ("VIEW_INSIGHTS", "View Insights", "Request AI narrative insights", PermissionCategory.REPORTS),
    ("MANAGE_SETTINGS", "Manage Settings", "Edit status and category vocabularies", PermissionCategory.SYSTEM),
    ("MANAGE_TEAM", "Manage Team", "View the team directory and onboard members", PermissionCategory.TEAM),
    ("SHARE_DATA", "Share Data", "Clone catalog and orders into another account", PermissionCategory.TEAM),
]


# =============================================================================
# ROLES
# =============================================================================

ROLE_ADMIN = "Admin"
ROLE_MANAGER = "Manager"
ROLE_STAFF = "Staff"
ROLE_VIEWER = "Viewer"

TEAM_ROLES = [ROLE_ADMIN, ROLE_MANAGER, ROLE_STAFF, ROLE_VIEWER]

_VIEW = {"VIEW_ORDERS", "VIEW_INVENTORY", "VIEW_REPORTS"}

ROLE_PERMISSIONS = {
    ROLE_ADMIN: {perm[0] for perm in PERMISSION_DEFINITIONS},
    ROLE_MANAGER: _VIEW | {"MANAGE_ORDERS", "MANAGE_INVENTORY", "VIEW_INSIGHTS", "MANAGE_SETTINGS"},
    ROLE_STAFF: _VIEW | {"MANAGE_ORDERS", "MANAGE_INVENTORY", "VIEW_INSIGHTS"},
    ROLE_VIEWER: set(_VIEW),
}


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()


def normalize_role(role) -> str:
    """Match a free-text role to a known role name, case-insensitively."""
    text = str(role or "").strip()
    for known in TEAM_ROLES:
        if known.lower() == text.lower():
            return known
    return text
