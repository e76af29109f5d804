"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Viewer role is read-only (403 on writes)
- Staff cannot reach team management or settings writes
- Admin can perform privileged operations
- Destructive actions need explicit confirmation (428)
"""

from types import SimpleNamespace

import pytest

from order_tracker.errors import PermissionDenied
from order_tracker.permissions import (
    ROLE_PERMISSIONS,
    get_all_permission_codes,
    normalize_role,
    validate_permission_code,
)
from order_tracker.services.permission_service import get_profile_permissions, require_permission

from conftest import TEST_PASSWORD


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/orders/ORD-1"),
            ("POST", "/api/orders/ORD-1/status"),
            ("PUT", "/api/orders/ORD-1/return"),
            ("GET", "/api/inventory"),
            ("GET", "/api/inventory/low-stock"),
            ("POST", "/api/inventory"),
            ("GET", "/api/reports/dashboard"),
            ("GET", "/api/reports/stats"),
            ("GET", "/api/reports/monthly"),
            ("GET", "/api/settings/vocabularies"),
            ("GET", "/api/team/profiles"),
            ("POST", "/api/team/share"),
            ("POST", "/api/insights"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_invalid_token(self, client, db_session):
        resp = client.get("/api/orders", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_revoked_token(self, client, staff_headers):
        assert client.post("/api/auth/logout", headers=staff_headers).status_code == 200
        assert client.get("/api/auth/me", headers=staff_headers).status_code == 401


# =============================================================================
# VIEWER IS READ-ONLY: 403
# =============================================================================


class TestViewerReadOnly:

    def test_can_read(self, client, viewer_headers):
        assert client.get("/api/orders", headers=viewer_headers).status_code == 200
        assert client.get("/api/inventory", headers=viewer_headers).status_code == 200
        assert client.get("/api/reports/dashboard", headers=viewer_headers).status_code == 200

    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("POST", "/api/orders", {"id": "ORD-1", "date": "2024-01-01", "product_id": "INV-1"}),
            ("PUT", "/api/orders/ORD-1", {"status": "Shipped"}),
            ("POST", "/api/orders/ORD-1/status", {"status": "Shipped"}),
            ("PUT", "/api/orders/ORD-1/return", {"return_type": "Courier"}),
            ("POST", "/api/inventory", {"name": "X", "category": "Y", "sku": "Z"}),
            ("POST", "/api/inventory/INV-1/adjust", {"delta": 1}),
            ("POST", "/api/settings/vocabularies/status", {"label": "On Hold"}),
            ("POST", "/api/insights", None),
        ],
    )
    def test_cannot_write(self, client, viewer_headers, method, path, body):
        resp = getattr(client, method.lower())(path, json=body, headers=viewer_headers)
        assert resp.status_code == 403
        assert resp.get_json()["code"] == "permission_denied"

    def test_cannot_delete(self, client, viewer_headers):
        resp = client.delete("/api/orders/ORD-1?confirm=true", headers=viewer_headers)
        assert resp.status_code == 403


# =============================================================================
# STAFF LIMITS
# =============================================================================


class TestStaffLimits:

    def test_cannot_list_team(self, client, staff_headers):
        assert client.get("/api/team/profiles", headers=staff_headers).status_code == 403

    def test_cannot_onboard(self, client, staff_headers):
        resp = client.post(
            "/api/team/members",
            json={"email": "x@example.com", "password": TEST_PASSWORD},
            headers=staff_headers,
        )
        assert resp.status_code == 403

    def test_cannot_share(self, client, staff_headers, admin_user):
        resp = client.post("/api/team/share", json={"target_user_id": admin_user.id}, headers=staff_headers)
        assert resp.status_code == 403

    def test_cannot_edit_vocabulary(self, client, staff_headers):
        resp = client.post("/api/settings/vocabularies/category", json={"label": "Toys"}, headers=staff_headers)
        assert resp.status_code == 403

    def test_me_lists_permissions(self, client, staff_headers):
        body = client.get("/api/auth/me", headers=staff_headers).get_json()
        assert body["profile"]["role"] == "Staff"
        assert "MANAGE_ORDERS" in body["permissions"]
        assert "MANAGE_TEAM" not in body["permissions"]


# =============================================================================
# ADMIN
# =============================================================================


class TestAdminAccess:

    def test_team_directory_excludes_caller(self, client, admin_headers, staff_user, viewer_user):
        body = client.get("/api/team/profiles", headers=admin_headers).get_json()
        emails = sorted(p["email"] for p in body["items"])
        assert emails == ["staff@example.com", "viewer@example.com"]
        assert body["roles"] == ["Admin", "Manager", "Staff", "Viewer"]

    def test_onboard_keeps_admin_signed_in(self, client, admin_headers):
        resp = client.post(
            "/api/team/members",
            json={"email": "new@example.com", "password": TEST_PASSWORD, "role": "Viewer"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert "token" not in resp.get_json()
        assert resp.get_json()["profile"]["role"] == "Viewer"

        me = client.get("/api/auth/me", headers=admin_headers).get_json()
        assert me["user"]["email"] == "admin@example.com"

    def test_onboard_duplicate(self, client, admin_headers, staff_user):
        resp = client.post(
            "/api/team/members",
            json={"email": "staff@example.com", "password": TEST_PASSWORD},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_change_role(self, client, admin_headers, staff_user):
        resp = client.patch(f"/api/team/members/{staff_user.id}", json={"role": "manager"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "Manager"

        resp = client.patch(f"/api/team/members/{staff_user.id}", json={"role": ""}, headers=admin_headers)
        assert resp.status_code == 400

    def test_share(self, client, admin_headers, staff_user, item_payload):
        client.post("/api/inventory", json=item_payload, headers=admin_headers)

        resp = client.post("/api/team/share", json={"target_user_id": staff_user.id}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"ok": True, "shared": {"inventory": 1, "orders": 0}}

    def test_share_validation(self, client, admin_headers, admin_user, staff_user):
        resp = client.post("/api/team/share", json={"target_user_id": admin_user.id}, headers=admin_headers)
        assert resp.status_code == 400
        resp = client.post(
            "/api/team/share",
            json={"target_user_id": staff_user.id, "orders": "yes"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        resp = client.post("/api/team/share", json={"target_user_id": "nobody"}, headers=admin_headers)
        assert resp.status_code == 404


# =============================================================================
# CONFIRMATION: 428
# =============================================================================


class TestConfirmation:

    def test_delete_item_requires_confirm(self, client, staff_headers, item_payload):
        item = client.post("/api/inventory", json=item_payload, headers=staff_headers).get_json()

        resp = client.delete(f"/api/inventory/{item['id']}", headers=staff_headers)
        assert resp.status_code == 428
        assert resp.get_json()["confirmation_required"] is True
        assert client.get(f"/api/inventory/{item['id']}", headers=staff_headers).status_code == 200

        resp = client.delete(f"/api/inventory/{item['id']}?confirm=true", headers=staff_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/inventory/{item['id']}", headers=staff_headers).status_code == 404

    def test_delete_order_confirm_in_body(self, client, staff_headers, item_payload):
        item = client.post("/api/inventory", json=item_payload, headers=staff_headers).get_json()
        client.post(
            "/api/orders",
            json={"id": "ORD-1", "date": "2024-01-01", "product_id": item["id"]},
            headers=staff_headers,
        )

        assert client.delete("/api/orders/ORD-1", headers=staff_headers).status_code == 428
        resp = client.delete("/api/orders/ORD-1", json={"confirm": True}, headers=staff_headers)
        assert resp.status_code == 200


# =============================================================================
# ROLE TEMPLATES
# =============================================================================


class TestRolePermissions:

    def test_role_templates_use_known_codes(self):
        for codes in ROLE_PERMISSIONS.values():
            assert all(validate_permission_code(code) for code in codes)
        assert ROLE_PERMISSIONS["Admin"] == set(get_all_permission_codes())

    @pytest.mark.parametrize("role,expected", [("admin", "Admin"), (" viewer ", "Viewer"), ("Packer", "Packer")])
    def test_normalize_role(self, role, expected):
        assert normalize_role(role) == expected

    def test_free_text_role_gets_viewer_set(self):
        profile = SimpleNamespace(id="p-1", role="Packer")
        assert get_profile_permissions(profile) == ROLE_PERMISSIONS["Viewer"]
        with pytest.raises(PermissionDenied):
            require_permission(profile, "MANAGE_ORDERS")

    def test_missing_profile_has_nothing(self):
        assert get_profile_permissions(None) == set()

    def test_unknown_code(self):
        with pytest.raises(ValueError):
            require_permission(SimpleNamespace(id="p-1", role="Admin"), "LAUNCH_ROCKETS")
