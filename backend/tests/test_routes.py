"""
API route tests.

End-to-end flows through the blueprints: registration and login, order
entry, the returned-status handshake, reporting, vocabularies, health and
the degraded answers given without a configured store.
"""

import pytest

from order_tracker import create_app

from conftest import TEST_CONFIG, TEST_PASSWORD, auth_headers


@pytest.fixture
def stocked(client, staff_headers, item_payload):
    """Staff account with the headphones item and one pending order."""
    item = client.post("/api/inventory", json=item_payload, headers=staff_headers).get_json()
    client.post(
        "/api/orders",
        json={"id": "ORD-001", "date": "2023-10-25", "product_id": item["id"]},
        headers=staff_headers,
    )
    return item


# =============================================================================
# AUTH
# =============================================================================


class TestAuthRoutes:

    def test_register_login_me_logout(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": "Owner@Example.com", "password": TEST_PASSWORD})
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["email"] == "owner@example.com"
        assert body["profile"]["role"] == "Staff"

        resp = client.post("/api/auth/login", json={"email": "owner@example.com", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        headers = auth_headers(resp.get_json()["token"])

        me = client.get("/api/auth/me", headers=headers).get_json()
        assert me["user"]["email"] == "owner@example.com"

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_register_ignores_requested_role(self, client, db_session):
        resp = client.post(
            "/api/auth/register",
            json={"email": "sneaky@example.com", "password": TEST_PASSWORD, "role": "Admin"},
        )
        assert resp.get_json()["profile"]["role"] == "Staff"

    @pytest.mark.parametrize(
        "body,status",
        [
            ({"email": "a@example.com"}, 400),
            ({"email": "a@example.com", "password": "short"}, 400),
            ({"email": "not-an-email", "password": TEST_PASSWORD}, 400),
        ],
    )
    def test_register_rejected(self, client, db_session, body, status):
        assert client.post("/api/auth/register", json=body).status_code == status

    def test_register_duplicate(self, client, staff_user):
        resp = client.post("/api/auth/register", json={"email": "staff@example.com", "password": TEST_PASSWORD})
        assert resp.status_code == 409

    def test_login_wrong_password(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"email": "staff@example.com", "password": "Wrong123!"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid email or password"


# =============================================================================
# ORDERS
# =============================================================================


class TestOrderRoutes:

    def test_create_and_list(self, client, staff_headers, stocked):
        body = client.get("/api/orders", headers=staff_headers).get_json()
        assert body["configured"] is True
        assert body["count"] == 1
        order = body["items"][0]
        assert order["product_name"] == "Wireless Headphones"
        assert order["profit"] == 60
        # first label of the default status vocabulary
        assert order["status"] == "Pending"

    def test_create_validation(self, client, staff_headers, stocked):
        resp = client.post("/api/orders", json={"id": "ORD-2", "date": "2023-10-25"}, headers=staff_headers)
        assert resp.status_code == 400

        resp = client.post(
            "/api/orders",
            json={"id": "ORD-001", "date": "2023-10-25", "product_id": stocked["id"]},
            headers=staff_headers,
        )
        assert resp.status_code == 409

        resp = client.post(
            "/api/orders",
            json={"id": "ORD-3", "date": "2023-10-25", "product_id": "INV-NOPE"},
            headers=staff_headers,
        )
        assert resp.status_code == 404

    def test_update(self, client, staff_headers, stocked):
        resp = client.put("/api/orders/ORD-001", json={"settled_amount": 150}, headers=staff_headers)
        assert resp.status_code == 200
        assert resp.get_json()["profit"] == 30

        resp = client.put("/api/orders/ORD-001", json={"user_id": "someone"}, headers=staff_headers)
        assert resp.status_code == 400

    def test_other_owner_gets_404(self, client, stocked, admin_headers):
        assert client.get("/api/orders/ORD-001", headers=admin_headers).status_code == 404
        assert client.get("/api/orders", headers=admin_headers).get_json()["count"] == 0

    def test_status_change(self, client, staff_headers, stocked):
        resp = client.post(
            "/api/orders/ORD-001/status",
            json={"status": "Settled", "settled_amount": 170},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "Settled"
        assert resp.get_json()["profit"] == 50

    def test_returned_handshake(self, client, staff_headers, stocked):
        resp = client.post("/api/orders/ORD-001/status", json={"status": "Returned"}, headers=staff_headers)
        assert resp.status_code == 409
        body = resp.get_json()
        assert body["return_details_required"] is True
        assert body["return_details"]["state"] == "Unclassified"
        assert client.get("/api/orders/ORD-001", headers=staff_headers).get_json()["status"] == "Pending"

        resp = client.put(
            "/api/orders/ORD-001/return",
            json={"return_type": "Customer", "loss_amount": 50},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        order = resp.get_json()
        assert order["status"] == "Returned"
        assert order["claim_status"] == "Pending"

        details = client.get("/api/orders/ORD-001/return", headers=staff_headers).get_json()
        assert details["state"] == "Customer"
        assert details["loss_amount"] == 50

    def test_edit_cannot_bypass_handshake(self, client, staff_headers, stocked):
        resp = client.put("/api/orders/ORD-001", json={"status": "Returned"}, headers=staff_headers)
        assert resp.status_code == 409
        assert resp.get_json()["return_details_required"] is True

        order = client.get("/api/orders/ORD-001", headers=staff_headers).get_json()
        assert order["status"] == "Pending"
        assert order["return_type"] is None

    def test_lowercase_returned_label(self, client, staff_headers, stocked):
        resp = client.post("/api/orders/ORD-001/status", json={"status": "returned"}, headers=staff_headers)
        assert resp.status_code == 409
        assert client.get("/api/orders/ORD-001", headers=staff_headers).get_json()["status"] == "Pending"

    def test_create_as_returned_rejected(self, client, staff_headers, stocked):
        resp = client.post(
            "/api/orders",
            json={"id": "ORD-2", "date": "2023-10-25", "product_id": stocked["id"], "status": "Returned"},
            headers=staff_headers,
        )
        assert resp.status_code == 400
        assert client.get("/api/orders/ORD-2", headers=staff_headers).status_code == 404

    def test_return_errors(self, client, staff_headers, stocked):
        resp = client.put("/api/orders/ORD-001/return", json={"return_type": "Drone"}, headers=staff_headers)
        assert resp.status_code == 400
        resp = client.put("/api/orders/ORD-001/return", json={"loss_amount": 10}, headers=staff_headers)
        assert resp.status_code == 400
        assert client.get("/api/orders/ORD-001", headers=staff_headers).get_json()["status"] == "Pending"


# =============================================================================
# INVENTORY
# =============================================================================


class TestInventoryRoutes:

    def test_duplicate_sku(self, client, staff_headers, stocked, item_payload):
        resp = client.post("/api/inventory", json=dict(item_payload, sku="head-wh-1000"), headers=staff_headers)
        assert resp.status_code == 409
        assert "already in use" in resp.get_json()["error"]

    def test_adjust_and_low_stock(self, client, staff_headers, stocked):
        resp = client.post(f"/api/inventory/{stocked['id']}/adjust", json={"delta": -40}, headers=staff_headers)
        assert resp.get_json()["stock_level"] == 5
        assert resp.get_json()["is_low_stock"] is True

        low = client.get("/api/inventory/low-stock", headers=staff_headers).get_json()
        assert [i["id"] for i in low["items"]] == [stocked["id"]]

        resp = client.post(f"/api/inventory/{stocked['id']}/adjust", json={"delta": -6}, headers=staff_headers)
        assert resp.status_code == 400

    def test_update_sku_conflict(self, client, staff_headers, stocked):
        chair = client.post(
            "/api/inventory",
            json={"name": "Ergonomic Chair", "category": "Furniture", "sku": "CHR-ERG-01"},
            headers=staff_headers,
        ).get_json()
        resp = client.put(f"/api/inventory/{chair['id']}", json={"sku": "HEAD-WH-1000"}, headers=staff_headers)
        assert resp.status_code == 409


# =============================================================================
# REPORTS
# =============================================================================


class TestReportRoutes:

    def test_dashboard(self, client, staff_headers, stocked):
        client.post("/api/orders/ORD-001/status", json={"status": "Settled"}, headers=staff_headers)

        body = client.get("/api/reports/dashboard", headers=staff_headers).get_json()
        assert body["configured"] is True
        assert body["stats"]["settled_revenue"] == 180
        assert body["stats"]["net_profit"] == 60
        assert body["stats"]["margin"] == 33.33
        assert body["monthly_trend"] == [{"month": "2023-10", "revenue": 180, "profit": 60}]
        assert body["inventory"]["item_count"] == 1

    def test_return_loss_flows_into_stats(self, client, staff_headers, stocked):
        client.put(
            "/api/orders/ORD-001/return",
            json={"return_type": "Customer", "loss_amount": 25},
            headers=staff_headers,
        )
        stats = client.get("/api/reports/stats", headers=staff_headers).get_json()
        assert stats["active_return_loss"] == 25
        assert stats["net_profit"] == -25

        client.put("/api/orders/ORD-001/return", json={"claim_status": "Approved"}, headers=staff_headers)
        stats = client.get("/api/reports/stats", headers=staff_headers).get_json()
        assert stats["net_profit"] == 0

    @pytest.mark.parametrize("path", ["/monthly", "/monthly-reports", "/categories", "/statuses"])
    def test_breakdowns(self, client, staff_headers, stocked, path):
        resp = client.get(f"/api/reports{path}", headers=staff_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["count"] == len(body["items"])


# =============================================================================
# SETTINGS
# =============================================================================


class TestSettingsRoutes:

    def test_read_defaults(self, client, viewer_headers):
        body = client.get("/api/settings/vocabularies", headers=viewer_headers).get_json()
        assert "Settled" in body["status"]["labels"]
        assert body["status"]["protected"] == ["Settled", "Returned"]
        assert body["category"]["protected"] == []

    def test_manage(self, client, admin_headers):
        resp = client.post("/api/settings/vocabularies/status", json={"label": "On Hold"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["labels"][-1] == "On Hold"

        resp = client.post(
            "/api/settings/vocabularies/status/move", json={"label": "On Hold", "position": 0}, headers=admin_headers
        )
        assert resp.get_json()["labels"][0] == "On Hold"

        resp = client.patch(
            "/api/settings/vocabularies/status", json={"old": "On Hold", "new": "Paused"}, headers=admin_headers
        )
        assert resp.get_json()["labels"][0] == "Paused"

        resp = client.delete("/api/settings/vocabularies/status/Paused", headers=admin_headers)
        assert "Paused" not in resp.get_json()["labels"]

    def test_errors(self, client, admin_headers):
        assert client.delete("/api/settings/vocabularies/status/Settled", headers=admin_headers).status_code == 400
        assert client.delete("/api/settings/vocabularies/status/Nope", headers=admin_headers).status_code == 404
        assert client.get("/api/settings/vocabularies/colour", headers=admin_headers).status_code == 400
        resp = client.put("/api/settings/vocabularies/status", json={"labels": "Pending"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_new_order_uses_first_status(self, client, admin_headers, item_payload):
        client.post(
            "/api/settings/vocabularies/status/move", json={"label": "Processing", "position": 0}, headers=admin_headers
        )
        item = client.post("/api/inventory", json=item_payload, headers=admin_headers).get_json()
        order = client.post(
            "/api/orders",
            json={"id": "ORD-9", "date": "2024-01-01", "product_id": item["id"]},
            headers=admin_headers,
        ).get_json()
        assert order["status"] == "Processing"


# =============================================================================
# INSIGHTS AND HEALTH
# =============================================================================


class TestInsightsRoute:

    def test_unconfigured_key(self, client, staff_headers, stocked):
        body = client.post("/api/insights", headers=staff_headers).get_json()
        assert body["configured"] is False
        assert body["order_count"] == 1
        assert "GEMINI_API_KEY" in body["analysis"]


class TestHealth:

    def test_healthy(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["schema"]["status"] == "healthy"


# =============================================================================
# UNCONFIGURED STORE
# =============================================================================


class TestUnconfiguredStore:

    @pytest.fixture
    def bare_client(self):
        app = create_app({**TEST_CONFIG, "SQLALCHEMY_DATABASE_URI": ""})
        with app.app_context():
            yield app.test_client()

    @pytest.mark.parametrize("path", ["/api/orders", "/api/inventory", "/api/inventory/low-stock"])
    def test_lists_degrade_to_empty(self, bare_client, path):
        resp = bare_client.get(path)
        assert resp.status_code == 200
        assert resp.get_json() == {"items": [], "count": 0, "configured": False}

    def test_dashboard_is_empty(self, bare_client):
        body = bare_client.get("/api/reports/dashboard").get_json()
        assert body["setup_required"] is True
        assert body["stats"]["order_count"] == 0
        assert body["stats"]["margin"] == 0

    def test_writes_report_setup(self, bare_client):
        resp = bare_client.post("/api/orders", json={})
        assert resp.status_code == 503
        assert resp.get_json()["setup_required"] is True

        resp = bare_client.post("/api/auth/login", json={"email": "a@example.com", "password": TEST_PASSWORD})
        assert resp.status_code == 503

    def test_health(self, bare_client):
        resp = bare_client.get("/health")
        assert resp.status_code == 503
        assert resp.get_json()["checks"]["database"]["status"] == "unconfigured"
