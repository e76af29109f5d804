"""
Order and inventory service tests.

Verifies:
- Orders snapshot the item and compute profit = settled - unit cost
- Stored profit follows the cost implied at creation, not the item's current cost
- Moving into Returned needs return details and persists nothing until given
- SKU uniqueness on create and edit, stock adjustments
"""

import pytest

from order_tracker.errors import RecordNotFound
from order_tracker.services import inventory_service, orders_service
from order_tracker.services.orders_service import (
    ReturnDetailsRequired,
    build_order_from_item,
    recompute_profit,
)
from order_tracker.validation import ConflictError, ValidationError


@pytest.fixture
def headphones(admin_gateway, item_payload):
    return inventory_service.create_item(admin_gateway, item_payload)


def record(gateway, item, order_id="ORD-001", **extra):
    payload = {"id": order_id, "date": "2023-10-25", "product_id": item.id}
    payload.update(extra)
    return orders_service.create_order(gateway, payload)


class TestBuildOrder:

    def test_snapshot_and_profit(self, item_payload):
        order = build_order_from_item(dict(item_payload, id="INV-1"), " ORD-9 ", "2024-01-02")
        assert order == {
            "id": "ORD-9",
            "date": "2024-01-02",
            "product_id": "INV-1",
            "product_name": "Wireless Headphones",
            "category": "Electronics",
            "listing_price": 199.99,
            "settled_amount": 180.0,
            "profit": 60.0,
            "status": "Pending",
        }

    def test_requires_item(self):
        with pytest.raises(ValidationError):
            build_order_from_item(None, "ORD-1", "2024-01-02")

    def test_requires_order_id(self, item_payload):
        with pytest.raises(ValidationError):
            build_order_from_item(item_payload, "  ", "2024-01-02")

    def test_recompute_uses_implied_cost(self):
        # created with settled 180 / profit 60: implied cost 120
        assert recompute_profit({"settled_amount": 180, "profit": 60}, 150) == 30.0
        assert recompute_profit({"settled_amount": 180, "profit": 60}, "99.5") == -20.5


class TestCreateOrder:

    def test_records_snapshot(self, admin_gateway, headphones):
        order = record(admin_gateway, headphones)
        assert order.product_name == "Wireless Headphones"
        assert order.settled_amount == 180
        assert order.profit == 60
        assert order.status == "Pending"

    def test_default_status_argument(self, admin_gateway, headphones):
        order = orders_service.create_order(
            admin_gateway,
            {"id": "ORD-2", "date": "2024-01-01", "product_id": headphones.id},
            default_status="Processing",
        )
        assert order.status == "Processing"

    def test_settled_override_recomputes_profit(self, admin_gateway, headphones):
        order = record(admin_gateway, headphones, settled_amount=170)
        assert order.profit == 50

    def test_unknown_product(self, admin_gateway):
        with pytest.raises(RecordNotFound):
            orders_service.create_order(admin_gateway, {"id": "ORD-1", "date": "2024-01-01", "product_id": "INV-NOPE"})

    def test_other_owners_product(self, admin_gateway, staff_gateway, headphones):
        with pytest.raises(RecordNotFound):
            record(staff_gateway, headphones)

    def test_stock_is_not_decremented(self, admin_gateway, headphones):
        record(admin_gateway, headphones, status="Settled")
        assert admin_gateway.get_inventory_item(headphones.id).stock_level == 45

    def test_item_edits_do_not_reach_orders(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        inventory_service.update_item(admin_gateway, headphones.id, {"name": "Renamed", "unit_cost": 10})
        order = admin_gateway.get_order("ORD-001")
        assert order.product_name == "Wireless Headphones"
        assert order.profit == 60


class TestUpdateOrder:

    def test_settled_change_follows_stored_profit(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        inventory_service.update_item(admin_gateway, headphones.id, {"unit_cost": 1})

        order = orders_service.update_order(admin_gateway, "ORD-001", {"settled_amount": 150})
        assert order.profit == 30

    def test_explicit_profit_wins(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        order = orders_service.update_order(admin_gateway, "ORD-001", {"settled_amount": 150, "profit": 5})
        assert order.profit == 5

    def test_id_is_immutable(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        with pytest.raises(ValidationError):
            orders_service.update_order(admin_gateway, "ORD-001", {"id": "ORD-002"})

    def test_empty_patch(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        with pytest.raises(ValidationError):
            orders_service.update_order(admin_gateway, "ORD-001", {})


class TestChangeStatus:

    def test_plain_status_written(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        assert orders_service.change_status(admin_gateway, "ORD-001", "Shipped").status == "Shipped"

    def test_settle_with_amount(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        order = orders_service.change_status(admin_gateway, "ORD-001", "Settled", settled_amount="175.50")
        assert order.settled_amount == 175.5
        assert order.profit == 55.5

    def test_blank_status(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        with pytest.raises(ValidationError):
            orders_service.change_status(admin_gateway, "ORD-001", " ")

    def test_returned_needs_details_and_writes_nothing(self, admin_gateway, headphones):
        record(admin_gateway, headphones, status="Shipped")

        with pytest.raises(ReturnDetailsRequired) as exc:
            orders_service.change_status(admin_gateway, "ORD-001", "Returned")
        assert exc.value.order_id == "ORD-001"
        assert exc.value.details.state == "Unclassified"

        assert admin_gateway.get_order("ORD-001").status == "Shipped"

    def test_save_return_details(self, admin_gateway, headphones):
        record(admin_gateway, headphones, status="Shipped")

        order = orders_service.save_return_details(
            admin_gateway, "ORD-001", {"return_type": "Customer", "loss_amount": 50}
        )
        assert order.status == "Returned"
        assert order.return_type == "Customer"
        assert order.claim_status == "Pending"
        assert order.loss_amount == 50

        details = orders_service.get_return_details(admin_gateway, "ORD-001")
        assert details.loss_amount == 50

    def test_leaving_returned_keeps_return_fields(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        orders_service.save_return_details(admin_gateway, "ORD-001", {"return_type": "Customer", "loss_amount": 20})

        order = orders_service.change_status(admin_gateway, "ORD-001", "Shipped")
        assert order.status == "Shipped"
        assert order.return_type == "Customer"
        assert order.loss_amount == 20

    def test_returned_label_any_case(self, admin_gateway, headphones):
        record(admin_gateway, headphones, status="Shipped")

        with pytest.raises(ReturnDetailsRequired):
            orders_service.change_status(admin_gateway, "ORD-001", " returned ")
        assert admin_gateway.get_order("ORD-001").status == "Shipped"

        order = orders_service.change_status(admin_gateway, "ORD-001", "SETTLED")
        assert order.status == "Settled"

    def test_edit_into_returned_writes_nothing(self, admin_gateway, headphones):
        record(admin_gateway, headphones, status="Shipped")

        with pytest.raises(ReturnDetailsRequired) as exc:
            orders_service.update_order(admin_gateway, "ORD-001", {"status": "Returned", "profit": 1})
        assert exc.value.details.state == "Unclassified"

        order = admin_gateway.get_order("ORD-001")
        assert order.status == "Shipped"
        assert order.profit == 60

    def test_edit_of_returned_order_keeps_status(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        orders_service.save_return_details(admin_gateway, "ORD-001", {"return_type": "Courier"})

        order = orders_service.update_order(admin_gateway, "ORD-001", {"status": "returned", "profit": 10})
        assert order.status == "Returned"
        assert order.profit == 10

    def test_cannot_record_as_returned(self, admin_gateway, headphones):
        for status in ("Returned", "RETURNED"):
            with pytest.raises(ValidationError):
                record(admin_gateway, headphones, status=status)
        assert admin_gateway.get_orders() == []

        assert record(admin_gateway, headphones, status="settled").status == "Settled"

    def test_custom_returned_label(self, admin_gateway, headphones):
        record(admin_gateway, headphones)
        with pytest.raises(ReturnDetailsRequired):
            orders_service.change_status(admin_gateway, "ORD-001", "RTO", returned_status="RTO")
        # the default label is an ordinary status when another one is configured
        assert orders_service.change_status(
            admin_gateway, "ORD-001", "Returned", returned_status="RTO"
        ).status == "Returned"


class TestInventoryService:

    def test_duplicate_sku_rejected_before_write(self, admin_gateway, headphones, item_payload):
        with pytest.raises(ConflictError):
            inventory_service.create_item(admin_gateway, dict(item_payload, sku=" head-wh-1000 "))
        assert len(admin_gateway.get_inventory()) == 1

    def test_same_sku_allowed_for_other_owner(self, staff_gateway, headphones, item_payload):
        item = inventory_service.create_item(staff_gateway, item_payload)
        assert item.sku == "HEAD-WH-1000"

    def test_edit_keeps_own_sku(self, admin_gateway, headphones):
        item = inventory_service.update_item(admin_gateway, headphones.id, {"sku": "HEAD-WH-1000", "stock_level": 3})
        assert item.stock_level == 3

    def test_edit_to_taken_sku(self, admin_gateway, headphones):
        other = inventory_service.create_item(
            admin_gateway, {"name": "Chair", "category": "Furniture", "sku": "CHR-01"}
        )
        with pytest.raises(ConflictError):
            inventory_service.update_item(admin_gateway, other.id, {"sku": "Head-WH-1000"})

    def test_update_missing_item(self, admin_gateway):
        with pytest.raises(RecordNotFound):
            inventory_service.update_item(admin_gateway, "INV-NOPE", {"name": "X"})

    def test_adjust_stock(self, admin_gateway, headphones):
        assert inventory_service.adjust_stock(admin_gateway, headphones.id, -5).stock_level == 40
        assert inventory_service.adjust_stock(admin_gateway, headphones.id, 10).stock_level == 50

    @pytest.mark.parametrize("delta", [-46, 1.5, "3", True])
    def test_adjust_stock_rejected(self, admin_gateway, headphones, delta):
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(admin_gateway, headphones.id, delta)
        assert admin_gateway.get_inventory_item(headphones.id).stock_level == 45

    def test_delete(self, admin_gateway, headphones):
        inventory_service.delete_item(admin_gateway, headphones.id)
        assert admin_gateway.get_inventory() == []
