# Overview: Order entry and lifecycle; snapshots items into orders, status changes and return persistence.

"""
Orders

ORDER ENTRY:
An order is recorded against an inventory item. The item's name, category,
retail price and expected bank settlement are copied onto the order, and
profit is computed once as settled_amount - unit_cost. Later edits to the
item never reach existing orders.

STORED PROFIT:
profit is stored, not derived. When a corrected settled_amount arrives the
unit cost is recovered from the stored pair (settled_amount - profit) and
profit is recomputed from it. The item's current unit cost is never used.

STATUS CHANGES:
Any label other than the returned one is written immediately. Moving into the
returned status needs return details first, so change_status and update_order
raise ReturnDetailsRequired with a seeded draft and write nothing. A new order
cannot start out returned. The settled and returned labels match regardless
of case and are stored in their configured spelling.

STOCK:
Recording or settling an order does not touch stock_level.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..models import Order
from ..records import field, number_field, text_field
from ..validation import (
    ORDER_POLICY,
    ValidationError,
    enforce_rules_order,
    validate_payload,
)
from .reporting_service import SETTLED_STATUS
from .return_service import (
    RETURNED_STATUS,
    ReturnDetails,
    apply_return_details,
    build_return_details,
    open_return_details,
)


DEFAULT_STATUS = "Pending"


class ReturnDetailsRequired(Exception):
    """Moving into the returned status needs return details; carries the draft."""

    def __init__(self, order_id: str, details: ReturnDetails):
        self.order_id = order_id
        self.details = details
        super().__init__(f"Return details are required to mark order {order_id} as returned")


def _money(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01")))


def normalize_status(
    status: Any,
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> str:
    """Trimmed status; the workflow labels come back in their configured spelling."""
    text = str(status or "").strip()
    for label in (settled_status, returned_status):
        if text.casefold() == label.strip().casefold():
            return label
    return text


def build_order_from_item(item: Any, order_id: str, order_date: str, status: str = DEFAULT_STATUS) -> dict:
    """
    New order dict for one unit of item.

    Raises ValidationError without an item or with a blank order id.
    """
    if item is None:
        raise ValidationError("Please select a product from inventory")
    order_id = str(order_id or "").strip()
    if not order_id:
        raise ValidationError("Please enter a valid order id")

    settled = number_field(item, "bank_settled_amount")
    cost = number_field(item, "unit_cost")

    return {
        "id": order_id,
        "date": order_date,
        "product_id": field(item, "id"),
        "product_name": text_field(item, "name"),
        "category": text_field(item, "category"),
        "listing_price": _money(number_field(item, "retail_price")),
        "settled_amount": _money(settled),
        "profit": _money(settled - cost),
        "status": status or DEFAULT_STATUS,
    }


def recompute_profit(order: Any, new_settled_amount: Any) -> float:
    """Profit for a corrected settlement, using the cost implied at creation."""
    unit_cost = number_field(order, "settled_amount") - number_field(order, "profit")
    return _money(float(new_settled_amount) - unit_cost)


def create_order(
    gateway,
    payload: dict,
    *,
    default_status: str = DEFAULT_STATUS,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> Order:
    """
    Validate an order entry and record it.

    product_id must name one of the caller's items. listing_price,
    settled_amount and profit may be overridden; a settled_amount override
    without a profit recomputes profit from the item's cost. An order cannot
    be recorded in the returned status.
    """
    patch = validate_payload(model=Order, payload=payload, policy=ORDER_POLICY, partial=False)
    enforce_rules_order(patch)

    status = normalize_status(
        patch.get("status") or default_status,
        settled_status=settled_status,
        returned_status=returned_status,
    )
    if status == returned_status:
        raise ValidationError(
            f'An order cannot be recorded as "{returned_status}"; record it first, then add return details'
        )

    item = gateway.get_inventory_item(patch["product_id"])
    order = build_order_from_item(item, patch["id"], patch["date"], status)

    for key in ("listing_price", "settled_amount", "profit"):
        if patch.get(key) is not None:
            order[key] = patch[key]
    if patch.get("settled_amount") is not None and patch.get("profit") is None:
        order["profit"] = _money(patch["settled_amount"] - number_field(item, "unit_cost"))

    return gateway.save_order(order)


def update_order(
    gateway,
    order_id: str,
    payload: dict,
    *,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> Order:
    """
    Partial edit of an order's own fields.

    The id is immutable. A new settled_amount without an explicit profit
    follows the stored-profit rule. Moving into the returned status raises
    ReturnDetailsRequired and writes nothing.
    """
    if isinstance(payload, dict) and "id" in payload and payload["id"] != order_id:
        raise ValidationError("Order id cannot be changed")

    patch = validate_payload(model=Order, payload=payload, policy=ORDER_POLICY, partial=True)
    patch.pop("id", None)
    enforce_rules_order(patch)
    if not patch:
        raise ValidationError("No changes submitted")

    current = gateway.get_order(order_id)
    if "status" in patch:
        patch["status"] = normalize_status(
            patch["status"], settled_status=settled_status, returned_status=returned_status
        )
        if patch["status"] == returned_status and text_field(current, "status") != returned_status:
            raise ReturnDetailsRequired(order_id, open_return_details(current))
    if patch.get("settled_amount") is not None and "profit" not in patch:
        patch["profit"] = recompute_profit(current, patch["settled_amount"])

    return gateway.update_order(order_id, patch)


def change_status(
    gateway,
    order_id: str,
    new_status: str,
    *,
    settled_amount: Any = None,
    settled_status: str = SETTLED_STATUS,
    returned_status: str = RETURNED_STATUS,
) -> Order:
    """
    Move an order to new_status.

    Raises ReturnDetailsRequired (nothing persisted) when new_status is the
    returned label, in any letter case. Leaving the returned status keeps the
    return fields.
    """
    new_status = normalize_status(new_status, settled_status=settled_status, returned_status=returned_status)
    if not new_status:
        raise ValidationError("status cannot be blank")

    order = gateway.get_order(order_id)

    if new_status == returned_status:
        raise ReturnDetailsRequired(order_id, open_return_details(order))

    changes: dict = {"status": new_status}
    if settled_amount is not None:
        patch = validate_payload(
            model=Order,
            payload={"settled_amount": settled_amount},
            policy=ORDER_POLICY,
            partial=True,
        )
        enforce_rules_order(patch)
        if patch.get("settled_amount") is not None:
            changes["settled_amount"] = patch["settled_amount"]
            changes["profit"] = recompute_profit(order, patch["settled_amount"])

    return gateway.update_order(order_id, changes)


def get_return_details(gateway, order_id: str) -> ReturnDetails:
    return open_return_details(gateway.get_order(order_id))


def save_return_details(
    gateway,
    order_id: str,
    payload: dict,
    *,
    returned_status: str = RETURNED_STATUS,
) -> Order:
    """
    Apply a return edit and persist it, moving the order into the returned
    status. On failure the gateway rolls back and the stored order is
    unchanged.
    """
    order = gateway.get_order(order_id)
    details = build_return_details(order, payload)

    changes = apply_return_details({}, details, returned_status=returned_status)
    return gateway.update_order(order_id, changes)
