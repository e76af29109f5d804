# backend/order_tracker/services/inventory_service.py
"""
Inventory catalog service.

SKU RULE: unique per owner, compared trimmed and case-insensitively. The check
runs against the owner's current catalog before any write is issued.

Deleting an item never touches orders; their snapshot fields keep reporting
intact.
"""
from __future__ import annotations

from ..models import InventoryItem
from ..validation import (
    INVENTORY_POLICY,
    ValidationError,
    enforce_rules_inventory_item,
    ensure_unique_sku,
    validate_payload,
)


def create_item(gateway, payload: dict) -> InventoryItem:
    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_POLICY, partial=False)
    enforce_rules_inventory_item(patch)

    ensure_unique_sku(gateway.get_inventory(), patch["sku"])
    return gateway.save_inventory_item(patch)


def update_item(gateway, item_id: str, payload: dict) -> InventoryItem:
    if isinstance(payload, dict) and "id" in payload and payload["id"] != item_id:
        raise ValidationError("Item id cannot be changed")

    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_POLICY, partial=True)
    patch.pop("id", None)
    enforce_rules_inventory_item(patch)
    if not patch:
        raise ValidationError("No changes submitted")

    # 404 before the SKU check
    gateway.get_inventory_item(item_id)
    if "sku" in patch:
        ensure_unique_sku(gateway.get_inventory(), patch["sku"], exclude_id=item_id)

    return gateway.update_inventory_item(item_id, patch)


def delete_item(gateway, item_id: str) -> None:
    gateway.delete_inventory_item(item_id)


def adjust_stock(gateway, item_id: str, delta) -> InventoryItem:
    """Operator stock correction; the level never goes below zero."""
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")

    item = gateway.get_inventory_item(item_id)
    new_level = (item.stock_level or 0) + delta
    if new_level < 0:
        raise ValidationError(f"Insufficient stock: {item.stock_level} on hand")
    return gateway.update_inventory_item(item_id, {"stock_level": new_level})
