# Overview: Flask API routes for the inventory catalog; parses input and returns JSON responses.

# backend/order_tracker/routes/inventory.py
"""
Inventory routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_INVENTORY
- Write operations require MANAGE_INVENTORY
"""
from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_permission
from ..errors import GatewayError, gateway_error_response
from ..services import inventory_service
from ..services.data_gateway import get_gateway
from ..services.reporting_service import low_stock_items
from ..validation import ValidationError, ConflictError
from .common import confirmation_required, degrade_when_unconfigured, is_confirmed

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@degrade_when_unconfigured
@require_auth
@require_permission("VIEW_INVENTORY")
def list_items():
    """The caller's catalog, by name."""
    try:
        items = [i.to_dict() for i in get_gateway().get_inventory()]
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list inventory")
        return jsonify({"error": "Failed to list inventory"}), 500

    return jsonify({"items": items, "count": len(items), "configured": True}), 200


@inventory_bp.get("/low-stock")
@degrade_when_unconfigured
@require_auth
@require_permission("VIEW_INVENTORY")
def list_low_stock():
    """Items at or below their reorder threshold."""
    try:
        items = [i.to_dict() for i in low_stock_items(get_gateway().get_inventory())]
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list low stock items")
        return jsonify({"error": "Failed to list low stock items"}), 500

    return jsonify({"items": items, "count": len(items), "configured": True}), 200


@inventory_bp.get("/<item_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_item(item_id: str):
    try:
        item = get_gateway().get_inventory_item(item_id)
    except GatewayError as e:
        return gateway_error_response(e)
    return jsonify(item.to_dict()), 200


@inventory_bp.post("")
@require_auth
@require_permission("MANAGE_INVENTORY")
def create_item():
    payload = request.get_json(silent=True) or {}

    try:
        item = inventory_service.create_item(get_gateway(), payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Failed to create inventory item"}), 500

    return jsonify(item.to_dict()), 201


@inventory_bp.put("/<item_id>")
@require_auth
@require_permission("MANAGE_INVENTORY")
def update_item(item_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        item = inventory_service.update_item(get_gateway(), item_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Failed to update inventory item"}), 500

    return jsonify(item.to_dict()), 200


@inventory_bp.post("/<item_id>/adjust")
@require_auth
@require_permission("MANAGE_INVENTORY")
def adjust_stock(item_id: str):
    """Body: {delta} (signed integer)."""
    payload = request.get_json(silent=True) or {}

    try:
        item = inventory_service.adjust_stock(get_gateway(), item_id, payload.get("delta"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Failed to adjust stock"}), 500

    return jsonify(item.to_dict()), 200


@inventory_bp.delete("/<item_id>")
@require_auth
@require_permission("MANAGE_INVENTORY")
def delete_item(item_id: str):
    """Requires ?confirm=true. Orders for the item keep their snapshot."""
    if not is_confirmed():
        return confirmation_required(f"delete inventory item {item_id}")

    try:
        inventory_service.delete_item(get_gateway(), item_id)
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return jsonify({"error": "Failed to delete inventory item"}), 500

    return jsonify({"ok": True}), 200
