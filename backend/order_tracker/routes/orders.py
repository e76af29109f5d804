# Overview: Flask API routes for orders; entry, edits, status changes and return details.

# backend/order_tracker/routes/orders.py
"""
Order routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_ORDERS
- Write operations require MANAGE_ORDERS

RETURNED STATUS:
POST /status and PUT /<id> with the returned label answer 409 with a draft
of the return details; the client completes it and sends PUT /return, which
is the only way an order enters the returned status. POST with the returned
label is a 400.
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import GatewayError, gateway_error_response
from ..services import orders_service
from ..services.data_gateway import get_gateway
from ..services.orders_service import ReturnDetailsRequired
from ..services.return_service import ReturnError
from ..services.settings_service import KIND_STATUS, get_vocabulary
from ..validation import ValidationError, ConflictError
from .common import configured_labels, confirmation_required, degrade_when_unconfigured, is_confirmed

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def return_details_required(e: ReturnDetailsRequired):
    return jsonify({
        "error": str(e),
        "return_details_required": True,
        "return_details": e.details.to_dict(),
    }), 409


@orders_bp.get("")
@degrade_when_unconfigured
@require_auth
@require_permission("VIEW_ORDERS")
def list_orders():
    """The caller's orders, most recent date first."""
    try:
        orders = get_gateway().get_orders()
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Failed to list orders"}), 500

    items = [o.to_dict() for o in orders]
    return jsonify({"items": items, "count": len(items), "configured": True}), 200


@orders_bp.get("/<order_id>")
@require_auth
@require_permission("VIEW_ORDERS")
def get_order(order_id: str):
    try:
        order = get_gateway().get_order(order_id)
    except GatewayError as e:
        return gateway_error_response(e)
    return jsonify(order.to_dict()), 200


@orders_bp.post("")
@require_auth
@require_permission("MANAGE_ORDERS")
def create_order():
    """
    Record an order against an inventory item.

    Body: {id, date, product_id, status?, listing_price?, settled_amount?, profit?}
    status defaults to the first label of the status vocabulary.
    """
    payload = request.get_json(silent=True) or {}

    try:
        statuses = get_vocabulary(g.current_user.id, KIND_STATUS).to_list()
        default_status = statuses[0] if statuses else orders_service.DEFAULT_STATUS
        order = orders_service.create_order(
            get_gateway(), payload, default_status=default_status, **configured_labels()
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Failed to create order"}), 500

    return jsonify(order.to_dict()), 201


@orders_bp.put("/<order_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def update_order(order_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        order = orders_service.update_order(get_gateway(), order_id, payload, **configured_labels())
    except ReturnDetailsRequired as e:
        return return_details_required(e)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Failed to update order"}), 500

    return jsonify(order.to_dict()), 200


@orders_bp.delete("/<order_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def delete_order(order_id: str):
    """Requires ?confirm=true; answers 428 otherwise without touching the store."""
    if not is_confirmed():
        return confirmation_required(f"delete order {order_id}")

    try:
        get_gateway().delete_order(order_id)
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Failed to delete order"}), 500

    return jsonify({"ok": True}), 200


@orders_bp.post("/<order_id>/status")
@require_auth
@require_permission("MANAGE_ORDERS")
def change_status(order_id: str):
    """
    Body: {status, settled_amount?}

    Returns:
    - 200: order with the new status
    - 409: status is the returned label; body carries return_details (the draft)
    """
    payload = request.get_json(silent=True) or {}

    try:
        order = orders_service.change_status(
            get_gateway(),
            order_id,
            payload.get("status"),
            settled_amount=payload.get("settled_amount"),
            **configured_labels(),
        )
    except ReturnDetailsRequired as e:
        return return_details_required(e)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to change order status")
        return jsonify({"error": "Failed to change order status"}), 500

    return jsonify(order.to_dict()), 200


@orders_bp.get("/<order_id>/return")
@require_auth
@require_permission("VIEW_ORDERS")
def get_return_details(order_id: str):
    try:
        details = orders_service.get_return_details(get_gateway(), order_id)
    except GatewayError as e:
        return gateway_error_response(e)
    return jsonify(details.to_dict()), 200


@orders_bp.put("/<order_id>/return")
@require_auth
@require_permission("MANAGE_ORDERS")
def save_return_details(order_id: str):
    """
    Body: any of {return_type, claim_status, loss_amount, received_status, bank_settled}

    Moves the order into the returned status with the submitted details.
    """
    payload = request.get_json(silent=True) or {}

    try:
        order = orders_service.save_return_details(
            get_gateway(),
            order_id,
            payload,
            returned_status=configured_labels()["returned_status"],
        )
    except ReturnError as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to save return details")
        return jsonify({"error": "Failed to save return details"}), 500

    return jsonify(order.to_dict()), 200
