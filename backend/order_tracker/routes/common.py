# Overview: Helpers shared by the API blueprints; destructive-action confirmation and unconfigured degradation.

from functools import wraps
from flask import current_app, jsonify, request

from ..services.data_gateway import DataGateway


def is_confirmed() -> bool:
    """True when the request carries ?confirm=true or a JSON {"confirm": true}."""
    if request.args.get("confirm", "").strip().lower() in ("1", "true", "yes"):
        return True
    data = request.get_json(silent=True)
    return isinstance(data, dict) and data.get("confirm") is True


def confirmation_required(action: str):
    return jsonify({
        "error": f"Confirmation required to {action}",
        "confirmation_required": True,
    }), 428


def degrade_when_unconfigured(f):
    """List endpoints answer an empty payload instead of 503 without a store."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not DataGateway().is_configured():
            return jsonify({"items": [], "count": 0, "configured": False}), 200
        return f(*args, **kwargs)

    return decorated_function


def configured_labels() -> dict:
    return {
        "settled_status": current_app.config.get("SETTLED_STATUS", "Settled"),
        "returned_status": current_app.config.get("RETURNED_STATUS", "Returned"),
    }
