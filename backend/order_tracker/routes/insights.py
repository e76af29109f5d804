# Overview: Flask API route for AI narrative insights over the caller's orders.

from flask import Blueprint, jsonify, current_app

from ..decorators import require_auth, require_permission
from ..errors import GatewayError, gateway_error_response
from ..services.data_gateway import get_gateway
from ..services.insights_service import get_ai_analysis

insights_bp = Blueprint("insights", __name__, url_prefix="/api/insights")


@insights_bp.post("")
@require_auth
@require_permission("VIEW_INSIGHTS")
def analyze_orders():
    """Best effort: failures of the AI service come back as text, not errors."""
    try:
        orders = get_gateway().get_orders()
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load orders for insights")
        return jsonify({"error": "Failed to load orders"}), 500

    return jsonify({
        "analysis": get_ai_analysis(orders),
        "order_count": len(orders),
        "configured": bool(current_app.config.get("GEMINI_API_KEY")),
    }), 200
