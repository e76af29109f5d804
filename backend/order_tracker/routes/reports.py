# Overview: Flask API routes for reports; dashboard statistics, trends and breakdowns.

# backend/order_tracker/routes/reports.py
"""
Reporting routes.

Every endpoint reloads the caller's orders and inventory and recomputes;
nothing is cached between requests.

SECURITY: All routes require VIEW_REPORTS.
"""
from flask import Blueprint, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import GatewayError, gateway_error_response
from ..services import reporting_service
from ..services.data_gateway import DataGateway, get_gateway
from ..services.settings_service import KIND_STATUS, default_labels, get_vocabulary
from ..services.workspace_service import Workspace
from .common import configured_labels

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _workspace() -> Workspace:
    return Workspace(get_gateway(), **configured_labels()).refresh()


@reports_bp.get("/dashboard")
def dashboard():
    """
    Stats, monthly trend, category and status breakdowns, inventory summary.

    Without a configured store the dashboard is empty and flags setup_required.
    """
    if not DataGateway().is_configured():
        empty = reporting_service.dashboard([], [], default_labels(KIND_STATUS), **configured_labels())
        empty.update({"configured": False, "setup_required": True})
        return jsonify(empty), 200
    return _authenticated_dashboard()


@require_auth
@require_permission("VIEW_REPORTS")
def _authenticated_dashboard():
    try:
        workspace = _workspace()
        statuses = get_vocabulary(g.current_user.id, KIND_STATUS).to_list()
        payload = workspace.dashboard(statuses)
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Failed to build dashboard"}), 500

    payload["configured"] = True
    return jsonify(payload), 200


@reports_bp.get("/stats")
@require_auth
@require_permission("VIEW_REPORTS")
def stats():
    try:
        return jsonify(_workspace().stats.to_dict()), 200
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to compute stats")
        return jsonify({"error": "Failed to compute stats"}), 500


@reports_bp.get("/monthly")
@require_auth
@require_permission("VIEW_REPORTS")
def monthly():
    try:
        rows = reporting_service.monthly_trend(_workspace().orders, **configured_labels())
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to compute monthly trend")
        return jsonify({"error": "Failed to compute monthly trend"}), 500
    return jsonify({"items": rows, "count": len(rows)}), 200


@reports_bp.get("/monthly-reports")
@require_auth
@require_permission("VIEW_REPORTS")
def monthly_reports():
    try:
        rows = reporting_service.monthly_reports(_workspace().orders, **configured_labels())
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to compute monthly reports")
        return jsonify({"error": "Failed to compute monthly reports"}), 500
    return jsonify({"items": rows, "count": len(rows)}), 200


@reports_bp.get("/categories")
@require_auth
@require_permission("VIEW_REPORTS")
def categories():
    try:
        rows = reporting_service.category_breakdown(_workspace().orders, **configured_labels())
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to compute category breakdown")
        return jsonify({"error": "Failed to compute category breakdown"}), 500
    return jsonify({"items": rows, "count": len(rows)}), 200


@reports_bp.get("/statuses")
@require_auth
@require_permission("VIEW_REPORTS")
def statuses():
    try:
        vocabulary = get_vocabulary(g.current_user.id, KIND_STATUS).to_list()
        rows = reporting_service.status_summary(_workspace().orders, vocabulary)
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to compute status summary")
        return jsonify({"error": "Failed to compute status summary"}), 500
    return jsonify({"items": rows, "count": len(rows)}), 200
