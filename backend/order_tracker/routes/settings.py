# Overview: Flask API routes for workspace vocabularies (order statuses and product categories).

from flask import Blueprint, jsonify, request, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import GatewayError, gateway_error_response
from ..services import settings_service
from ..services.settings_service import (
    ALL_KINDS,
    SettingsNotFoundError,
    SettingsValidationError,
    protected_labels,
)


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


def _vocabulary_payload(kind: str, labels) -> dict:
    return {
        "kind": kind,
        "labels": labels.to_list(),
        "protected": protected_labels(kind),
    }


def _run(action: str, kind: str, func):
    try:
        labels = func()
    except SettingsNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SettingsValidationError as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to %s vocabulary label", action)
        return jsonify({"error": f"Failed to {action} label"}), 500
    return jsonify(_vocabulary_payload(kind, labels)), 200


@settings_bp.get("/vocabularies")
@require_auth
def list_vocabularies():
    try:
        payload = {
            kind: _vocabulary_payload(kind, settings_service.get_vocabulary(g.current_user.id, kind))
            for kind in sorted(ALL_KINDS)
        }
    except GatewayError as e:
        return gateway_error_response(e)
    return jsonify(payload), 200


@settings_bp.get("/vocabularies/<kind>")
@require_auth
def get_vocabulary(kind: str):
    return _run("load", kind, lambda: settings_service.get_vocabulary(g.current_user.id, kind))


@settings_bp.post("/vocabularies/<kind>")
@require_auth
@require_permission("MANAGE_SETTINGS")
def add_label(kind: str):
    """Body: {label}"""
    label = (request.get_json(silent=True) or {}).get("label")
    return _run("add", kind, lambda: settings_service.add_label(g.current_user.id, kind, label))


@settings_bp.put("/vocabularies/<kind>")
@require_auth
@require_permission("MANAGE_SETTINGS")
def reorder_labels(kind: str):
    """Body: {labels: [...]} holding every current label in the new order."""
    labels = (request.get_json(silent=True) or {}).get("labels")
    if not isinstance(labels, list):
        return jsonify({"error": "labels must be a list"}), 400
    return _run("reorder", kind, lambda: settings_service.reorder_labels(g.current_user.id, kind, labels))


@settings_bp.patch("/vocabularies/<kind>")
@require_auth
@require_permission("MANAGE_SETTINGS")
def rename_label(kind: str):
    """Body: {old, new}. Orders keep the old text."""
    data = request.get_json(silent=True) or {}
    return _run(
        "rename", kind,
        lambda: settings_service.rename_label(g.current_user.id, kind, data.get("old"), data.get("new")),
    )


@settings_bp.post("/vocabularies/<kind>/move")
@require_auth
@require_permission("MANAGE_SETTINGS")
def move_label(kind: str):
    """Body: {label, position}"""
    data = request.get_json(silent=True) or {}
    return _run(
        "move", kind,
        lambda: settings_service.move_label(g.current_user.id, kind, data.get("label"), data.get("position")),
    )


@settings_bp.delete("/vocabularies/<kind>/<path:label>")
@require_auth
@require_permission("MANAGE_SETTINGS")
def remove_label(kind: str, label: str):
    return _run("remove", kind, lambda: settings_service.remove_label(g.current_user.id, kind, label))
