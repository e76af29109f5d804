# Overview: Flask API routes for team management; directory, onboarding, roles and data sharing.

# backend/order_tracker/routes/team.py
"""
Team routes.

SECURITY:
- Directory, onboarding and role changes require MANAGE_TEAM
- Cloning data into another account requires SHARE_DATA

Onboarding creates the member's account without opening a session, so the
caller stays signed in.
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..errors import GatewayError, gateway_error_response
from ..permissions import ROLE_STAFF, TEAM_ROLES
from ..services.auth_service import AccountExistsError, PasswordValidationError
from ..services.data_gateway import get_gateway
from ..validation import ValidationError

team_bp = Blueprint("team", __name__, url_prefix="/api/team")


@team_bp.get("/profiles")
@require_auth
@require_permission("MANAGE_TEAM")
def list_profiles():
    """Every profile except the caller's own."""
    try:
        profiles = get_gateway().get_all_profiles()
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list profiles")
        return jsonify({"error": "Failed to list profiles"}), 500

    items = [p.to_dict() for p in profiles if p.id != g.current_user.id]
    return jsonify({"items": items, "count": len(items), "roles": TEAM_ROLES}), 200


@team_bp.post("/members")
@require_auth
@require_permission("MANAGE_TEAM")
def onboard_member():
    """Body: {email, password, role?}. role defaults to Staff."""
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    role = (data.get("role") or "").strip() or ROLE_STAFF

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        result = get_gateway().register(email, password, role=role, start_session=False)
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AccountExistsError as e:
        return jsonify({"error": str(e)}), 409
    except GatewayError as e:
        return gateway_error_response(e)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to onboard team member")
        return jsonify({"error": "Failed to onboard team member"}), 500

    current_app.logger.info("Team member %s onboarded as %s by %s", email, role, g.current_user.id)
    return jsonify(result), 201


@team_bp.patch("/members/<profile_id>")
@require_auth
@require_permission("MANAGE_TEAM")
def set_member_role(profile_id: str):
    """Body: {role}"""
    role = (request.get_json(silent=True) or {}).get("role")

    try:
        profile = get_gateway().set_profile_role(profile_id, role)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to change member role")
        return jsonify({"error": "Failed to change member role"}), 500

    return jsonify(profile.to_dict()), 200


@team_bp.post("/share")
@require_auth
@require_permission("SHARE_DATA")
def share_data():
    """
    Body: {target_user_id, inventory?: bool (default true), orders?: bool (default false)}

    Returns the number of rows cloned per table.
    """
    data = request.get_json(silent=True) or {}
    target_user_id = data.get("target_user_id")
    inventory = data.get("inventory", True)
    orders = data.get("orders", False)

    if not target_user_id:
        return jsonify({"error": "target_user_id required"}), 400
    if not isinstance(inventory, bool) or not isinstance(orders, bool):
        return jsonify({"error": "inventory and orders must be true or false"}), 400
    if target_user_id == g.current_user.id:
        return jsonify({"error": "Cannot share data with yourself"}), 400

    try:
        counts = get_gateway().share_data(target_user_id, inventory=inventory, orders=orders)
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to share data")
        return jsonify({"error": "Failed to share data"}), 500

    return jsonify({"ok": True, "shared": counts}), 200
