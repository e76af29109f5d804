# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/order_tracker/routes/auth.py
"""
Authentication API routes

- register: creates a Staff account and signs it in
- login / logout: bearer session tokens (see session_service)
- me: identity, profile and resolved permissions of the caller
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import GatewayError, gateway_error_response
from ..permissions import ROLE_STAFF
from ..services.auth_service import AccountExistsError, PasswordValidationError
from ..services.data_gateway import get_gateway
from ..services.permission_service import get_profile_permissions


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _credentials():
    data = request.get_json(silent=True) or {}
    return (data.get("email") or "").strip(), data.get("password") or ""


@auth_bp.post("/register")
def register_route():
    """
    Self-registration. New accounts always start as Staff; roles are changed
    through the team endpoints.
    """
    email, password = _credentials()
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        result = get_gateway().register(
            email,
            password,
            role=ROLE_STAFF,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify(result), 201
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AccountExistsError as e:
        return jsonify({"error": str(e)}), 409
    except GatewayError as e:
        return gateway_error_response(e)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to register account")
        return jsonify({"error": "Registration failed"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    The token must be sent as "Authorization: Bearer <token>" on protected routes.
    """
    email, password = _credentials()
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        result = get_gateway().login(
            email,
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify(result), 200
    except GatewayError as e:
        return gateway_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Login failed"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        get_gateway().logout(g.session_token)
    except Exception:
        current_app.logger.exception("Failed to revoke session")
        return jsonify({"error": "Logout failed"}), 500
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    profile = g.current_profile
    return jsonify({
        "user": g.current_user.to_dict(),
        "profile": profile.to_dict() if profile else None,
        "permissions": sorted(get_profile_permissions(profile)),
    }), 200
