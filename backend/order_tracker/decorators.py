# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import NotConfigured, PermissionDenied, gateway_error_response
from .extensions import db
from .models import UserProfile
from .services import session_service, permission_service
from .services.data_gateway import DataGateway


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session token.

    Sets on Flask g:
    - g.current_user: the authenticated AuthUser
    - g.current_profile: the UserProfile (role source), may be None for legacy accounts
    - g.session_token: the plaintext bearer token (for logout)

    Returns 503 when no store is configured, 401 for a missing, invalid,
    expired or revoked token.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not DataGateway().is_configured():
            return gateway_error_response(NotConfigured("The data store is not configured. Set DATABASE_URL and restart."))

        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.current_profile = db.session.get(UserProfile, context.user.id)
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a permission granted by the caller's profile role. Use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(getattr(g, "current_profile", None), permission_code)
            except PermissionDenied as e:
                return gateway_error_response(e)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
