# Overview: Error taxonomy for the data gateway and the JSON responses routes map them to.

"""
Gateway error taxonomy.

Each class corresponds to a distinct recovery path for the operator:
- NotConfigured: no database credentials; show setup instructions
- NotAuthenticated: no valid session; show the login prompt
- SchemaMismatch: ownership column missing; run the migration and backfill
- TransientStoreError: retries exhausted; offer a retry action
- RecordNotFound / PermissionDenied: ordinary 404 / 403

Validation problems use ValidationError / ConflictError from validation.py and
are raised before any gateway call.
"""

from flask import jsonify


class GatewayError(Exception):
    """Base class for failures surfaced by the data gateway."""
    status_code = 500
    error_code = "gateway_error"

    def to_dict(self) -> dict:
        return {"error": str(self) or self.error_code, "code": self.error_code}


class NotConfigured(GatewayError):
    """No backend credentials are available."""
    status_code = 503
    error_code = "not_configured"

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["setup_required"] = True
        return payload


class NotAuthenticated(GatewayError):
    """The caller has no valid session."""
    status_code = 401
    error_code = "not_authenticated"


class SchemaMismatch(GatewayError):
    """The remote table lacks the expected ownership column."""
    status_code = 500
    error_code = "schema_mismatch"

    def __init__(self, table: str, column: str = "user_id"):
        self.table = table
        self.column = column
        super().__init__(
            f"Table '{table}' has no '{column}' column. Add the column, backfill the owner "
            f"of existing rows, then reload (flask db upgrade)."
        )

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["schema_mismatch"] = {"table": self.table, "column": self.column}
        return payload


class TransientStoreError(GatewayError):
    """The store stayed unreachable after the bounded retry budget."""
    status_code = 503
    error_code = "store_unavailable"

    def __init__(self, message: str, attempts: int):
        self.attempts = attempts
        super().__init__(message)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["retryable"] = True
        payload["attempts"] = self.attempts
        return payload


class RecordNotFound(GatewayError):
    status_code = 404
    error_code = "not_found"


class PermissionDenied(GatewayError):
    """Raised when the caller's role lacks a required permission."""
    status_code = 403
    error_code = "permission_denied"

    def __init__(self, permission_code: str):
        self.permission_code = permission_code
        super().__init__(f"Missing permission: {permission_code}")

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["required_permission"] = self.permission_code
        return payload


def gateway_error_response(exc: GatewayError):
    return jsonify(exc.to_dict()), exc.status_code
