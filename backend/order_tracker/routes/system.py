# backend/order_tracker/routes/system.py
"""
System health endpoint.

Reports whether a store is configured and reachable and whether the
ownership columns the gateway relies on are present.
"""

import time
from flask import Blueprint, current_app

from ..errors import SchemaMismatch
from ..models import InventoryItem, Order
from ..services.data_gateway import DataGateway
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health(gateway: DataGateway) -> dict:
    start_time = time.time()
    if not gateway.is_configured():
        return {"status": "unconfigured", "setup_required": True}

    connected = gateway.check_connection()
    elapsed_ms = (time.time() - start_time) * 1000
    return {
        "status": "healthy" if connected else "unhealthy",
        "latency_ms": round(elapsed_ms, 2),
    }


def check_schema_health(gateway: DataGateway) -> dict:
    """Ownership column present on every owner-scoped table."""
    missing = []
    for model in (Order, InventoryItem):
        try:
            gateway.ensure_ownership_column(model)
        except SchemaMismatch as e:
            missing.append(e.to_dict()["schema_mismatch"])
        except Exception:
            current_app.logger.exception("Schema check failed for %s", model.__tablename__)
            return {"status": "unhealthy", "error": "Schema check failed"}

    if missing:
        return {"status": "unhealthy", "schema_mismatch": missing}
    return {"status": "healthy"}


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns:
    - 200: healthy
    - 503: store unconfigured, unreachable or missing ownership columns
    """
    start_time = time.time()
    gateway = DataGateway()

    database_health = check_database_health(gateway)
    checks = {"database": database_health}
    if database_health["status"] == "healthy":
        checks["schema"] = check_schema_health(gateway)

    healthy = all(check["status"] == "healthy" for check in checks.values())

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }
    return response, 200 if healthy else 503
