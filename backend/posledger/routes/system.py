# Overview: Flask API routes for system health.

import time
from flask import Blueprint, current_app

from ..extensions import db, ledger
from ..models import StateSnapshot

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check that the snapshot table is reachable.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        snapshots = db.session.query(StateSnapshot).order_by(StateSnapshot.key).all()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"snapshots": [s.to_dict() for s in snapshots]},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health_route():
    database = check_database_health()
    store = ledger.store
    body = {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "database": database,
        "ledger": {
            "products": len(store.products),
            "receipts": len(store.receipts),
            "movements": len(store.movements),
            "last_persist_error": store.last_persist_error,
        },
    }
    return body, 200 if database["status"] == "healthy" else 503
