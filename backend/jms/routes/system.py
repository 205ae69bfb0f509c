# backend/jms/routes/system.py
"""
System health endpoint.

Reports database reachability and the current sequence positions for
deployment debugging.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..services.sequence_service import INVOICE_SEQUENCE, GAHAN_SEQUENCE, current_value

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        details = {
            INVOICE_SEQUENCE: current_value(INVOICE_SEQUENCE),
            GAHAN_SEQUENCE: current_value(GAHAN_SEQUENCE),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "counters": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    status = "healthy" if database["status"] == "healthy" else "unhealthy"
    return {"status": status, "database": database}, (200 if status == "healthy" else 503)
