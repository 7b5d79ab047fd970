# backend/portal/routes/system.py
"""
System health and version endpoints.

Health probes the database the report generator reads from; version
reports non-sensitive deployment details.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Company, Order, Product, User
from portal.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """
    Check database connectivity by counting the report source tables.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "companies": db.session.query(Company).count(),
            "users": db.session.query(User).count(),
            "products": db.session.query(Product).count(),
            "orders": db.session.query(Order).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
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


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns 200 when the database answers, 503 otherwise.
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "database": database_health,
    }, http_status


@system_bp.get("/version")
def version():
    """
    Version endpoint for deployment debugging.

    Does NOT expose secret keys, database credentials or internal paths.
    """
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
