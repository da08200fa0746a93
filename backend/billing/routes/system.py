# backend/billing/routes/system.py
"""
System health endpoint.

Reports database reachability and whether invoice numbering is configured.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Invoice, Product, Customer
from ..services.settings_service import SettingsRepository, KEY_INVOICE_PREFIX, KEY_INVOICE_COUNTER
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "products": db.session.query(Product).count(),
            "customers": db.session.query(Customer).count(),
            "invoices": db.session.query(Invoice).count(),
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
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_numbering_health() -> dict:
    """
    Invoice numbering falls back to defaults when settings are missing,
    so missing keys are "degraded", not "unhealthy".
    """
    try:
        repo = SettingsRepository()
        missing = [k for k in (KEY_INVOICE_PREFIX, KEY_INVOICE_COUNTER) if repo.get(k) is None]
        if missing:
            return {"status": "degraded", "warning": f"Missing settings: {', '.join(missing)}"}
        return {
            "status": "healthy",
            "details": {
                "prefix": repo.get(KEY_INVOICE_PREFIX),
                "next_counter": repo.get(KEY_INVOICE_COUNTER),
            },
        }
    except Exception:
        current_app.logger.exception("Numbering health check failed")
        return {"status": "unhealthy", "error": "Settings error"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    numbering_health = check_numbering_health()

    all_checks = [database_health, numbering_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "invoice_numbering": numbering_health,
        }
    }, http_status
