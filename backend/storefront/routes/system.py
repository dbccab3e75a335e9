# backend/storefront/routes/system.py
"""
System health endpoint.

Reports database reachability plus how the optional integrations are
configured, for deployment debugging.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Product, DeviceModel, PhoneCondition, RepairStatus
from storefront.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and that the lookup tables are seeded.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        model_count = db.session.query(DeviceModel).count()
        condition_count = db.session.query(PhoneCondition).count()
        status_count = db.session.query(RepairStatus).count()

        elapsed_ms = (time.time() - start_time) * 1000

        details = {
            "products": product_count,
            "device_models": model_count,
            "phone_conditions": condition_count,
            "repair_statuses": status_count,
        }
        if condition_count == 0 or status_count == 0:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": "Lookup tables are empty; run `flask system init`",
                "details": details,
            }
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


def check_ai_provider() -> dict:
    configured = bool(current_app.config.get("OPENAI_API_KEY"))
    return {
        "status": "healthy" if configured else "degraded",
        "details": {
            "configured": configured,
            "embedding_model": current_app.config.get("EMBEDDING_MODEL"),
            "vision_model": current_app.config.get("VISION_MODEL"),
        },
    }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (search falls back to text without an AI provider)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    ai_health = check_ai_provider()

    all_checks = [database_health, ai_health]
    if database_health["status"] == "unhealthy":
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "ai_provider": ai_health,
        }
    }

    return response, http_status
