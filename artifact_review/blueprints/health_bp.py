"""
Health check blueprint.

Endpoints:
    GET /api/v1/health   liveness with database round-trip (no auth)
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from artifact_review.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("", methods=["GET"])
def health():
    checks = {}
    overall = True

    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check: database failed: %s", exc)

    checks["app"] = {
        "name": "Artifact Review Platform",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }
    status = "ok" if overall else "degraded"
    return jsonify({"status": status, "checks": checks}), 200 if overall else 503
