"""
🩺 Health Routes Blueprint
Liveness and component health of the scheduler and store.
"""

import logging

from flask import Blueprint, jsonify

from ..version import VERSION, get_full_version
from .helpers import api_error_handler, api_response, get_alarm_service

health_bp = Blueprint("health", __name__)
logger = logging.getLogger("alarmist.routes.health")


@health_bp.route("/healthz")
def healthz():
    """Basic liveness check."""
    return jsonify({"ok": True, "version": str(VERSION)})


@health_bp.route("/api/health")
@api_error_handler
def api_health():
    result = get_alarm_service().health_check()
    if not result.success:
        return api_response(False, message=result.message or "", status=503, error_code="not_initialized")

    data = dict(result.data or {})
    data["version"] = get_full_version()
    healthy = data.get("status") == "healthy"
    if not healthy:
        logger.warning("Health check degraded: %s", data.get("components"))
    return api_response(
        True,
        data=data,
        message="ok" if healthy else "degraded",
    )
