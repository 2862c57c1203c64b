"""
🚨 Alarm Routes Blueprint
Handles alarm CRUD and scheduler status endpoints.
"""

import logging

from flask import Blueprint

from ..utils.logger import log_structured
from .helpers import api_error_handler, api_response, get_alarm_service, request_payload

alarm_bp = Blueprint("alarm", __name__)
logger = logging.getLogger("alarmist.routes.alarm")

_VALIDATION_FIELDS = {"payload", "time", "label", "days", "active"}


def _failure(result, endpoint: str):
    error_code = (result.error_code or "internal_error").lower()
    message = result.message or "Alarm operation failed"

    if error_code == "not_found":
        return api_response(False, data=result.data, message=message, status=404, error_code="not_found")
    if error_code in _VALIDATION_FIELDS:
        log_structured(logger, logging.WARNING, "Alarm validation error",
                       error_code=error_code, validation_message=message, endpoint=endpoint)
        return api_response(False, message=message, status=400, error_code=error_code)

    log_structured(logger, logging.ERROR, "Alarm operation failed",
                   error_message=message, endpoint=endpoint)
    return api_response(False, message="Internal error while processing alarm", status=500, error_code="internal_error")


@alarm_bp.route("/api/alarms", methods=["GET"])
@api_error_handler
def list_alarms():
    result = get_alarm_service().list_alarms()
    if not result.success:
        return _failure(result, "/api/alarms")
    return api_response(True, data=result.data)


@alarm_bp.route("/api/alarms", methods=["POST"])
@api_error_handler
def create_alarm():
    """Create an alarm from JSON or form data (``time``, ``label``, ``days``)."""
    result = get_alarm_service().create_alarm(request_payload())
    if not result.success:
        return _failure(result, "/api/alarms")
    return api_response(True, data=result.data, message=result.message or "", status=201)


@alarm_bp.route("/api/alarms/<alarm_id>", methods=["GET"])
@api_error_handler
def get_alarm(alarm_id: str):
    result = get_alarm_service().get_alarm(alarm_id)
    if not result.success:
        return _failure(result, "/api/alarms/<id>")
    return api_response(True, data=result.data)


@alarm_bp.route("/api/alarms/<alarm_id>/toggle", methods=["POST", "PATCH"])
@api_error_handler
def toggle_alarm(alarm_id: str):
    """Set ``active``; without it the current state is flipped."""
    payload = request_payload()
    active = payload.get("active") if hasattr(payload, "get") else None
    result = get_alarm_service().toggle_alarm(alarm_id, active)
    if not result.success:
        return _failure(result, "/api/alarms/<id>/toggle")
    return api_response(True, data=result.data, message=result.message or "")


@alarm_bp.route("/api/alarms/<alarm_id>", methods=["DELETE"])
@api_error_handler
def delete_alarm(alarm_id: str):
    result = get_alarm_service().delete_alarm(alarm_id)
    if not result.success:
        return _failure(result, "/api/alarms/<id>")
    return api_response(True, data=result.data, message=result.message or "")


@alarm_bp.route("/api/alarms/next")
@alarm_bp.route("/alarm_status")
@api_error_handler
def alarm_status():
    """Scheduler status: phase, armed target and the alarms due then."""
    result = get_alarm_service().get_alarm_status()
    if not result.success:
        logger.error("Failed to load alarm status via service: %s", result.message)
        return _failure(result, "/alarm_status")
    return api_response(True, data=result.data)
