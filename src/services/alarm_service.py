"""
⏰ Alarm Service - Business Logic for Alarm Management
=====================================================

Validated create/toggle/delete/list operations and scheduler status, on top
of a running ``AlarmScheduler``.
"""

from typing import Any, Mapping, Optional

from . import BaseService, ServiceResult
from ..core.alarm_scheduler import AlarmScheduler
from ..utils.validation import ValidationError, validate_active_flag


class AlarmService(BaseService):
    """Service for managing alarms and scheduling."""

    def __init__(self, scheduler: AlarmScheduler):
        super().__init__("alarm")
        self.scheduler = scheduler

    def list_alarms(self) -> ServiceResult:
        try:
            alarms = [alarm.to_record() for alarm in self.scheduler.list_alarms()]
            return self._success_result(data={"alarms": alarms, "count": len(alarms)})
        except Exception as e:
            return self._handle_error(e, "list_alarms")

    def get_alarm(self, alarm_id: str) -> ServiceResult:
        alarm = self.scheduler.store.get(alarm_id)
        if alarm is None:
            return self._error_result(f"Alarm {alarm_id} not found", error_code="not_found")
        return self._success_result(data=alarm.to_record())

    def create_alarm(self, form_data: Mapping[str, Any]) -> ServiceResult:
        """Validate and store a new alarm; the scheduler rearms on commit."""
        try:
            alarm = self.scheduler.add_alarm(form_data)
        except ValidationError as e:
            return self._error_result(
                f"Invalid {e.field_name}: {e.message}",
                error_code=e.field_name
            )
        except Exception as e:
            return self._handle_error(e, "create_alarm")

        self.logger.info("Alarm created: id=%s time=%s days=%s", alarm.id, alarm.time, alarm.describe_days())
        return self._success_result(
            data={"alarm": alarm.to_record(), "scheduler": self.scheduler.status()},
            message="Alarm created successfully"
        )

    def toggle_alarm(self, alarm_id: str, active: Optional[Any] = None) -> ServiceResult:
        """Set the active flag; ``active=None`` flips the current value."""
        try:
            with self.scheduler.store.lock:
                current = self.scheduler.store.get(alarm_id)
                if current is None:
                    return self._error_result(f"Alarm {alarm_id} not found", error_code="not_found")
                new_state = (not current.is_active) if active is None else validate_active_flag(active)
                alarm = self.scheduler.toggle_alarm(alarm_id, new_state)
        except ValidationError as e:
            return self._error_result(
                f"Invalid {e.field_name}: {e.message}",
                error_code=e.field_name
            )
        except Exception as e:
            return self._handle_error(e, "toggle_alarm")

        return self._success_result(
            data={"alarm": alarm.to_record(), "scheduler": self.scheduler.status()},
            message="Alarm activated" if alarm.is_active else "Alarm deactivated"
        )

    def delete_alarm(self, alarm_id: str) -> ServiceResult:
        try:
            removed = self.scheduler.delete_alarm(alarm_id)
        except Exception as e:
            return self._handle_error(e, "delete_alarm")
        if not removed:
            return self._error_result(f"Alarm {alarm_id} not found", error_code="not_found", data={"deleted": False})
        return self._success_result(
            data={"deleted": True, "scheduler": self.scheduler.status()},
            message="Alarm deleted"
        )

    def get_alarm_status(self) -> ServiceResult:
        """Get scheduler status including the next armed alarm."""
        try:
            return self._success_result(
                data=self.scheduler.status(),
                message="Alarm status retrieved successfully"
            )
        except Exception as e:
            return self._handle_error(e, "get_alarm_status")

    def health_check(self) -> ServiceResult:
        base_health = super().health_check()
        if not base_health.success:
            return base_health

        running = self.scheduler.running
        dirty = self.scheduler.store.dirty
        health_data = {
            "service": "alarm",
            "status": "healthy" if running and not dirty else "degraded",
            "components": {
                "scheduler": self.scheduler.phase.value if running else "stopped",
                "store": "unsaved_changes" if dirty else "ok",
            }
        }
        return self._success_result(
            data=health_data,
            message="Alarm service health check completed"
        )
