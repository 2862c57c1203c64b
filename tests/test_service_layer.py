#!/usr/bin/env python3
"""
🏗️ Service Layer Test Suite
===========================

Exercises AlarmService and the scheduler/app wiring without HTTP.
"""

import datetime
import json
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from src.app import create_app
from src.core.alarm_scheduler import build_alarm_scheduler
from src.core.store import JsonAlarmStorage
from src.services.alarm_service import AlarmService


TZ = ZoneInfo("Europe/Vienna")


@pytest.fixture
def service(scheduler):
    alarm_service = AlarmService(scheduler)
    alarm_service.initialize()
    return alarm_service


class TestAlarmService:
    """Result objects returned by AlarmService operations."""

    def test_create_and_list(self, service):
        created = service.create_alarm({"time": "07:00", "label": "Work"})

        assert created.success is True
        assert created.data["alarm"]["label"] == "Work"
        assert created.data["scheduler"]["active_alarms"] == 1

        listed = service.list_alarms()
        assert listed.data["count"] == 1

    def test_create_validation_error(self, service):
        result = service.create_alarm({"time": "7pm"})

        assert result.success is False
        assert result.error_code == "time"
        assert "HH:MM" in result.message

    def test_toggle_flips_when_flag_missing(self, service):
        alarm_id = service.create_alarm({"time": "07:00"}).data["alarm"]["id"]

        first = service.toggle_alarm(alarm_id)
        second = service.toggle_alarm(alarm_id)

        assert first.data["alarm"]["isActive"] is False
        assert second.data["alarm"]["isActive"] is True

    def test_toggle_unknown(self, service):
        result = service.toggle_alarm("missing", True)
        assert result.success is False
        assert result.error_code == "not_found"

    def test_delete_unknown(self, service):
        result = service.delete_alarm("missing")
        assert result.success is False
        assert result.data == {"deleted": False}

    def test_unexpected_errors_become_operation_failed(self, service, scheduler):
        with patch.object(scheduler, "list_alarms", side_effect=RuntimeError("boom")):
            result = service.list_alarms()

        assert result.success is False
        assert result.error_code == "OPERATION_FAILED"
        assert "boom" in result.message


class TestHealth:
    """Health reporting of scheduler and store."""

    def test_not_initialized(self, scheduler):
        alarm_service = AlarmService(scheduler)
        result = alarm_service.health_check()
        assert result.success is False
        assert result.error_code == "NOT_INITIALIZED"

    def test_healthy(self, service):
        service.create_alarm({"time": "07:00"})
        health = service.health_check().data
        assert health["status"] == "healthy"
        assert health["components"] == {"scheduler": "armed", "store": "ok"}

    def test_degraded_when_store_cannot_persist(self, service):
        with patch.object(JsonAlarmStorage, "write", side_effect=OSError("read-only filesystem")):
            service.create_alarm({"time": "07:00"})

        health = service.health_check().data
        assert health["status"] == "degraded"
        assert health["components"]["store"] == "unsaved_changes"

    def test_degraded_when_scheduler_stopped(self, service, scheduler):
        scheduler.stop()
        health = service.health_check().data
        assert health["status"] == "degraded"
        assert health["components"]["scheduler"] == "stopped"


class TestWiring:
    """build_alarm_scheduler and create_app."""

    def test_build_alarm_scheduler_loads_store(self, app_config, store_path, manual_clock, sink):
        store_path.write_text(json.dumps([
            {"id": "weekday", "time": "06:45", "label": "Work", "days": [1, 2, 3, 4, 5], "isActive": True},
            {"id": "off", "time": "06:00", "days": [], "isActive": False},
        ]), encoding="utf-8")

        scheduler = build_alarm_scheduler(app_config, clock=manual_clock, sink=sink)

        assert scheduler.running is False
        assert [a.id for a in scheduler.list_alarms()] == ["weekday", "off"]
        assert scheduler.start() == datetime.datetime(2025, 1, 6, 6, 45, tzinfo=TZ)
        scheduler.stop()

    def test_build_alarm_scheduler_policy_from_config(self, app_config, manual_clock, sink):
        app_config["one_shot_policy"] = "roll"
        scheduler = build_alarm_scheduler(app_config, clock=manual_clock, sink=sink)
        assert scheduler.status()["one_shot_policy"] == "roll"

    def test_create_app_can_leave_scheduler_stopped(self, app_config, manual_clock, sink):
        scheduler = build_alarm_scheduler(app_config, clock=manual_clock, sink=sink)

        app = create_app(app_config, scheduler=scheduler, start_scheduler=False)

        assert app.extensions["alarmist"]["scheduler"] is scheduler
        assert scheduler.running is False
        assert app.config["ALARMIST"]["store_path"] == app_config["store_path"]
