"""Shared pytest fixtures for the Alarmist test suite."""

from __future__ import annotations

import datetime
from typing import List, Tuple
from zoneinfo import ZoneInfo

import pytest

from src.app import create_app
from src.core.alarm import Alarm
from src.core.alarm_scheduler import AlarmScheduler
from src.core.clock import ManualClock
from src.core.store import AlarmStore, JsonAlarmStorage

TZ = ZoneInfo("Europe/Vienna")

# Monday 2025-01-06 06:00 local time
START = datetime.datetime(2025, 1, 6, 6, 0, tzinfo=TZ)


class RecordingSink:
    """Trigger sink that remembers which alarm fired at which clock reading."""

    def __init__(self, clock):
        self._clock = clock
        self.fired: List[Tuple[str, datetime.datetime]] = []

    def on_alarm_fired(self, alarm: Alarm) -> None:
        self.fired.append((alarm.id, self._clock.now()))

    @property
    def fired_ids(self) -> List[str]:
        return [alarm_id for alarm_id, _ in self.fired]


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "alarms.json"


@pytest.fixture
def store(store_path) -> AlarmStore:
    return AlarmStore(JsonAlarmStorage(store_path))


@pytest.fixture
def sink(manual_clock) -> RecordingSink:
    return RecordingSink(manual_clock)


@pytest.fixture
def scheduler(store, manual_clock, sink):
    """Started scheduler with the default one-shot policy."""
    instance = AlarmScheduler(store, manual_clock, sink)
    instance.start()
    yield instance
    instance.stop()


@pytest.fixture
def app_config(store_path):
    return {
        "environment": "testing",
        "debug": False,
        "log_level": "INFO",
        "timezone": "Europe/Vienna",
        "store_path": str(store_path),
        "one_shot_policy": "deactivate",
        "early_fire_tolerance_seconds": 1.0,
        "sink_workers": 1,
        "host": "127.0.0.1",
        "port": 5001,
    }


@pytest.fixture
def app(app_config, scheduler):
    flask_app = create_app(app_config, scheduler=scheduler)
    flask_app.config.update({"TESTING": True})
    return flask_app


@pytest.fixture
def client(app):
    """Provide a fresh Flask test client for each test."""
    with app.test_client() as test_client:
        yield test_client
