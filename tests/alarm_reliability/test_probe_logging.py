import datetime
import json
import logging
from zoneinfo import ZoneInfo

from src.core.alarm_logging import build_occurrence_id, log_scheduler_event


TZ = ZoneInfo("Europe/Vienna")


def _probe_events(caplog):
    return [json.loads(record.getMessage()) for record in caplog.records if record.name == "alarmist.probe"]


def test_occurrence_id_is_utc_and_stable():
    scheduled = datetime.datetime(2025, 1, 6, 7, 0, tzinfo=TZ)
    assert build_occurrence_id(scheduled) == "20250106T060000Z"
    assert build_occurrence_id(scheduled.astimezone(datetime.timezone.utc)) == "20250106T060000Z"


def test_fire_event_is_one_json_line(caplog):
    caplog.set_level(logging.DEBUG, logger="alarmist.probe")
    target = datetime.datetime(2025, 1, 6, 7, 0, tzinfo=TZ)
    now = target + datetime.timedelta(seconds=2)

    log_scheduler_event("fire", target=target, now=now, alarm_ids=["a", "b"], extra={"late_sec": 2.0})

    (event,) = _probe_events(caplog)
    assert event["kind"] == "alarm_scheduler"
    assert event["scheduler_state"] == "fire"
    assert event["occurrence_id"] == "20250106T060000Z"
    assert event["alarm_ids"] == ["a", "b"]
    assert event["delta_sec"] == -2.0
    assert event["late_sec"] == 2.0


def test_non_serializable_extra_is_stringified(caplog):
    caplog.set_level(logging.DEBUG, logger="alarmist.probe")
    marker = object()

    log_scheduler_event("armed", extra={"handle": marker})

    (event,) = _probe_events(caplog)
    assert event["handle"] == str(marker)


def test_events_below_logger_level_are_skipped(caplog):
    caplog.set_level(logging.WARNING, logger="alarmist.probe")

    log_scheduler_event("armed", level=logging.DEBUG)

    assert _probe_events(caplog) == []


def test_scheduler_emits_armed_and_fire_events(caplog, scheduler, manual_clock):
    caplog.set_level(logging.DEBUG, logger="alarmist.probe")
    alarm = scheduler.add_alarm({"time": "07:00"})

    manual_clock.set(datetime.datetime(2025, 1, 6, 7, 0, tzinfo=TZ))

    states = [event["scheduler_state"] for event in _probe_events(caplog)]
    assert states == ["armed", "fire", "idle"]
    fire_event = _probe_events(caplog)[1]
    assert fire_event["alarm_ids"] == [alarm.id]
