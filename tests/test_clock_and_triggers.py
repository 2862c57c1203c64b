import datetime
import threading
from zoneinfo import ZoneInfo

import pytest

from src.core.alarm import Alarm
from src.core.clock import ManualClock, SystemClock
from src.core.trigger import CompositeTriggerSink, LoggingTriggerSink, ThreadedTriggerSink


TZ = ZoneInfo("Europe/Vienna")
START = datetime.datetime(2025, 1, 6, 6, 0, tzinfo=TZ)


def _alarm(alarm_id="a1", label="Alarm"):
    return Alarm(id=alarm_id, hour=7, minute=0, label=label)


# ---------------------------------------------------------------- clocks

def test_manual_clock_runs_callbacks_in_due_order():
    clock = ManualClock(START)
    seen = []
    clock.schedule(30, lambda: seen.append(("b", clock.now())))
    clock.schedule(datetime.timedelta(seconds=10), lambda: seen.append(("a", clock.now())))
    clock.schedule(30, lambda: seen.append(("c", clock.now())))

    fired = clock.advance(60)

    assert fired == 3
    assert seen == [
        ("a", START + datetime.timedelta(seconds=10)),
        ("b", START + datetime.timedelta(seconds=30)),
        ("c", START + datetime.timedelta(seconds=30)),
    ]
    assert clock.now() == START + datetime.timedelta(seconds=60)


def test_manual_clock_cancel_and_partial_advance():
    clock = ManualClock(START)
    seen = []
    handle = clock.schedule(5, lambda: seen.append("cancelled"))
    clock.schedule(20, lambda: seen.append("late"))
    clock.cancel(handle)

    assert clock.advance(10) == 0
    assert [h.due for h in clock.pending] == [START + datetime.timedelta(seconds=20)]
    assert clock.advance(10) == 1
    assert seen == ["late"]


def test_manual_clock_moving_backwards_fires_nothing():
    clock = ManualClock(START)
    clock.schedule(60, lambda: None)

    assert clock.set(START - datetime.timedelta(hours=1)) == 0
    assert clock.now() == START - datetime.timedelta(hours=1)
    assert len(clock.pending) == 1


def test_manual_clock_callbacks_may_schedule_more_work():
    clock = ManualClock(START)
    seen = []

    def first():
        seen.append("first")
        clock.schedule(5, lambda: seen.append("second"))

    clock.schedule(5, first)

    assert clock.advance(10) == 2
    assert seen == ["first", "second"]


def test_system_clock_is_timezone_aware_and_fires():
    clock = SystemClock(TZ)
    done = threading.Event()

    handle = clock.schedule(0.01, done.set)

    assert clock.now().tzinfo is TZ
    assert handle.due.tzinfo is TZ
    assert done.wait(timeout=5)


def test_system_clock_cancel():
    clock = SystemClock()
    done = threading.Event()

    handle = clock.schedule(30, done.set)
    clock.cancel(handle)

    assert handle.cancelled is True
    assert handle.timer.daemon is True
    handle.timer.join(timeout=5)
    assert not done.is_set()


# ---------------------------------------------------------------- sinks

def test_logging_sink_keeps_recent_history():
    sink = LoggingTriggerSink(history=2)
    for index in range(3):
        sink.on_alarm_fired(_alarm(f"a{index}"))

    assert [alarm.id for alarm in sink.recent] == ["a1", "a2"]


def test_logging_sink_logs_label(caplog):
    sink = LoggingTriggerSink()
    with caplog.at_level("WARNING", logger="alarmist.trigger"):
        sink.on_alarm_fired(_alarm(label="Standup"))

    assert any("Standup" in record.getMessage() for record in caplog.records)


def test_composite_sink_isolates_failures():
    delivered = []

    class Broken:
        def on_alarm_fired(self, alarm):
            raise RuntimeError("boom")

    class Recording:
        def on_alarm_fired(self, alarm):
            delivered.append(alarm.id)

    CompositeTriggerSink([Broken(), Recording()]).on_alarm_fired(_alarm())

    assert delivered == ["a1"]


def test_threaded_sink_delivers_on_worker_thread():
    seen = []

    class Recording:
        def on_alarm_fired(self, alarm):
            seen.append((alarm.id, threading.current_thread().name))

    sink = ThreadedTriggerSink(Recording(), max_workers=1)
    future = sink.on_alarm_fired(_alarm())
    future.result(timeout=5)
    sink.shutdown()

    assert seen[0][0] == "a1"
    assert seen[0][1].startswith("AlarmSink")


def test_threaded_sink_logs_worker_errors(caplog):
    class Broken:
        def on_alarm_fired(self, alarm):
            raise RuntimeError("speaker offline")

    sink = ThreadedTriggerSink(Broken(), max_workers=1)
    with caplog.at_level("ERROR", logger="alarmist.trigger"):
        future = sink.on_alarm_fired(_alarm())
        with pytest.raises(RuntimeError):
            future.result(timeout=5)
        sink.shutdown()

    assert any("speaker offline" in record.getMessage() for record in caplog.records)


def test_threaded_sink_drops_after_shutdown():
    sink = ThreadedTriggerSink(LoggingTriggerSink(), max_workers=1)
    sink.shutdown()

    assert sink.on_alarm_fired(_alarm()) is None
