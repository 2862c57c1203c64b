"""Single-timer alarm scheduler.

- Computes the earliest next occurrence across all active alarms
- Keeps exactly one armed timer pointed at it; every rearm cancels the old one
- Rearms synchronously after every store mutation and after every fire
- At fire time re-scans the live alarm set instead of trusting cached values,
  so every alarm due at the armed instant fires, and only those
"""
from __future__ import annotations

import datetime as _dt
import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..config import config_manager
from ..constants import EARLY_FIRE_TOLERANCE_SECONDS, ONE_SHOT_POLICIES
from ..utils.logger import get_logger
from ..utils.timezone import get_local_timezone
from .alarm import Alarm
from .alarm_logging import log_scheduler_event
from .clock import Clock, SystemClock, TimerHandle
from .scheduler import format_time_until, next_occurrence
from .store import AlarmStore, JsonAlarmStorage
from .trigger import LoggingTriggerSink, ThreadedTriggerSink, TriggerSink

_logger = get_logger("scheduler")

# Fire-time re-scan reference: just before the armed instant, so alarms due
# exactly at it still report it as their next occurrence.
FIRE_LOOKBACK = _dt.timedelta(microseconds=1)


def _seconds_between(start: _dt.datetime, end: _dt.datetime) -> float:
    """Elapsed real seconds, also across a DST change.

    Aware datetimes sharing a tzinfo subtract as wall-clock times.
    """
    if start.tzinfo is None or end.tzinfo is None:
        return (end - start).total_seconds()
    return (end.astimezone(_dt.timezone.utc) - start.astimezone(_dt.timezone.utc)).total_seconds()


class SchedulerPhase(str, enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRING = "firing"
    STOPPED = "stopped"


@dataclass(frozen=True)
class NextAlarm:
    target: _dt.datetime
    alarms: Tuple[Alarm, ...] = field(default_factory=tuple)


class AlarmScheduler:
    def __init__(
        self,
        store: AlarmStore,
        clock: Clock,
        sink: TriggerSink,
        *,
        one_shot_policy: str = "deactivate",
        early_fire_tolerance_seconds: float = EARLY_FIRE_TOLERANCE_SECONDS,
    ):
        if one_shot_policy not in ONE_SHOT_POLICIES:
            raise ValueError(f"Unknown one-shot policy: {one_shot_policy}")
        self._store = store
        self._clock = clock
        self._sink = sink
        self._lock = store.lock
        self._one_shot_policy = one_shot_policy
        self._early_tolerance = _dt.timedelta(seconds=max(0.0, early_fire_tolerance_seconds))
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._armed_target: Optional[_dt.datetime] = None
        self._phase = SchedulerPhase.IDLE
        self._running = False
        self._fired_count = 0
        self._last_fired_at: Optional[_dt.datetime] = None

    # ------------------------------------------------------------------
    # lifecycle

    def start(self) -> Optional[_dt.datetime]:
        with self._lock:
            if self._running:
                return self._armed_target
            self._running = True
            self._store.add_change_listener(self._on_store_changed)
            _logger.info("⏰ AlarmScheduler started (single-timer mode, one-shot policy=%s)", self._one_shot_policy)
            return self.rearm()

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._store.remove_change_listener(self._on_store_changed)
            self._cancel_timer()
            self._armed_target = None
            self._phase = SchedulerPhase.STOPPED
            _logger.info("🛑 AlarmScheduler stopped")

    def close(self) -> None:
        """Stop and release the sink's worker threads; the scheduler is not restartable afterwards."""
        self.stop()
        shutdown = getattr(self._sink, "shutdown", None)
        if callable(shutdown):
            shutdown()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def phase(self) -> SchedulerPhase:
        return self._phase

    @property
    def armed_target(self) -> Optional[_dt.datetime]:
        return self._armed_target

    @property
    def store(self) -> AlarmStore:
        return self._store

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # mutations (each one commits, then rearms via the store listener)

    def add_alarm(self, definition) -> Alarm:
        return self._store.add(definition)

    def toggle_alarm(self, alarm_id: str, active: bool) -> Optional[Alarm]:
        return self._store.toggle(alarm_id, active)

    def delete_alarm(self, alarm_id: str) -> bool:
        return self._store.delete(alarm_id)

    def list_alarms(self) -> List[Alarm]:
        return self._store.list()

    def _on_store_changed(self, _alarms: List[Alarm]) -> None:
        if self._phase is SchedulerPhase.FIRING:
            # The fire handler rearms once it is done
            return
        self.rearm()

    # ------------------------------------------------------------------
    # scheduling

    def _cancel_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._clock.cancel(self._timer)
            self._timer = None

    def _compute_minimum(self, reference: _dt.datetime) -> Optional[_dt.datetime]:
        best: Optional[_dt.datetime] = None
        for alarm in self._store.active():
            candidate = next_occurrence(alarm, reference)
            if candidate is None:
                _logger.debug("Alarm %s has no upcoming occurrence; skipped this round", alarm.id)
                continue
            if best is None or candidate < best:
                best = candidate
        return best

    def rearm(self, *, after: Optional[_dt.datetime] = None) -> Optional[_dt.datetime]:
        """Cancel the outstanding timer and arm one for the earliest occurrence.

        ``after`` raises the reference instant above ``now`` (used right after
        a fire so the instant that just fired is never armed again).
        Returns the armed target, or None when idle.
        """
        with self._lock:
            self._cancel_timer()
            if not self._running:
                self._armed_target = None
                return None

            now = self._clock.now()
            reference = max(now, after) if after is not None else now
            target = self._compute_minimum(reference)
            if target is None:
                self._armed_target = None
                self._phase = SchedulerPhase.IDLE
                _logger.debug("No active alarms. Scheduler idle.")
                log_scheduler_event("idle", now=now, level=logging.DEBUG)
                return None

            self._armed_target = target
            self._phase = SchedulerPhase.ARMED
            generation = self._generation
            delay = _seconds_between(self._clock.now(), target)
            if delay <= 0:
                _logger.info("Armed target %s already due (%.3fs); firing immediately", target.isoformat(), delay)
                log_scheduler_event("arm_overdue", target=target, now=now, extra={"delay_sec": delay})
                self._on_fire(generation)
                return self._armed_target

            self._timer = self._clock.schedule(delay, lambda: self._on_fire(generation))
            _logger.debug("Next alarm at %s (in %ss).", target.isoformat(), int(delay))
            log_scheduler_event("armed", target=target, now=now, extra={"delay_sec": delay}, level=logging.DEBUG)
            return target

    def _due_alarms(self, target: _dt.datetime) -> List[Alarm]:
        reference = target - FIRE_LOOKBACK
        return [alarm for alarm in self._store.active() if next_occurrence(alarm, reference) == target]

    def _on_fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._running:
                _logger.debug("Discarding stale timer callback (generation %s)", generation)
                return
            target = self._armed_target
            if target is None:
                return
            now = self._clock.now()

            if _seconds_between(now, target) > self._early_tolerance.total_seconds():
                _logger.info(
                    "Woke %.1fs before %s (clock changed?); recomputing without firing",
                    _seconds_between(now, target),
                    target.isoformat(),
                )
                log_scheduler_event("early_wake", target=target, now=now, level=logging.INFO)
                self.rearm()
                return

            self._phase = SchedulerPhase.FIRING
            try:
                due = self._due_alarms(target)
                log_scheduler_event(
                    "fire",
                    target=target,
                    now=now,
                    alarm_ids=[alarm.id for alarm in due],
                    extra={"late_sec": _seconds_between(target, now)},
                )
                for alarm in due:
                    try:
                        self._sink.on_alarm_fired(alarm)
                    except Exception:
                        _logger.exception("Trigger sink failed for alarm %s", alarm.id)
                self._fired_count += len(due)
                if due:
                    self._last_fired_at = target
                if self._one_shot_policy == "deactivate":
                    for alarm in due:
                        if alarm.is_one_shot:
                            self._store.toggle(alarm.id, False)
            finally:
                self._phase = SchedulerPhase.ARMED
                self.rearm(after=target)

    # ------------------------------------------------------------------
    # status

    def next_alarm(self) -> Optional[NextAlarm]:
        with self._lock:
            target = self._armed_target
            if target is None:
                return None
            return NextAlarm(target=target, alarms=tuple(self._due_alarms(target)))

    def status(self) -> Dict[str, Any]:
        with self._lock:
            now = self._clock.now()
            target = self._armed_target
            upcoming = self.next_alarm()
            return {
                "running": self._running,
                "phase": self._phase.value,
                "armed_target": target.isoformat() if target else None,
                "seconds_until": _seconds_between(now, target) if target else None,
                "next_alarm_text": format_time_until(target, now) if target else "",
                "next_alarms": [alarm.to_record() for alarm in upcoming.alarms] if upcoming else [],
                "active_alarms": len(self._store.active()),
                "total_alarms": len(self._store.list()),
                "fired_count": self._fired_count,
                "last_fired_at": self._last_fired_at.isoformat() if self._last_fired_at else None,
                "one_shot_policy": self._one_shot_policy,
            }


def build_alarm_scheduler(
    config: Dict[str, Any],
    *,
    store_path: Optional[Path] = None,
    clock: Optional[Clock] = None,
    sink: Optional[TriggerSink] = None,
) -> AlarmScheduler:
    """Wire store, clock and sink from a validated config dict.

    The returned scheduler has its store loaded but is not started.
    """
    if store_path is None:
        store_path = config_manager.resolve_path(config, "store_path")
    if clock is None:
        clock = SystemClock(get_local_timezone(config))
    if sink is None:
        sink = ThreadedTriggerSink(LoggingTriggerSink(), max_workers=int(config.get("sink_workers", 2)))

    store = AlarmStore(JsonAlarmStorage(store_path))
    store.load()
    return AlarmScheduler(
        store,
        clock,
        sink,
        one_shot_policy=config.get("one_shot_policy", "deactivate"),
        early_fire_tolerance_seconds=float(
            config.get("early_fire_tolerance_seconds", EARLY_FIRE_TOLERANCE_SECONDS)
        ),
    )
