"""Trigger sinks: consumers notified when an alarm fires.

The scheduler calls ``on_alarm_fired`` once per due alarm. Sinks must not
block the scheduler; wrap slow sinks in ``ThreadedTriggerSink``.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Deque, Iterable, List, Optional, Protocol

from ..utils.logger import get_logger, log_structured
from .alarm import Alarm

_logger = get_logger("trigger")


class TriggerSink(Protocol):
    def on_alarm_fired(self, alarm: Alarm) -> None: ...


class LoggingTriggerSink:
    """Logs every fired alarm and keeps the most recent ones in memory."""

    def __init__(self, history: int = 20):
        self._recent: Deque[Alarm] = deque(maxlen=history)
        self._lock = threading.Lock()

    def on_alarm_fired(self, alarm: Alarm) -> None:
        with self._lock:
            self._recent.append(alarm)
        log_structured(
            _logger,
            logging.WARNING,
            f"🔔 Alarm: {alarm.label}",
            alarm_id=alarm.id,
            time=alarm.time,
            repeat=alarm.describe_days(),
        )

    @property
    def recent(self) -> List[Alarm]:
        with self._lock:
            return list(self._recent)


class CompositeTriggerSink:
    """Fans one notification out to several sinks, isolating failures."""

    def __init__(self, sinks: Iterable[TriggerSink]):
        self._sinks = list(sinks)

    def on_alarm_fired(self, alarm: Alarm) -> None:
        for sink in self._sinks:
            try:
                sink.on_alarm_fired(alarm)
            except Exception:
                _logger.exception("Trigger sink %s failed for alarm %s", type(sink).__name__, alarm.id)


class ThreadedTriggerSink:
    """Dispatches notifications to a worker pool so the scheduler never waits."""

    def __init__(self, sink: TriggerSink, *, max_workers: int = 2):
        self._sink = sink
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="AlarmSink")
        self._closed = False

    def on_alarm_fired(self, alarm: Alarm) -> Optional[Future]:
        if self._closed:
            _logger.warning("Dropping alarm %s: sink executor already shut down", alarm.id)
            return None
        future = self._executor.submit(self._sink.on_alarm_fired, alarm)
        future.add_done_callback(lambda f, alarm_id=alarm.id: self._report(f, alarm_id))
        return future

    def _report(self, future: Future, alarm_id: str) -> None:
        exc = future.exception()
        if exc is not None:
            _logger.error(
                "Trigger sink %s failed for alarm %s: %s",
                type(self._sink).__name__,
                alarm_id,
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    def shutdown(self, wait: bool = True) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait)
