"""Clock abstraction used by the alarm scheduler.

``SystemClock`` reads wall-clock time in the configured timezone and runs
callbacks on ``threading.Timer`` threads. ``ManualClock`` only moves when told
to, which makes scheduling fully deterministic.
"""
from __future__ import annotations

import datetime as _dt
import heapq
import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Union


Delay = Union[float, _dt.timedelta]


def _delay_seconds(delay: Delay) -> float:
    if isinstance(delay, _dt.timedelta):
        return delay.total_seconds()
    return float(delay)


@dataclass
class TimerHandle:
    """Opaque handle returned by ``Clock.schedule``."""

    due: _dt.datetime
    callback: Callable[[], None] = field(repr=False)
    seq: int = 0
    cancelled: bool = False
    timer: Optional[threading.Timer] = field(default=None, repr=False)


class Clock(Protocol):
    def now(self) -> _dt.datetime: ...

    def schedule(self, delay: Delay, callback: Callable[[], None]) -> TimerHandle: ...

    def cancel(self, handle: TimerHandle) -> None: ...


class SystemClock:
    """Wall-clock time backed by ``threading.Timer``."""

    def __init__(self, tz: Optional[_dt.tzinfo] = None):
        self._tz = tz
        self._seq = itertools.count()

    def now(self) -> _dt.datetime:
        if self._tz is None:
            return _dt.datetime.now().astimezone()
        return _dt.datetime.now(tz=self._tz)

    def schedule(self, delay: Delay, callback: Callable[[], None]) -> TimerHandle:
        seconds = max(0.0, _delay_seconds(delay))
        handle = TimerHandle(
            due=self.now() + _dt.timedelta(seconds=seconds),
            callback=callback,
            seq=next(self._seq),
        )
        timer = threading.Timer(seconds, callback)
        timer.name = f"AlarmTimer-{handle.seq}"
        timer.daemon = True
        handle.timer = timer
        timer.start()
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True
        if handle.timer is not None:
            handle.timer.cancel()


class ManualClock:
    """Deterministic clock for tests and simulations.

    Time only advances through ``advance``/``set``; due callbacks run on the
    calling thread in due order, with ``now()`` reading exactly their due
    instant while they execute.
    """

    def __init__(self, start: _dt.datetime):
        self._now = start
        self._seq = itertools.count()
        self._pending: List[tuple] = []
        self._lock = threading.RLock()

    def now(self) -> _dt.datetime:
        return self._now

    def schedule(self, delay: Delay, callback: Callable[[], None]) -> TimerHandle:
        with self._lock:
            seconds = max(0.0, _delay_seconds(delay))
            handle = TimerHandle(
                due=self._now + _dt.timedelta(seconds=seconds),
                callback=callback,
                seq=next(self._seq),
            )
            heapq.heappush(self._pending, (handle.due, handle.seq, handle))
            return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True

    @property
    def pending(self) -> List[TimerHandle]:
        """Outstanding (not cancelled) handles in due order."""
        with self._lock:
            return [entry[2] for entry in sorted(self._pending) if not entry[2].cancelled]

    def set(self, moment: _dt.datetime) -> int:
        """Move to ``moment`` running every callback due on the way.

        Moving backwards only changes ``now()``; nothing fires. Returns the
        number of callbacks executed.
        """
        fired = 0
        while True:
            with self._lock:
                while self._pending and self._pending[0][2].cancelled:
                    heapq.heappop(self._pending)
                if not self._pending or self._pending[0][0] > moment:
                    break
                due, _seq, handle = heapq.heappop(self._pending)
                if due > self._now:
                    self._now = due
            handle.callback()
            fired += 1
        self._now = moment
        return fired

    def advance(self, delay: Delay) -> int:
        return self.set(self._now + _dt.timedelta(seconds=_delay_seconds(delay)))
