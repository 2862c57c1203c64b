#!/usr/bin/env python3
"""
Occurrence calculation for one-shot and weekly alarms.
"""

from __future__ import annotations

import datetime
from typing import Optional, Tuple

from .alarm import Alarm

# Today, the next six days and the same weekday one week later
SCAN_DAYS = 8


def _coerce_time_components(alarm_time: str) -> Optional[Tuple[int, int]]:
    """Return (hour, minute) tuple if ``alarm_time`` is valid."""
    try:
        hour, minute = map(int, alarm_time.split(":"))
    except (ValueError, AttributeError):
        return None
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return hour, minute
    return None


def parse_time_of_day(alarm_time: str) -> Optional[Tuple[int, int]]:
    """Parse HH:MM string into ``(hour, minute)`` if valid."""
    return _coerce_time_components(alarm_time)


def weekday_index(moment: datetime.datetime | datetime.date) -> int:
    """Weekday of ``moment`` with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def _at_time_of_day(day: datetime.date, alarm: Alarm, tzinfo) -> datetime.datetime:
    return datetime.datetime(day.year, day.month, day.day, alarm.hour, alarm.minute, tzinfo=tzinfo)


def next_occurrence(alarm: Alarm, now: datetime.datetime) -> Optional[datetime.datetime]:
    """Return the next instant strictly after ``now`` at which ``alarm`` is due.

    The result carries the same tzinfo as ``now``. ``alarm.is_active`` is not
    consulted; callers only pass alarms they want scheduled.
    """
    today = now.date()

    if not alarm.days:
        candidate = _at_time_of_day(today, alarm, now.tzinfo)
        if candidate > now:
            return candidate
        return _at_time_of_day(today + datetime.timedelta(days=1), alarm, now.tzinfo)

    for offset in range(SCAN_DAYS):
        day = today + datetime.timedelta(days=offset)
        if weekday_index(day) not in alarm.days:
            continue
        candidate = _at_time_of_day(day, alarm, now.tzinfo)
        if candidate > now:
            return candidate
    return None


def format_time_until(target: datetime.datetime, now: datetime.datetime) -> str:
    """Return human-readable delta until ``target``."""
    delta = target - now
    if delta.total_seconds() < 0:
        return "Alarm time has passed"

    days = delta.days
    hours, remainder = divmod(delta.seconds, 3600)
    minutes = remainder // 60

    if days > 0:
        return f"in {days} day{'s' if days != 1 else ''}, {hours}h {minutes}m"
    if hours > 0:
        return f"in {hours}h {minutes}m"
    return f"in {minutes}m"
