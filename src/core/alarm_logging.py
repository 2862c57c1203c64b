"""Structured scheduler event logging for reliability diagnostics."""

from __future__ import annotations

import datetime as _dt
import json
import logging
import time
from typing import Any, Dict, Iterable, Optional

from ..utils.logger import get_logger

_probe_logger = get_logger("probe")


def build_occurrence_id(scheduled: _dt.datetime) -> str:
    """Stable identifier for one armed instant (UTC, second resolution)."""
    utc_ts = scheduled.astimezone(_dt.timezone.utc)
    return utc_ts.strftime("%Y%m%dT%H%M%SZ")


def log_scheduler_event(
    state: str,
    *,
    target: Optional[_dt.datetime] = None,
    now: Optional[_dt.datetime] = None,
    alarm_ids: Optional[Iterable[str]] = None,
    extra: Optional[Dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    """Emit one JSON line describing a scheduler state transition."""
    if not _probe_logger.isEnabledFor(level):
        return
    event: Dict[str, Any] = {
        "kind": "alarm_scheduler",
        "scheduler_state": state,
        "monotonic_now": time.monotonic(),
    }
    if target is not None:
        event["occurrence_id"] = build_occurrence_id(target)
        event["target_utc"] = target.astimezone(_dt.timezone.utc).isoformat()
        event["target_local"] = target.isoformat()
    if now is not None:
        event["now_local"] = now.isoformat()
        if target is not None:
            event["delta_sec"] = (target - now).total_seconds()
    if alarm_ids is not None:
        event["alarm_ids"] = list(alarm_ids)
    if extra:
        event.update(extra)
    try:
        _probe_logger.log(level, json.dumps(event, ensure_ascii=True, sort_keys=True))
    except TypeError:
        # Coerce non-serializable entries
        serializable_event = {}
        for key, value in event.items():
            try:
                json.dumps(value, ensure_ascii=False)
                serializable_event[key] = value
            except TypeError:
                serializable_event[key] = str(value)
        _probe_logger.log(level, json.dumps(serializable_event, ensure_ascii=True, sort_keys=True))
