"""Persistent alarm collection.

The store owns the list of alarms. Every committed mutation is written to
disk and then announced to change listeners (the scheduler rearms from its
listener), all while holding the store lock.
"""
from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from ..utils.logger import get_logger
from ..utils.validation import validate_alarm_definition
from .alarm import Alarm, AlarmRecord, alarms_to_records, new_alarm_id

_logger = get_logger("store")

ChangeListener = Callable[[List[Alarm]], None]


class JsonAlarmStorage:
    """Reads and atomically writes the alarm list as JSON."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> List[Any]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as exc:
            _logger.warning("Ignoring unreadable alarm file at %s: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            _logger.warning("Ignoring alarm file at %s: expected a JSON list, got %s", self.path, type(data).__name__)
            return []
        return data

    def write(self, records: List[Dict[str, Any]]) -> None:
        """Write ``records``; raises ``OSError`` on failure."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".alarms-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise


def parse_records(raw_records: Iterable[Any]) -> List[Alarm]:
    """Convert persisted entries into alarms, dropping malformed ones."""
    alarms: List[Alarm] = []
    seen_ids = set()
    for index, raw in enumerate(raw_records):
        if not isinstance(raw, dict):
            _logger.warning("Dropping alarm record #%d: expected an object", index)
            continue
        try:
            alarm = AlarmRecord.model_validate(raw).to_alarm()
        except SchemaValidationError as exc:
            _logger.warning(
                "Dropping malformed alarm record #%d (id=%s): %s",
                index,
                raw.get("id"),
                "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()),
            )
            continue
        if alarm.id in seen_ids:
            _logger.warning("Dropping alarm record #%d: duplicate id %s", index, alarm.id)
            continue
        seen_ids.add(alarm.id)
        alarms.append(alarm)
    return alarms


class AlarmStore:
    """Owner of the alarm collection."""

    def __init__(self, storage: JsonAlarmStorage, *, lock: Optional[threading.RLock] = None):
        self._storage = storage
        self._lock = lock or threading.RLock()
        self._alarms: List[Alarm] = []
        self._listeners: List[ChangeListener] = []
        self.dirty = False

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def add_change_listener(self, callback: ChangeListener) -> None:
        with self._lock:
            self._listeners.append(callback)

    def remove_change_listener(self, callback: ChangeListener) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def load(self) -> List[Alarm]:
        with self._lock:
            self._alarms = parse_records(self._storage.read())
            self.dirty = False
            _logger.info("Loaded %d alarm(s) from %s", len(self._alarms), self._storage.path)
            return list(self._alarms)

    def list(self) -> List[Alarm]:
        with self._lock:
            return list(self._alarms)

    def active(self) -> List[Alarm]:
        with self._lock:
            return [alarm for alarm in self._alarms if alarm.is_active]

    def get(self, alarm_id: str) -> Optional[Alarm]:
        with self._lock:
            for alarm in self._alarms:
                if alarm.id == alarm_id:
                    return alarm
            return None

    def add(self, definition: Mapping[str, Any]) -> Alarm:
        """Validate ``definition`` (``time``/``label``/``days``) and append it."""
        validated = validate_alarm_definition(definition)
        with self._lock:
            existing = {alarm.id for alarm in self._alarms}
            alarm_id = new_alarm_id()
            while alarm_id in existing:
                alarm_id = new_alarm_id()
            alarm = Alarm(
                id=alarm_id,
                hour=validated["hour"],
                minute=validated["minute"],
                label=validated["label"],
                days=validated["days"],
                is_active=True,
            )
            self._alarms.append(alarm)
            _logger.info("Added alarm %s at %s (%s)", alarm.id, alarm.time, alarm.describe_days())
            self._commit()
            return alarm

    def toggle(self, alarm_id: str, active: bool) -> Optional[Alarm]:
        """Set ``is_active``; returns None without side effects for unknown ids."""
        with self._lock:
            for index, alarm in enumerate(self._alarms):
                if alarm.id == alarm_id:
                    updated = alarm.with_active(active)
                    self._alarms[index] = updated
                    _logger.info("Alarm %s %s", alarm_id, "activated" if updated.is_active else "deactivated")
                    self._commit()
                    return updated
            _logger.debug("Toggle ignored for unknown alarm %s", alarm_id)
            return None

    def delete(self, alarm_id: str) -> bool:
        with self._lock:
            remaining = [alarm for alarm in self._alarms if alarm.id != alarm_id]
            removed = len(remaining) != len(self._alarms)
            self._alarms = remaining
            if removed:
                _logger.info("Deleted alarm %s", alarm_id)
            self._commit()
            return removed

    def flush(self) -> bool:
        with self._lock:
            return self._persist()

    def _persist(self) -> bool:
        try:
            self._storage.write(alarms_to_records(self._alarms))
        except OSError as exc:
            self.dirty = True
            _logger.warning("Failed to persist alarms to %s (keeping in-memory state): %s", self._storage.path, exc)
            return False
        self.dirty = False
        return True

    def _commit(self) -> None:
        self._persist()
        snapshot = list(self._alarms)
        for listener in list(self._listeners):
            listener(snapshot)
