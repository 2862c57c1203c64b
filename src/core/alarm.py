#!/usr/bin/env python3
"""
⏰ Alarm model for Alarmist
Defines the in-memory alarm record and its persisted wire format:
- ``Alarm``: immutable domain record used by the store and scheduler
- ``AlarmRecord``: pydantic schema for one persisted JSON entry
- Weekday indices follow the persisted format (0=Sunday ... 6=Saturday)
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import DEFAULT_ALARM_LABEL, TIME_PATTERN, WEEKDAY_NAMES


def new_alarm_id() -> str:
    """Return a fresh opaque alarm identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Alarm:
    """A single alarm definition.

    ``days`` empty means one-shot: the alarm fires at the next occurrence of
    its time of day instead of repeating weekly.
    """

    id: str
    hour: int
    minute: int
    label: str = DEFAULT_ALARM_LABEL
    days: FrozenSet[int] = field(default_factory=frozenset)
    is_active: bool = True

    @property
    def time(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    @property
    def is_one_shot(self) -> bool:
        return not self.days

    def with_active(self, active: bool) -> "Alarm":
        return dataclasses.replace(self, is_active=bool(active))

    def describe_days(self) -> str:
        if not self.days:
            return "Once"
        return " ".join(WEEKDAY_NAMES[d] for d in sorted(self.days))

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return {
            "id": self.id,
            "time": self.time,
            "label": self.label,
            "days": sorted(self.days),
            "isActive": self.is_active,
        }


class AlarmRecord(BaseModel):
    """Schema for one persisted alarm entry."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(min_length=1, description="Opaque unique identifier")
    time: str = Field(pattern=TIME_PATTERN, description="Time of day in HH:MM format")
    label: str = Field(default=DEFAULT_ALARM_LABEL, description="Display label")
    days: List[int] = Field(default_factory=list, description="Weekdays (0=Sunday, 6=Saturday). Empty = one-shot")
    is_active: bool = Field(default=True, alias="isActive", strict=True)

    @field_validator("days", mode="before")
    @classmethod
    def validate_days_container(cls, v: Any) -> Any:
        if not isinstance(v, list):
            raise ValueError("days must be a list of integers")
        return v

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"Invalid weekday value: {day}. Must be 0-6 (0=Sunday, 6=Saturday)")
        return sorted(set(v))

    def to_alarm(self) -> Alarm:
        hour, minute = (int(part) for part in self.time.split(":"))
        return Alarm(
            id=self.id,
            hour=hour,
            minute=minute,
            label=self.label or DEFAULT_ALARM_LABEL,
            days=frozenset(self.days),
            is_active=self.is_active,
        )


def alarms_to_records(alarms: Iterable[Alarm]) -> List[Dict[str, Any]]:
    return [alarm.to_record() for alarm in alarms]
