#!/usr/bin/env python3
"""
🛡️ Input Validation Module for Alarmist
Provides input validation for alarm definitions:
- Time formats (HH:MM)
- Weekday selections (0=Sunday ... 6=Saturday)
- Labels
- Active flags
"""

import datetime
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Union

from ..constants import DEFAULT_ALARM_LABEL, TIME_PATTERN


@dataclass
class ValidationResult:
    """Result of input validation with value and error details."""
    is_valid: bool
    value: Any = None
    error: str = ""
    field_name: str = ""


class InputValidator:
    """Centralized input validation for alarm definitions."""

    TIME_REGEX = re.compile(TIME_PATTERN)

    @classmethod
    def validate_time(cls, value: Union[str, None], field_name: str = "time") -> ValidationResult:
        """Validate time format (HH:MM) and normalise it to zero-padded form."""
        if not value:
            return ValidationResult(False, None, f"{field_name} is required", field_name)

        if not isinstance(value, str):
            return ValidationResult(False, None, f"{field_name} must be a string", field_name)

        value = value.strip()
        if not cls.TIME_REGEX.match(value):
            return ValidationResult(
                False, None,
                f"{field_name} must be in HH:MM format (24-hour)",
                field_name
            )

        hour, minute = map(int, value.split(':'))
        try:
            datetime.time(hour, minute)
        except ValueError:
            return ValidationResult(
                False, None,
                f"{field_name} contains invalid hour or minute values",
                field_name
            )
        return ValidationResult(True, f"{hour:02d}:{minute:02d}", "", field_name)

    @classmethod
    def validate_days(cls, value: Union[str, Iterable[Any], None], field_name: str = "days") -> ValidationResult:
        """Validate a weekday selection.

        Accepts a list of ints (or numeric strings) or a comma separated
        string. ``None``/empty means one-shot.
        """
        if value is None:
            return ValidationResult(True, frozenset(), "", field_name)

        if isinstance(value, str):
            items: List[Any] = [part for part in value.split(',') if part.strip()]
        elif isinstance(value, (list, tuple, set, frozenset)):
            items = list(value)
        else:
            return ValidationResult(False, None, f"{field_name} must be a list of weekday numbers", field_name)

        days = set()
        for item in items:
            if isinstance(item, bool):
                return ValidationResult(False, None, f"{field_name} must contain integers 0-6", field_name)
            try:
                day = int(str(item).strip()) if isinstance(item, str) else int(item)
            except (TypeError, ValueError):
                return ValidationResult(False, None, f"{field_name} must contain integers 0-6", field_name)
            if isinstance(item, float) and not item.is_integer():
                return ValidationResult(False, None, f"{field_name} must contain integers 0-6", field_name)
            if day < 0 or day > 6:
                return ValidationResult(
                    False, None,
                    f"Invalid weekday value: {day}. Must be 0-6 (0=Sunday, 6=Saturday)",
                    field_name
                )
            days.add(day)
        return ValidationResult(True, frozenset(days), "", field_name)

    @classmethod
    def validate_label(cls, value: Union[str, None], field_name: str = "label") -> ValidationResult:
        """Validate an alarm label; blank labels fall back to the default."""
        if value is None:
            return ValidationResult(True, DEFAULT_ALARM_LABEL, "", field_name)
        if not isinstance(value, str):
            return ValidationResult(False, None, f"{field_name} must be a string", field_name)

        value = value.strip()
        if not value:
            return ValidationResult(True, DEFAULT_ALARM_LABEL, "", field_name)
        return ValidationResult(True, value, "", field_name)

    @classmethod
    def validate_boolean(cls, value: Union[str, bool, None], field_name: str = "active") -> ValidationResult:
        """Validate boolean input."""
        if isinstance(value, bool):
            return ValidationResult(True, value, "", field_name)

        if isinstance(value, (int, str)):
            lower_value = str(value).lower().strip()
            if lower_value in ('true', '1', 'on', 'yes', 'enabled'):
                return ValidationResult(True, True, "", field_name)
            if lower_value in ('false', '0', 'off', 'no', 'disabled'):
                return ValidationResult(True, False, "", field_name)

        return ValidationResult(False, None, f"{field_name} must be a boolean", field_name)


class ValidationError(Exception):
    """Custom exception for validation errors."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = message
        super().__init__(f"{field_name}: {message}")


def _require(result: ValidationResult) -> Any:
    if not result.is_valid:
        raise ValidationError(result.field_name, result.error)
    return result.value


def validate_alarm_definition(form_data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a new alarm definition.

    Args:
        form_data: Mapping with ``time``, optional ``label`` and ``days``

    Returns:
        Dict with ``hour``, ``minute``, ``label`` and ``days`` (frozenset)

    Raises:
        ValidationError: If any validation fails
    """
    if not isinstance(form_data, Mapping):
        raise ValidationError("payload", "expected a JSON object")

    time_value = _require(InputValidator.validate_time(form_data.get('time'), 'time'))
    hour, minute = map(int, time_value.split(':'))

    days_raw = form_data.get('days')
    getlist = getattr(form_data, 'getlist', None)
    if callable(getlist):
        # Werkzeug MultiDict: repeated ``days`` fields from HTML forms
        values = getlist('days')
        if len(values) > 1:
            days_raw = values

    return {
        'hour': hour,
        'minute': minute,
        'label': _require(InputValidator.validate_label(form_data.get('label'), 'label')),
        'days': _require(InputValidator.validate_days(days_raw, 'days')),
    }


def validate_active_flag(value: Any) -> bool:
    """Validate the ``active`` flag of a toggle request."""
    return _require(InputValidator.validate_boolean(value, 'active'))
