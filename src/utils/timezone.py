#!/usr/bin/env python3
"""Centralised timezone utilities."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_LOGGER = logging.getLogger("alarmist.timezone")
_FALLBACK_TZ = "Europe/Vienna"


def _extract_timezone(config: Dict[str, Any] | None) -> str | None:
    if not config:
        return None
    tz_value = config.get("timezone")
    if isinstance(tz_value, str):
        tz_value = tz_value.strip()
        if tz_value:
            return tz_value
    return None


def resolve_timezone_name(config: Dict[str, Any] | None = None) -> str:
    """ALARMIST_TIMEZONE wins over the config value, then the fallback."""
    env_tz = os.getenv("ALARMIST_TIMEZONE")
    if env_tz and env_tz.strip():
        return env_tz.strip()
    return _extract_timezone(config) or _FALLBACK_TZ


@lru_cache(maxsize=8)
def _zoneinfo_cached(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def get_local_timezone(config: Dict[str, Any] | None = None) -> ZoneInfo:
    """Return a ZoneInfo instance based on configuration/env settings."""
    tz_name = resolve_timezone_name(config)
    try:
        return _zoneinfo_cached(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        _LOGGER.warning(
            "Unknown timezone '%s' – falling back to '%s'",
            tz_name,
            _FALLBACK_TZ,
        )
        try:
            return _zoneinfo_cached(_FALLBACK_TZ)
        except ZoneInfoNotFoundError as exc:  # pragma: no cover
            raise RuntimeError("Fallback timezone is unavailable on this system") from exc
