"""
Pydantic models for Alarmist configuration validation

This module provides type-safe configuration schemas with automatic validation,
preventing runtime errors from malformed config files.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import EARLY_FIRE_TOLERANCE_SECONDS


class AlarmistConfig(BaseModel):
    """Complete Alarmist configuration schema.

    Example:
        >>> config_dict = json.load(open("config/production.json"))
        >>> validated_config = AlarmistConfig(**config_dict)
        >>> print(validated_config.one_shot_policy)
        deactivate
    """

    # Scheduler settings
    store_path: str = Field(default="data/alarms.json", min_length=1, description="Alarm file, relative to the project root unless absolute")
    one_shot_policy: Literal["deactivate", "roll"] = Field(default="deactivate", description="What happens to one-shot alarms after they fire")
    early_fire_tolerance_seconds: float = Field(default=EARLY_FIRE_TOLERANCE_SECONDS, ge=0, le=60, description="Early wake-ups within this window still fire")
    sink_workers: int = Field(default=2, ge=1, le=16, description="Worker threads used to deliver fired alarms")

    # Runtime settings
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", description="Logging level")
    timezone: str = Field(default="Europe/Vienna", description="Timezone for alarm scheduling")
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=5001, ge=1, le=65535, description="HTTP port")

    # Runtime metadata (not saved to file)
    _runtime: Optional[Dict[str, Any]] = None

    model_config = {
        "extra": "allow",  # Allow extra fields for forward compatibility
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone string."""
        try:
            ZoneInfo(v)
            return v
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Invalid timezone: {v}. Must be a valid IANA timezone (e.g., 'Europe/Vienna')")

    @field_validator('log_level', mode='before')
    @classmethod
    def normalise_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding private fields."""
        return self.model_dump(exclude_none=False, mode='json')


def validate_config_dict(config_dict: Dict[str, Any]) -> tuple[AlarmistConfig, list[str]]:
    """Validate a config dictionary against the schema.

    Returns:
        Tuple of (validated_config, warnings_list)

    Raises:
        ValueError: If config is invalid with detailed error messages
    """
    warnings = []

    try:
        validated = AlarmistConfig(**{k: v for k, v in config_dict.items() if not k.startswith("_")})
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {str(e)}")

    known = set(AlarmistConfig.model_fields)
    for key in config_dict:
        if not key.startswith("_") and key not in known:
            warnings.append(f"Unknown config field '{key}' kept as-is")
    return validated, warnings
