"""
Centralized configuration management for Alarmist
Handles environment-specific configs, environment overrides and validation
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .config_schema import validate_config_dict
from .constants import ONE_SHOT_POLICIES

load_dotenv()

_LEGACY_DEFAULTS: Dict[str, Any] = {
    "store_path": "data/alarms.json",
    "one_shot_policy": "deactivate",
    "early_fire_tolerance_seconds": 1.0,
    "sink_workers": 2,
    "environment": "development",
    "debug": False,
    "log_level": "INFO",
    "timezone": "Europe/Vienna",
    "host": "0.0.0.0",
    "port": 5001,
}

# Environment variable -> config key
_ENV_OVERRIDES = {
    "ALARMIST_TIMEZONE": "timezone",
    "ALARMIST_STORE_PATH": "store_path",
    "ALARMIST_ONE_SHOT_POLICY": "one_shot_policy",
    "ALARMIST_LOG_LEVEL": "log_level",
}


class ConfigManager:
    """Manages configuration loading and validation"""

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path) if base_path else Path(__file__).parent.parent
        self.config_dir = self.base_path / "config"
        self.environment = self._detect_environment()
        self._logger = logging.getLogger("alarmist.config")

    def _detect_environment(self) -> str:
        """Explicit ALARMIST_ENV wins; otherwise development."""
        env_var = os.getenv("ALARMIST_ENV")
        if env_var:
            return env_var.strip()
        return "development"

    def _read_json(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self._logger.warning(f"Could not load config {path.name}: {e}")
            return {}
        if not isinstance(data, dict):
            self._logger.warning(f"Ignoring config {path.name}: expected a JSON object")
            return {}
        return data

    def load_config(self, config_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration based on environment

        Args:
            config_name: Specific config file name (without .json)
                        If None, uses environment-based config

        Returns:
            Configuration dictionary
        """
        if config_name is None:
            config_name = self.environment

        config_file = self.config_dir / f"{config_name}.json"
        default_config = self._read_json(self.config_dir / "default_config.json")
        env_config = self._read_json(config_file)

        # Environment file overrides defaults, environment variables override both
        config = {**default_config, **env_config}
        config.setdefault("environment", self.environment)
        for env_name, key in _ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                config[key] = value.strip()

        config["_runtime"] = {
            "environment": self.environment,
            "config_file": str(config_file),
            "base_path": str(self.base_path)
        }

        return self.validate_config(config)

    def validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and clean configuration.

        Uses the pydantic schema; falls back to per-field defaults when the
        schema rejects the config so a bad file never prevents startup.
        """
        try:
            validated_model, warnings = validate_config_dict(config)
        except ValueError as e:
            self._logger.error(f"❌ Configuration schema validation failed: {e}")
            self._logger.warning("Falling back to legacy validation (invalid fields reset to defaults)")
            return self._legacy_validate_config(config)

        for warning in warnings:
            self._logger.warning(f"Config validation warning: {warning}")

        validated_dict = validated_model.to_dict()
        if "_runtime" in config:
            validated_dict["_runtime"] = config["_runtime"]
        return validated_dict

    def _legacy_validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Field-by-field repair used when schema validation fails."""
        config = dict(config)
        for key, default_value in _LEGACY_DEFAULTS.items():
            if key not in config:
                config[key] = copy.deepcopy(default_value)

        if config.get("one_shot_policy") not in ONE_SHOT_POLICIES:
            config["one_shot_policy"] = "deactivate"

        try:
            config["early_fire_tolerance_seconds"] = max(0.0, min(60.0, float(config["early_fire_tolerance_seconds"])))
        except (TypeError, ValueError):
            config["early_fire_tolerance_seconds"] = _LEGACY_DEFAULTS["early_fire_tolerance_seconds"]

        try:
            config["sink_workers"] = max(1, min(16, int(config["sink_workers"])))
        except (TypeError, ValueError):
            config["sink_workers"] = _LEGACY_DEFAULTS["sink_workers"]

        try:
            config["port"] = int(config["port"])
            if not 1 <= config["port"] <= 65535:
                raise ValueError(config["port"])
        except (TypeError, ValueError):
            config["port"] = _LEGACY_DEFAULTS["port"]

        if not isinstance(config.get("store_path"), str) or not config["store_path"].strip():
            config["store_path"] = _LEGACY_DEFAULTS["store_path"]

        level = str(config.get("log_level") or "").upper()
        config["log_level"] = level if level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL") else "INFO"

        tz_value = str(config.get("timezone") or "").strip()
        try:
            ZoneInfo(tz_value)
            config["timezone"] = tz_value
        except (ZoneInfoNotFoundError, ValueError):
            self._logger.warning(
                "Invalid timezone '%s' in config – falling back to Europe/Vienna",
                tz_value,
            )
            config["timezone"] = "Europe/Vienna"

        return config

    def resolve_path(self, config: Dict[str, Any], key: str) -> Path:
        """Resolve a path-valued config entry against the project root."""
        path = Path(str(config[key])).expanduser()
        if not path.is_absolute():
            path = self.base_path / path
        return path


# Global config manager instance
config_manager = ConfigManager()


def load_config() -> Dict[str, Any]:
    """Load current environment configuration"""
    return config_manager.load_config()
