"""Configuration manager for persistent settings."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, List, Dict, Callable, Tuple

from .logger import get_logger
from .models import CORRECTION_THRESHOLD, ISSUE_SEVERITY_CUTOFF

logger = get_logger(__name__)

DEFAULT_MODEL_NAME = "gemini-2.0-flash"
DEFAULT_SEND_SHORTCUT = "ctrl+enter"


def _is_unit(value: Any) -> bool:
    return 0.0 <= value <= 1.0


# Configuration validation schema
CONFIG_SCHEMA: Dict[str, Tuple[Any, Callable[[Any], bool], str]] = {
    "api_key": (str, lambda x: True, "Must be a string"),
    "model_name": (str, lambda x: len(x) > 0, "Must be a non-empty string"),
    "send_shortcut": (str, lambda x: len(x) > 0, "Must be a non-empty string"),
    "host_profile": (str, lambda x: len(x) > 0, "Must be a non-empty string"),
    "correction_threshold": ((int, float), _is_unit, "Must be between 0.0 and 1.0"),
    "issue_severity_cutoff": ((int, float), _is_unit, "Must be between 0.0 and 1.0"),
    "send_poll_attempts": (int, lambda x: 1 <= x <= 100, "Must be between 1 and 100"),
    "send_poll_interval_ms": (int, lambda x: 10 <= x <= 5000, "Must be between 10 and 5000"),
    "suppression_window_ms": (int, lambda x: 10 <= x <= 5000, "Must be between 10 and 5000"),
    "resume_delay_ms": (int, lambda x: 0 <= x <= 5000, "Must be between 0 and 5000"),
    "watch_interval_ms": (int, lambda x: 100 <= x <= 10000, "Must be between 100 and 10000"),
    "interception_enabled": (bool, lambda x: True, "Must be a boolean"),
    "show_notifications": (bool, lambda x: True, "Must be a boolean"),
}


def validate_config_value(key: str, value: Any) -> Tuple[bool, str]:
    """Validate a single configuration value.

    Args:
        key: Configuration key
        value: Value to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if key not in CONFIG_SCHEMA:
        return True, ""  # Unknown keys are allowed (for forward compatibility)

    expected_type, validator, error_msg = CONFIG_SCHEMA[key]

    # bool is an int subclass; only accept it where a bool is expected
    if isinstance(value, bool) and expected_type is not bool:
        return False, f"{key}: {error_msg} (got bool)"

    if not isinstance(value, expected_type):
        return False, f"{key}: {error_msg} (got {type(value).__name__})"

    if not validator(value):
        return False, f"{key}: {error_msg} (value: {value})"

    return True, ""


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Validate entire configuration dictionary.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    for key, value in config.items():
        is_valid, error_msg = validate_config_value(key, value)
        if not is_valid:
            errors.append(error_msg)

    return len(errors) == 0, errors


class ConfigManager:
    """
    Manages application configuration with JSON persistence.

    The API key stored here is the credential read by the correction client on
    every request; the interceptor itself never touches it.
    """

    def __init__(self, config_file: str = "draftgate_config.json", config_dir: Optional[Path] = None):
        """Initialize config manager."""
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".draftgate"
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file = self.config_dir / config_file
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file, filling in missing keys with defaults."""
        data = None
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Failed to load config: %s", e)

        defaults = self._default_config()
        if not isinstance(data, dict):
            return defaults

        merged = dict(defaults)
        merged.update(data)
        return merged

    def reload(self) -> None:
        self.config = self._load_config()

    def _default_config(self) -> dict:
        """Return default configuration."""
        return {
            "api_key": "",
            "model_name": DEFAULT_MODEL_NAME,
            "send_shortcut": DEFAULT_SEND_SHORTCUT,
            "host_profile": "slack",
            "correction_threshold": CORRECTION_THRESHOLD,
            "issue_severity_cutoff": ISSUE_SEVERITY_CUTOFF,
            "send_poll_attempts": 10,
            "send_poll_interval_ms": 100,
            "suppression_window_ms": 100,
            "resume_delay_ms": 200,
            "watch_interval_ms": 750,
            "interception_enabled": True,
            "show_notifications": True,
        }

    def get_default_config(self) -> dict:
        return self._default_config()

    def save(self) -> bool:
        """Save current configuration to file with validation."""
        is_valid, errors = validate_config(self.config)
        if not is_valid:
            logger.warning("Config validation errors: %s", "; ".join(errors))
            logger.warning("Saving anyway, but some values may be invalid")

        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2)
            return True
        except OSError as e:
            logger.error("Failed to save config: %s", e)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value and save."""
        self.config[key] = value
        self.save()

    def _get_valid(self, key: str) -> Any:
        """Return the stored value, or the default when it fails validation."""
        value = self.config.get(key)
        is_valid, error = validate_config_value(key, value)
        if value is None or not is_valid:
            if value is not None:
                logger.warning("Ignoring invalid setting %s", error)
            return self._default_config()[key]
        return value

    def get_api_key(self) -> Optional[str]:
        """Get saved API key."""
        key = self.get("api_key", "")
        return key.strip() if isinstance(key, str) and key.strip() else None

    def set_api_key(self, api_key: str) -> None:
        """Save API key."""
        self.set("api_key", api_key.strip())

    def get_model_name(self) -> str:
        return self._get_valid("model_name")

    def set_model_name(self, model_name: str) -> None:
        self.set("model_name", model_name)

    def get_send_shortcut(self) -> str:
        return self._get_valid("send_shortcut")

    def set_send_shortcut(self, shortcut: str) -> None:
        self.set("send_shortcut", shortcut)

    def get_host_profile(self) -> str:
        return self._get_valid("host_profile")

    def get_correction_threshold(self) -> float:
        return float(self._get_valid("correction_threshold"))

    def get_issue_severity_cutoff(self) -> float:
        return float(self._get_valid("issue_severity_cutoff"))

    def get_send_poll_attempts(self) -> int:
        return self._get_valid("send_poll_attempts")

    def get_send_poll_interval_ms(self) -> int:
        return self._get_valid("send_poll_interval_ms")

    def get_suppression_window_ms(self) -> int:
        return self._get_valid("suppression_window_ms")

    def get_resume_delay_ms(self) -> int:
        return self._get_valid("resume_delay_ms")

    def get_watch_interval_ms(self) -> int:
        return self._get_valid("watch_interval_ms")

    def is_interception_enabled(self) -> bool:
        return self._get_valid("interception_enabled")

    def set_interception_enabled(self, enabled: bool) -> None:
        self.set("interception_enabled", enabled)

    def should_show_notifications(self) -> bool:
        return self._get_valid("show_notifications")

    def reset_to_defaults(self, keep_api_key: bool = True) -> bool:
        """Reset all settings to default values."""
        api_key = self.config.get("api_key", "")
        self.config = self._default_config()
        if keep_api_key:
            self.config["api_key"] = api_key
        success = self.save()
        if success:
            logger.info("Configuration reset to defaults")
        return success

    def delete_config_file(self) -> bool:
        """Delete the configuration file completely."""
        try:
            if self.config_file.exists():
                self.config_file.unlink()
                logger.info("Configuration file deleted")
                return True
            return False
        except OSError as e:
            logger.error("Failed to delete config file: %s", e)
            return False
