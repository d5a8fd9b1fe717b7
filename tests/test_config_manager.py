"""Unit tests for config_manager.py module."""
from __future__ import annotations

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from draftGate.config_manager import (
    CONFIG_SCHEMA,
    DEFAULT_MODEL_NAME,
    DEFAULT_SEND_SHORTCUT,
    ConfigManager,
    validate_config,
    validate_config_value,
)


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager class."""

    def setUp(self):
        """Set up a config manager rooted in a temporary directory."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.config = ConfigManager(config_dir=self.temp_dir)
        self.config_file = self.config.config_file

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def reopen(self) -> ConfigManager:
        return ConfigManager(config_dir=self.temp_dir)

    def test_initialization_uses_defaults(self):
        self.assertIsNone(self.config.get_api_key())
        self.assertEqual(self.config.get_model_name(), DEFAULT_MODEL_NAME)
        self.assertEqual(self.config.get_send_shortcut(), DEFAULT_SEND_SHORTCUT)
        self.assertEqual(self.config.get_host_profile(), "slack")
        self.assertEqual(self.config.get_correction_threshold(), 0.3)
        self.assertEqual(self.config.get_issue_severity_cutoff(), 0.3)
        self.assertEqual(self.config.get_send_poll_attempts(), 10)
        self.assertEqual(self.config.get_send_poll_interval_ms(), 100)
        self.assertEqual(self.config.get_suppression_window_ms(), 100)
        self.assertEqual(self.config.get_resume_delay_ms(), 200)
        self.assertTrue(self.config.is_interception_enabled())

    def test_every_default_key_is_validated(self):
        defaults = self.config.get_default_config()
        self.assertEqual(set(defaults), set(CONFIG_SCHEMA))
        self.assertNotIn("minimize_to_tray", defaults)

    def test_api_key_persists(self):
        self.config.set_api_key("  AIzaTestKey  ")
        self.assertEqual(self.reopen().get_api_key(), "AIzaTestKey")

    def test_blank_api_key_reads_as_none(self):
        self.config.set_api_key("   ")
        self.assertIsNone(self.config.get_api_key())

    def test_model_name_persists(self):
        self.config.set_model_name("gemini-1.5-pro")
        self.assertEqual(self.reopen().get_model_name(), "gemini-1.5-pro")

    def test_interception_toggle_persists(self):
        self.config.set_interception_enabled(False)
        self.assertFalse(self.reopen().is_interception_enabled())

    def test_invalid_values_fall_back_to_defaults(self):
        self.config.set("correction_threshold", 4.2)
        self.config.set("send_poll_attempts", True)
        self.config.set("resume_delay_ms", "soon")
        self.config.set("send_shortcut", "")

        self.assertEqual(self.config.get_correction_threshold(), 0.3)
        self.assertEqual(self.config.get_send_poll_attempts(), 10)
        self.assertEqual(self.config.get_resume_delay_ms(), 200)
        self.assertEqual(self.config.get_send_shortcut(), DEFAULT_SEND_SHORTCUT)

    def test_valid_override_is_used(self):
        self.config.set("issue_severity_cutoff", 0.5)
        self.config.set("send_poll_attempts", 3)
        self.assertEqual(self.config.get_issue_severity_cutoff(), 0.5)
        self.assertEqual(self.config.get_send_poll_attempts(), 3)

    def test_invalid_json_handling(self):
        self.config_file.write_text("{ invalid json }", encoding="utf-8")
        config = self.reopen()
        self.assertEqual(config.get_model_name(), DEFAULT_MODEL_NAME)
        self.assertIsNone(config.get_api_key())

    def test_partial_file_is_merged_with_defaults(self):
        self.config_file.write_text(json.dumps({"api_key": "AIzaPartial"}), encoding="utf-8")
        config = self.reopen()
        self.assertEqual(config.get_api_key(), "AIzaPartial")
        self.assertEqual(config.get_watch_interval_ms(), 750)

    def test_reset_to_defaults_keeps_api_key(self):
        self.config.set_api_key("AIzaKeep")
        self.config.set("send_poll_attempts", 5)
        self.assertTrue(self.config.reset_to_defaults())

        self.assertEqual(self.config.get_send_poll_attempts(), 10)
        self.assertEqual(self.config.get_api_key(), "AIzaKeep")
        self.config.reset_to_defaults(keep_api_key=False)
        self.assertIsNone(self.config.get_api_key())

    def test_delete_config_file(self):
        self.config.save()
        self.assertTrue(self.config.delete_config_file())
        self.assertFalse(self.config_file.exists())
        self.assertFalse(self.config.delete_config_file())

    def test_reload(self):
        self.config_file.write_text(json.dumps({"model_name": "gemini-1.5-flash"}), encoding="utf-8")
        self.config.reload()
        self.assertEqual(self.config.get_model_name(), "gemini-1.5-flash")


class TestValidation(unittest.TestCase):

    def test_validate_config_value(self):
        self.assertEqual(validate_config_value("correction_threshold", 0.5), (True, ""))
        self.assertFalse(validate_config_value("correction_threshold", 1.5)[0])
        self.assertFalse(validate_config_value("interception_enabled", "yes")[0])
        self.assertFalse(validate_config_value("send_poll_interval_ms", False)[0])
        self.assertTrue(validate_config_value("unknown_future_key", object())[0])

    def test_validate_config_collects_errors(self):
        ok, errors = validate_config({"model_name": "", "watch_interval_ms": 5, "api_key": "x"})
        self.assertFalse(ok)
        self.assertEqual(len(errors), 2)


if __name__ == "__main__":
    unittest.main()
