"""Tests for runtime settings resolution."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from core.settings import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_REPORT_DIR,
    ConfigValidationError,
    load_settings,
    load_settings_file,
    resolve_strict_extraction,
)

_CLEAN_ENV = {"STRICT_EXTRACTION": "", "TAP_LOG_LEVEL": "", "TAP_REPORT_DIR": ""}


class TestSettings(unittest.TestCase):
    def _write_settings(self, content: str) -> str:
        handle = tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False)
        handle.write(content)
        handle.flush()
        handle.close()
        return handle.name

    def test_load_non_strict_missing_returns_empty(self) -> None:
        payload = load_settings_file("/definitely/missing.yml", strict=False)
        self.assertEqual(payload, {})

    def test_load_strict_missing_raises(self) -> None:
        with self.assertRaises(ConfigValidationError):
            load_settings_file("/definitely/missing.yml", strict=True)

    def test_load_strict_non_mapping_raises(self) -> None:
        path = self._write_settings("- a\n- b\n")
        try:
            with self.assertRaises(ConfigValidationError):
                load_settings_file(path, strict=True)
            self.assertEqual(load_settings_file(path, strict=False), {})
        finally:
            Path(path).unlink(missing_ok=True)

    def test_strict_env_flag(self) -> None:
        with patch.dict(os.environ, {"STRICT_EXTRACTION": "yes"}):
            self.assertTrue(resolve_strict_extraction())
        with patch.dict(os.environ, {"STRICT_EXTRACTION": "0"}):
            self.assertFalse(resolve_strict_extraction())

    @patch.dict(os.environ, _CLEAN_ENV)
    def test_defaults(self) -> None:
        settings = load_settings()
        self.assertFalse(settings.strict)
        self.assertEqual(settings.log_level, DEFAULT_LOG_LEVEL)
        self.assertEqual(settings.report_dir, DEFAULT_REPORT_DIR)

    @patch.dict(os.environ, _CLEAN_ENV)
    def test_file_values(self) -> None:
        path = self._write_settings("strict: true\nlog_level: debug\nreport_dir: out/r\n")
        try:
            settings = load_settings(path)
            self.assertTrue(settings.strict)
            self.assertEqual(settings.log_level, "DEBUG")
            self.assertEqual(settings.report_dir, "out/r")
        finally:
            Path(path).unlink(missing_ok=True)

    def test_env_overrides_file(self) -> None:
        path = self._write_settings("log_level: debug\nreport_dir: out/r\n")
        env = {"STRICT_EXTRACTION": "", "TAP_LOG_LEVEL": "warning", "TAP_REPORT_DIR": "env/r"}
        try:
            with patch.dict(os.environ, env):
                settings = load_settings(path)
            self.assertEqual(settings.log_level, "WARNING")
            self.assertEqual(settings.report_dir, "env/r")
        finally:
            Path(path).unlink(missing_ok=True)

    @patch.dict(os.environ, {"STRICT_EXTRACTION": "1", "TAP_LOG_LEVEL": "", "TAP_REPORT_DIR": ""})
    def test_explicit_strict_wins(self) -> None:
        self.assertFalse(load_settings(strict=False).strict)
        self.assertTrue(load_settings().strict)

    @patch.dict(os.environ, _CLEAN_ENV)
    def test_unknown_log_level(self) -> None:
        path = self._write_settings("log_level: chatty\n")
        try:
            self.assertEqual(load_settings(path).log_level, DEFAULT_LOG_LEVEL)
            with self.assertRaises(ConfigValidationError):
                load_settings(path, strict=True)
        finally:
            Path(path).unlink(missing_ok=True)


if __name__ == "__main__":
    unittest.main()
