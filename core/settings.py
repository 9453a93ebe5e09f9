"""Runtime settings for extraction runs.

Settings come from a YAML file and environment overrides. A broken settings
file only fails the run in strict mode; otherwise it is logged and defaults
are used.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import yaml

logger = logging.getLogger(__name__)

STRICT_ENV = "STRICT_EXTRACTION"
LOG_LEVEL_ENV = "TAP_LOG_LEVEL"
REPORT_DIR_ENV = "TAP_REPORT_DIR"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_REPORT_DIR = "output/extract_reports"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigValidationError(RuntimeError):
    """Raised when strict settings validation fails."""


@dataclass(frozen=True)
class Settings:
    """Effective settings of one run."""

    strict: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    report_dir: str = DEFAULT_REPORT_DIR


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def resolve_strict_extraction(default: bool = False) -> bool:
    """Resolve strict extraction mode from ``STRICT_EXTRACTION`` env."""
    return _env_flag(STRICT_ENV, default=default)


def load_settings_file(path: str, strict: bool = False) -> dict[str, Any]:
    """Load the YAML settings mapping.

    In non-strict mode this returns an empty dict on read/parse failures.
    In strict mode this raises ``ConfigValidationError``.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except FileNotFoundError as exc:
        msg = f"Settings file not found: {path}"
        if strict:
            raise ConfigValidationError(msg) from exc
        logger.warning("%s; continuing with defaults", msg)
        return {}
    except yaml.YAMLError as exc:
        msg = f"Failed to parse settings YAML at {path}: {exc}"
        if strict:
            raise ConfigValidationError(msg) from exc
        logger.warning("%s; continuing with defaults", msg)
        return {}

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        msg = f"Unexpected settings payload type: {type(payload).__name__}"
        if strict:
            raise ConfigValidationError(msg)
        logger.warning("%s; continuing with defaults", msg)
        return {}
    return payload


def _resolve_log_level(raw: Any, strict: bool) -> str:
    level = str(raw).strip().upper()
    if level in _LOG_LEVELS:
        return level
    msg = f"Unknown log level {raw!r}"
    if strict:
        raise ConfigValidationError(msg)
    logger.warning("%s; using %s", msg, DEFAULT_LOG_LEVEL)
    return DEFAULT_LOG_LEVEL


def load_settings(path: str | None = None, strict: bool | None = None) -> Settings:
    """Build effective settings from an optional file and the environment.

    Precedence, lowest first: defaults, settings file, environment, and the
    explicit ``strict`` argument.
    """
    env_strict = resolve_strict_extraction()
    validate_strict = env_strict if strict is None else strict

    payload: dict[str, Any] = {}
    if path:
        payload = load_settings_file(path, strict=validate_strict)

    file_strict = bool(payload.get("strict", False))
    effective_strict = strict if strict is not None else (env_strict or file_strict)

    log_level = os.getenv(LOG_LEVEL_ENV) or payload.get("log_level", DEFAULT_LOG_LEVEL)
    report_dir = os.getenv(REPORT_DIR_ENV) or payload.get("report_dir", DEFAULT_REPORT_DIR)

    return Settings(
        strict=effective_strict,
        log_level=_resolve_log_level(log_level, strict=validate_strict),
        report_dir=str(report_dir),
    )
