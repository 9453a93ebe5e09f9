"""Core shared utilities: logging context, settings and run reports."""

from core.structured_logging import (
    configure_structured_logging,
    get_current_tap,
    get_job_id,
    set_job_id,
    tap_scope,
)
from core.settings import (
    ConfigValidationError,
    Settings,
    load_settings,
    load_settings_file,
    resolve_strict_extraction,
)
from core.run_artifacts import build_run_report, write_run_report

__all__ = [
    "configure_structured_logging",
    "get_current_tap",
    "get_job_id",
    "set_job_id",
    "tap_scope",
    "ConfigValidationError",
    "Settings",
    "load_settings",
    "load_settings_file",
    "resolve_strict_extraction",
    "build_run_report",
    "write_run_report",
]
