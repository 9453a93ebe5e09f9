"""Structured logging helpers with job and tap correlation context."""

from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator

_JOB_ID_VAR: contextvars.ContextVar[str] = contextvars.ContextVar(
    "job_id", default="-"
)
_TAP_VAR: contextvars.ContextVar[str] = contextvars.ContextVar(
    "tap", default="-"
)

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | job=%(job_id)s | tap=%(tap)s | "
    "%(name)s | %(message)s"
)


class _ExtractionContextFilter(logging.Filter):
    """Stamp job and tap correlation fields onto every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.job_id = _JOB_ID_VAR.get("-")
        record.tap = _TAP_VAR.get("-")
        return True


def _ensure_filter_on_root_handlers() -> None:
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if not any(isinstance(f, _ExtractionContextFilter) for f in handler.filters):
            handler.addFilter(_ExtractionContextFilter())


def configure_structured_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging with job/tap context in every line."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root_logger.setLevel(level)
        formatter = logging.Formatter(LOG_FORMAT)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)
    _ensure_filter_on_root_handlers()


def set_job_id(job_id: str | None = None) -> str:
    """Set or generate the job correlation ID."""
    value = job_id or uuid.uuid4().hex[:12]
    _JOB_ID_VAR.set(value)
    return value


def get_job_id() -> str:
    return _JOB_ID_VAR.get("-")


def get_current_tap() -> str:
    return _TAP_VAR.get("-")


@contextmanager
def tap_scope(tap_name: str) -> Iterator[None]:
    """Tag logs emitted inside the block with the tap being extracted."""
    token = _TAP_VAR.set(tap_name)
    try:
        yield
    finally:
        _TAP_VAR.reset(token)
