"""
Tap extraction.

Finds uniquely identified tap sinks inside a block-diagram expression and
rewires them as extra trailing outputs of the whole expression.
"""

from extraction.taps import (
    CATALOG,
    TAP_1,
    TAP_2,
    TAP_3,
    TAP_4,
    TAP_5,
    TAP_6,
    TAP_7,
    TAP_8,
    TAP_9,
    catalog_tap,
    is_tap,
    make_tap,
    named_tap,
    tap,
    tap_id_of,
    taps_in,
)
from extraction.diagnostics import (
    ErrorKind,
    ExtractionError,
    NoOutputToAttachError,
    OpaqueConstructError,
    ReusedTapError,
    TapNotFoundError,
    find_diagnostics,
    raise_for_diagnostics,
)
from extraction.engine import (
    Location,
    arity_delta,
    extract,
    extract_all,
    extract_one,
    locate,
    resolve_targets,
)
from extraction.persist import persist, persist_all
from extraction.jobs import ExtractionJob, load_job, parse_expression, parse_job

__all__ = [
    # Tap markers
    "CATALOG",
    "TAP_1",
    "TAP_2",
    "TAP_3",
    "TAP_4",
    "TAP_5",
    "TAP_6",
    "TAP_7",
    "TAP_8",
    "TAP_9",
    "catalog_tap",
    "is_tap",
    "make_tap",
    "named_tap",
    "tap",
    "tap_id_of",
    "taps_in",
    # Errors
    "ErrorKind",
    "ExtractionError",
    "NoOutputToAttachError",
    "OpaqueConstructError",
    "ReusedTapError",
    "TapNotFoundError",
    "find_diagnostics",
    "raise_for_diagnostics",
    # Engine
    "Location",
    "arity_delta",
    "extract",
    "extract_all",
    "extract_one",
    "locate",
    "resolve_targets",
    "persist",
    "persist_all",
    # Job documents
    "ExtractionJob",
    "load_job",
    "parse_expression",
    "parse_job",
]
