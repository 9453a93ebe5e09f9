"""
Error reporting for tap extraction.

Extraction failures are raised internally as ``ExtractionError`` subclasses
at the level where they become observable. At the public boundary they are
turned into ``Diagnostic`` leaves that replace the whole result, unless the
caller asked for strict mode.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List

from blocks.model import Block, Diagnostic, TapId, iter_blocks
from extraction.config import ERROR_MESSAGES

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Taxonomy of extraction failures."""

    NOT_FOUND = "not_found"
    REUSED_TAP = "reused_tap"
    OPAQUE_CONSTRUCT = "opaque_construct"
    NO_OUTPUT_TO_ATTACH = "no_output_to_attach"


def _describe(value: Any) -> str:
    if isinstance(value, TapId):
        return repr(value.name)
    return repr(value)


class ExtractionError(RuntimeError):
    """Base class of extraction failures; carries the offending value.

    Only the subclasses, one per ``ErrorKind``, are raised.
    """

    kind: ErrorKind

    def __init__(self, value: Any = None):
        if type(self) is ExtractionError:
            raise TypeError("ExtractionError is abstract; raise one of its subclasses")
        self.value = value
        super().__init__(ERROR_MESSAGES[self.kind.value].format(name=_describe(value)))

    @property
    def message(self) -> str:
        return str(self)


class TapNotFoundError(ExtractionError):
    kind = ErrorKind.NOT_FOUND


class ReusedTapError(ExtractionError):
    kind = ErrorKind.REUSED_TAP


class OpaqueConstructError(ExtractionError):
    kind = ErrorKind.OPAQUE_CONSTRUCT


class NoOutputToAttachError(ExtractionError):
    kind = ErrorKind.NO_OUTPUT_TO_ATTACH


_ERRORS_BY_KIND = {
    cls.kind.value: cls
    for cls in (TapNotFoundError, ReusedTapError, OpaqueConstructError, NoOutputToAttachError)
}


def diagnostic_from_error(exc: ExtractionError) -> Diagnostic:
    """Turn an extraction error into the placeholder leaf shown in its place."""
    return Diagnostic(kind=exc.kind.value, message=exc.message, value=exc.value)


def report(exc: ExtractionError, strict: bool) -> Diagnostic:
    """Apply the strict/non-strict policy to an extraction failure.

    In strict mode the error is re-raised. Otherwise it is logged and
    returned as a ``Diagnostic`` leaf.
    """
    if strict:
        raise exc
    logger.warning("Extraction failed (%s): %s", exc.kind.value, exc.message)
    return diagnostic_from_error(exc)


def is_diagnostic(block: Any) -> bool:
    return isinstance(block, Diagnostic)


def find_diagnostics(block: Block) -> List[Diagnostic]:
    """Collect every diagnostic leaf in a tree, in pre-order."""
    return [node for node in iter_blocks(block) if is_diagnostic(node)]


def raise_for_diagnostics(block: Block) -> Block:
    """Raise the error behind the first diagnostic leaf of ``block``, if any.

    Returns:
        The block itself when it holds no diagnostics.

    Raises:
        ExtractionError: The subclass matching the first diagnostic's kind.
    """
    found = find_diagnostics(block)
    if not found:
        return block
    first = found[0]
    error_cls = _ERRORS_BY_KIND.get(first.kind)
    if error_cls is None:
        raise RuntimeError(first.message)
    raise error_cls(first.value)
