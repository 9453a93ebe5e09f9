"""
Persist adapter.

Extracts taps and immediately folds every new output back into the last
original output with the ``attach`` primitive, so the tapped signals are
evaluated without changing the tree's output arity.
"""

import logging
from typing import Any, Optional

from blocks.model import Block, Parallel, Sequential
from blocks.routing import attach, bus
from core.settings import resolve_strict_extraction
from extraction.diagnostics import (
    ExtractionError,
    NoOutputToAttachError,
    is_diagnostic,
    report,
)
from extraction.engine import extract_all, resolve_targets

logger = logging.getLogger(__name__)


def attach_chain(count: int) -> Block:
    """Block of ``count + 1`` inputs returning ``attach(...attach(x, t1)..., tcount)``."""
    if count < 1:
        raise ValueError(f"attach chain needs at least one tap, got {count}")
    chain: Block = attach()
    for width in range(2, count + 1):
        # attach the first tap, then hand the rest to the shorter chain
        chain = Sequential(Parallel(attach(), bus(width - 1)), chain)
    return chain


def persist_all(tree: Block, targets: list) -> Block:
    """Extract ``targets`` and attach them to the last original output, raising on failure.

    Raises:
        OpaqueConstructError: If any target is not a tap.
        NoOutputToAttachError: If ``tree`` has no output.
        ExtractionError: Any failure raised by the extraction itself.
    """
    resolve_targets(targets)
    original_outputs = tree.outputs
    if original_outputs < 1:
        raise NoOutputToAttachError(tree.arity)

    extracted = extract_all(tree, targets)
    if not targets:
        return extracted

    tail = attach_chain(len(targets))
    if original_outputs > 1:
        tail = Parallel(bus(original_outputs - 1), tail)
    result = Sequential(extracted, tail)
    logger.info(
        "Persisted %d tap(s): arity %s -> %s", len(targets), tree.arity, result.arity
    )
    return result


def persist(tree: Block, targets: Any, strict: Optional[bool] = None) -> Block:
    """Force evaluation of taps without adding outputs.

    Args:
        tree: Expression with at least one output. A diagnostic leaf is
            returned unchanged once the targets have been checked.
        targets: A ``TapId``, a tap leaf, or a list/tuple of them.
        strict: Raise instead of returning a diagnostic leaf. Defaults to the
            ``STRICT_EXTRACTION`` environment flag.

    Returns:
        A tree with the same arity as ``tree``, or a ``Diagnostic`` leaf.
    """
    if not isinstance(tree, Block):
        raise TypeError(f"Expected a Block, got {type(tree).__name__}")
    if strict is None:
        strict = resolve_strict_extraction()
    if not isinstance(targets, (list, tuple)):
        targets = [targets]

    try:
        resolve_targets(targets)
        if is_diagnostic(tree):
            return tree
        return persist_all(tree, list(targets))
    except ExtractionError as exc:
        return report(exc, strict)
