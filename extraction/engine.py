"""
Tap extraction engine.

Rewrites a composition tree so that the signal sunk by one tap becomes a new
trailing output of the whole tree. The walk compares each child's output
arity before and after rewriting to tell where the tap was found:

- neither child grew: the tap is absent below this node;
- exactly one child grew by one: rewire that child's new output to the end;
- both children grew: the same tap is reachable twice.

Opaque nodes (groups, subroutine calls) are never entered.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from blocks.model import (
    OPAQUE_TYPES,
    ArityError,
    Block,
    Composite,
    Feedback,
    Group,
    Merge,
    Parallel,
    Route,
    Sequential,
    Split,
    TapId,
)
from blocks.routing import bus, move_to_back, rotation, wire
from core.settings import resolve_strict_extraction
from core.structured_logging import tap_scope
from extraction.config import EXTRACTED_LABEL_FORMAT
from extraction.diagnostics import (
    ExtractionError,
    OpaqueConstructError,
    ReusedTapError,
    TapNotFoundError,
    is_diagnostic,
    report,
)
from extraction.taps import is_tap, tap_id_of

logger = logging.getLogger(__name__)


class Location(Enum):
    """Where a rewrite found its tap relative to a binary node."""

    NEITHER = "neither"
    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"


def arity_delta(before: Block, after: Block) -> int:
    """Return the output arity gained by a rewrite, which must be 0 or 1.

    Raises:
        ArityError: If the rewrite changed the output count by anything else.
    """
    delta = after.outputs - before.outputs
    if delta not in (0, 1):
        raise ArityError(
            f"rewrite changed output arity by {delta} "
            f"({before.outputs} -> {after.outputs})"
        )
    return delta


def locate(left_delta: int, right_delta: int) -> Location:
    """Classify a pair of child deltas."""
    if left_delta and right_delta:
        return Location.BOTH
    if left_delta:
        return Location.LEFT
    if right_delta:
        return Location.RIGHT
    return Location.NEITHER


def _empty_bus(width: int) -> Block:
    """Bus of ``width`` wires, or an empty route when there is nothing to carry."""
    return bus(width) if width else Route(0, 0, ())


def _splice_parallel(node: Composite, left: Block) -> Block:
    # Tapped wire sits right after the original left outputs.
    return move_to_back(Parallel(left, node.right), node.left.outputs)


def _splice_sequential(node: Composite, left: Block) -> Block:
    return Sequential(left, Parallel(node.right, wire()))


def _splice_fan(node: Composite, left: Block) -> Block:
    # Split and merge: rebuild the fan from a plain bus so the tapped wire
    # bypasses it.
    fan = node.rebuild(_empty_bus(node.left.outputs), node.right)
    return Sequential(left, Parallel(fan, wire()))


_LEFT_SPLICES: Dict[Type[Composite], Callable[[Composite, Block], Block]] = {
    Parallel: _splice_parallel,
    Sequential: _splice_sequential,
    Split: _splice_fan,
    Merge: _splice_fan,
}


def _pull_out_of_loop(node: Feedback, back: Block) -> Block:
    """Expose the new trailing output of a rewritten feedback block.

    The rewritten feedback block delivers one more wire into the forward
    block. That wire arrives right after the original feedback wires; it is
    rotated past the forward block's remaining external inputs and carried
    alongside the forward block to its last output.
    """
    feedback_width = node.right.outputs
    skip = node.left.inputs - feedback_width
    forward: Block = Parallel(node.left, wire())
    if skip:
        entry: Block = rotation(skip)
        if feedback_width:
            entry = Parallel(bus(feedback_width), entry)
        forward = Sequential(entry, forward)
    return Feedback(forward, back)


def _rewrite(node: Block, tap_id: TapId) -> Block:
    if is_tap(node) and node.tap is tap_id:
        logger.debug("Matched tap %s", tap_id.name)
        label = EXTRACTED_LABEL_FORMAT.format(name=tap_id.name)
        return Group(label, wire())

    if isinstance(node, OPAQUE_TYPES):
        return node

    if isinstance(node, Composite):
        left = _rewrite(node.left, tap_id)
        right = _rewrite(node.right, tap_id)
        where = locate(arity_delta(node.left, left), arity_delta(node.right, right))

        if where is Location.NEITHER:
            return node
        if where is Location.BOTH:
            raise ReusedTapError(tap_id)

        logger.debug(
            "Tap %s found on the %s of %s",
            tap_id.name,
            where.value,
            type(node).__name__,
        )
        if isinstance(node, Feedback):
            if where is Location.LEFT:
                return Feedback(left, node.right)
            return _pull_out_of_loop(node, right)
        if where is Location.RIGHT:
            return node.rebuild(node.left, right)
        return _LEFT_SPLICES[type(node)](node, left)

    return node


def resolve_targets(targets: Sequence[Any]) -> List[TapId]:
    """Return the tap identifier behind every target, in order.

    Raises:
        OpaqueConstructError: For the first target that is not a tap.
    """
    resolved: List[TapId] = []
    for target in targets:
        tap_id = tap_id_of(target)
        if tap_id is None:
            raise OpaqueConstructError(target)
        resolved.append(tap_id)
    return resolved


def extract_one(tree: Block, target: Any) -> Block:
    """Extract a single tap, raising on failure.

    Args:
        tree: Expression to rewrite.
        target: A ``TapId`` or a tap leaf.

    Returns:
        The rewritten tree, with one more output carrying the tap's input.

    Raises:
        OpaqueConstructError: If target is not a tap.
        TapNotFoundError: If the tap is not reachable in the tree.
        ReusedTapError: If the tap is reachable through two branches.
    """
    (tap_id,) = resolve_targets([target])

    with tap_scope(tap_id.name):
        result = _rewrite(tree, tap_id)
        if arity_delta(tree, result) == 0:
            raise TapNotFoundError(tap_id)
        logger.info(
            "Extracted tap %s: arity %s -> %s", tap_id.name, tree.arity, result.arity
        )
    return result


def extract_all(tree: Block, targets: Sequence[Any]) -> Block:
    """Extract taps left to right; output order follows ``targets``.

    Every target is checked before the tree is touched.

    Raises:
        OpaqueConstructError: If any target is not a tap.
        ReusedTapError: If the same tap is listed twice.
    """
    result = tree
    done: List[TapId] = []
    for tap_id in resolve_targets(targets):
        if any(tap_id is seen for seen in done):
            raise ReusedTapError(tap_id)
        result = extract_one(result, tap_id)
        done.append(tap_id)
    return result


def extract(tree: Block, targets: Any, strict: Optional[bool] = None) -> Block:
    """Expose one or more taps as new trailing outputs of ``tree``.

    Args:
        tree: Expression to rewrite. A diagnostic leaf is returned unchanged
            once the targets have been checked.
        targets: A ``TapId``, a tap leaf, or a list/tuple of them.
        strict: Raise ``ExtractionError`` instead of returning a diagnostic.
            Defaults to the ``STRICT_EXTRACTION`` environment flag.

    Returns:
        The rewritten tree, or a ``Diagnostic`` leaf describing the failure.
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
        return extract_all(tree, targets)
    except ExtractionError as exc:
        return report(exc, strict)
