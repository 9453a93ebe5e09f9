"""
Tap markers.

A tap is a one-input, zero-output sink leaf carrying a unique ``TapId``.
Identity is nominal: every call to :func:`named_tap` or :func:`make_tap`
mints a new identifier, even for a display name that was used before.
"""

from typing import Any, Dict, Optional

from blocks.model import Block, Leaf, TapId, iter_blocks
from extraction.config import CATALOG_NAMES, TAP_LEAF_NAME


def named_tap(display_name: str) -> TapId:
    """Mint a fresh tap identifier.

    Args:
        display_name: Name shown when the tap is rendered or extracted.

    Returns:
        A new ``TapId`` that compares equal only to itself.

    Raises:
        TypeError: If display_name is not a string.
    """
    if not isinstance(display_name, str):
        raise TypeError(f"Tap name must be str, got {type(display_name).__name__}")
    return TapId(display_name)


def tap(tap_id: TapId) -> Leaf:
    """Build the sink leaf for an existing tap identifier."""
    if not isinstance(tap_id, TapId):
        raise TypeError(f"Expected TapId, got {type(tap_id).__name__}")
    return Leaf(TAP_LEAF_NAME, 1, 0, tap=tap_id)


def make_tap(display_name: str) -> Leaf:
    """Mint a fresh identifier and return its sink leaf."""
    return tap(named_tap(display_name))


def is_tap(block: Any) -> bool:
    """Check if a value is a tap marker leaf."""
    return isinstance(block, Leaf) and block.tap is not None


def tap_id_of(target: Any) -> Optional[TapId]:
    """Return the identifier behind an extraction target.

    Accepts either a ``TapId`` or a tap leaf. Anything else yields None.
    """
    if isinstance(target, TapId):
        return target
    if is_tap(target):
        return target.tap
    return None


def taps_in(block: Block) -> Dict[TapId, int]:
    """Count tap leaves per identifier reachable in ``block``, opaque nodes included."""
    counts: Dict[TapId, int] = {}
    for node in iter_blocks(block):
        if is_tap(node):
            counts[node.tap] = counts.get(node.tap, 0) + 1
    return counts


# Pre-minted catalog. Clients needing more taps call named_tap directly.
TAP_1 = named_tap(CATALOG_NAMES[0])
TAP_2 = named_tap(CATALOG_NAMES[1])
TAP_3 = named_tap(CATALOG_NAMES[2])
TAP_4 = named_tap(CATALOG_NAMES[3])
TAP_5 = named_tap(CATALOG_NAMES[4])
TAP_6 = named_tap(CATALOG_NAMES[5])
TAP_7 = named_tap(CATALOG_NAMES[6])
TAP_8 = named_tap(CATALOG_NAMES[7])
TAP_9 = named_tap(CATALOG_NAMES[8])

CATALOG = (TAP_1, TAP_2, TAP_3, TAP_4, TAP_5, TAP_6, TAP_7, TAP_8, TAP_9)


def catalog_tap(display_name: str) -> TapId:
    """Look up a catalog identifier by its display name (``tap1`` ... ``tap9``).

    Raises:
        KeyError: If the name is not part of the catalog.
    """
    for tap_id in CATALOG:
        if tap_id.name == display_name:
            return tap_id
    raise KeyError(f"No catalog tap named {display_name!r}")
