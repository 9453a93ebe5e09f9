"""
Configuration constants for tap extraction.

Defines the tap leaf name, catalog names, extraction labels and error
messages shared by the engine and the persist adapter.
"""

from typing import Tuple

# Leaf name used for every tap marker
TAP_LEAF_NAME: str = "tap"

# Display names of the pre-minted catalog taps
CATALOG_NAMES: Tuple[str, ...] = tuple(f"tap{i}" for i in range(1, 10))

# Label of the pass-through group left where a tap was extracted
EXTRACTED_LABEL_FORMAT: str = "{name}"

# Human readable messages per error kind
ERROR_MESSAGES: dict = {
    "not_found": "tap {name} not found in expression",
    "reused_tap": "tap {name} reached through more than one branch",
    "opaque_construct": "extraction target is not a tap: {name}",
    "no_output_to_attach": "persist needs at least one output to attach taps to",
}
