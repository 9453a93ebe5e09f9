"""
Block-diagram expressions.

Composition tree model, host routing primitives, text rendering and the
symbolic signal trace used to check rewrites.
"""

from blocks.model import (
    ArityError,
    Block,
    Composite,
    Diagnostic,
    Feedback,
    Group,
    Leaf,
    Merge,
    Parallel,
    Route,
    Sequential,
    Split,
    Subroutine,
    TapId,
    compose,
    iter_blocks,
)
from blocks.routing import attach, bus, cut, move_to_back, rotation, wire
from blocks.render import render
from blocks.signals import SignalTrace, trace

__all__ = [
    # Tree model
    "ArityError",
    "Block",
    "Composite",
    "Diagnostic",
    "Feedback",
    "Group",
    "Leaf",
    "Merge",
    "Parallel",
    "Route",
    "Sequential",
    "Split",
    "Subroutine",
    "TapId",
    "compose",
    "iter_blocks",
    # Routing
    "attach",
    "bus",
    "cut",
    "move_to_back",
    "rotation",
    "wire",
    # Inspection
    "render",
    "SignalTrace",
    "trace",
]
