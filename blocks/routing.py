"""Host routing primitives: wires, cuts, buses and rotations."""

from __future__ import annotations

from blocks.model import Block, Leaf, Parallel, Route, Sequential, compose

WIRE_NAME = "_"
CUT_NAME = "!"
ATTACH_NAME = "attach"


def wire() -> Leaf:
    """Identity on a single wire."""
    return Leaf(WIRE_NAME, 1, 1)


def cut() -> Leaf:
    """Sink that drops a single wire."""
    return Leaf(CUT_NAME, 1, 0)


def attach() -> Leaf:
    """Two-in/one-out primitive that forces its second input and returns its first."""
    return Leaf(ATTACH_NAME, 2, 1)


def bus(width: int) -> Block:
    """Parallel bundle of ``width`` wires, grouped as a balanced tree.

    Raises:
        ValueError: If ``width`` is not positive. A zero-width bus is never
            emitted; callers leave the slot out instead.
    """
    if width < 1:
        raise ValueError(f"bus width must be positive, got {width}")
    if width == 1:
        return wire()
    return compose("parallel", *(wire() for _ in range(width)))


def rotation(skip: int) -> Route:
    """Move the first of ``skip + 1`` wires to the end, keeping the others in order.

    Input 0 lands on output ``skip``; input ``i`` lands on output ``i - 1``.
    """
    if skip < 0:
        raise ValueError(f"rotation skip must be non-negative, got {skip}")
    connections = ((0, skip),) + tuple((i, i - 1) for i in range(1, skip + 1))
    return Route(skip + 1, skip + 1, connections)


def move_to_back(block: Block, position: int) -> Block:
    """Reroute the output at ``position`` of ``block`` to become its last output.

    Outputs before ``position`` keep their place, outputs after it shift up
    by one. Degenerate routing is left out: no bus in front of the moved wire
    when ``position`` is 0, and nothing at all when the wire is already last.
    """
    skip = block.outputs - position - 1
    if skip < 0 or position < 0:
        raise ValueError(
            f"output {position} does not exist on a block with {block.outputs} outputs"
        )
    if skip == 0:
        return block

    router: Block = rotation(skip)
    if position > 0:
        router = Parallel(bus(position), router)

    return Sequential(block, router)
