"""
Composition tree model for block-diagram expressions.

A block diagram is a finite tree of leaves (primitives, taps, routing) joined
by five binary combinators. Every node knows its input and output arity; the
arity is inferred once at construction from the children and never changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Tuple


class ArityError(ValueError):
    """Raised when a composition does not satisfy its wiring rule."""


class Block:
    """Base class of every node in a composition tree."""

    inputs: int
    outputs: int

    @property
    def arity(self) -> Tuple[int, int]:
        """Return ``(inputs, outputs)`` of this block."""
        return self.inputs, self.outputs

    def children(self) -> Tuple["Block", ...]:
        return ()


def _check_count(value: int, what: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ArityError(f"{what} must be a non-negative integer, got {value!r}")


@dataclass(frozen=True, eq=False)
class TapId:
    """Opaque tap identity.

    Equality is identity: two identifiers minted with the same display name
    are still different taps.
    """

    name: str

    def __repr__(self) -> str:
        return f"TapId({self.name!r}@{id(self):x})"


@dataclass(frozen=True)
class Leaf(Block):
    """Atomic primitive with a fixed arity, optionally tagged as a tap."""

    name: str
    inputs: int
    outputs: int
    tap: Optional[TapId] = None

    def __post_init__(self) -> None:
        _check_count(self.inputs, f"inputs of {self.name!r}")
        _check_count(self.outputs, f"outputs of {self.name!r}")
        if self.tap is not None and (self.inputs, self.outputs) != (1, 0):
            raise ArityError(
                f"tap {self.tap.name!r} must have arity (1, 0), "
                f"got ({self.inputs}, {self.outputs})"
            )


@dataclass(frozen=True)
class Route(Block):
    """Explicit wiring: each ``(src, dst)`` pair copies input ``src`` to output ``dst``.

    Indices are 0-based. Outputs fed by several connections are summed,
    outputs fed by none carry silence.
    """

    inputs: int
    outputs: int
    connections: Tuple[Tuple[int, int], ...]

    def __post_init__(self) -> None:
        _check_count(self.inputs, "route inputs")
        _check_count(self.outputs, "route outputs")
        for src, dst in self.connections:
            if not 0 <= src < self.inputs or not 0 <= dst < self.outputs:
                raise ArityError(
                    f"route connection ({src}, {dst}) out of range for "
                    f"route({self.inputs}, {self.outputs})"
                )


@dataclass(frozen=True)
class Composite(Block):
    """Binary combinator. Subclasses define the wiring rule in ``_infer``."""

    left: Block
    right: Block
    inputs: int = field(init=False, compare=False, repr=False)
    outputs: int = field(init=False, compare=False, repr=False)

    symbol = "?"

    def __post_init__(self) -> None:
        for child in (self.left, self.right):
            if not isinstance(child, Block):
                raise TypeError(
                    f"{type(self).__name__} children must be blocks, "
                    f"got {type(child).__name__}"
                )
        ins, outs = self._infer(self.left, self.right)
        object.__setattr__(self, "inputs", ins)
        object.__setattr__(self, "outputs", outs)

    def _infer(self, left: Block, right: Block) -> Tuple[int, int]:
        raise NotImplementedError

    def children(self) -> Tuple[Block, ...]:
        return self.left, self.right

    def rebuild(self, left: Block, right: Block) -> "Composite":
        """Return a combinator of the same kind over new children."""
        return type(self)(left, right)

    def _mismatch(self, rule: str) -> ArityError:
        return ArityError(
            f"{type(self).__name__} {rule}: left is {self.left.arity}, "
            f"right is {self.right.arity}"
        )


class Parallel(Composite):
    """``A , B``: independent stacking."""

    symbol = ","

    def _infer(self, left: Block, right: Block) -> Tuple[int, int]:
        return left.inputs + right.inputs, left.outputs + right.outputs


class Sequential(Composite):
    """``A : B``: outputs of A feed inputs of B one to one."""

    symbol = ":"

    def _infer(self, left: Block, right: Block) -> Tuple[int, int]:
        if left.outputs != right.inputs:
            raise self._mismatch("needs left outputs == right inputs")
        return left.inputs, right.outputs


class Split(Composite):
    """``A <: B``: outputs of A are broadcast cyclically over the inputs of B."""

    symbol = "<:"

    def _infer(self, left: Block, right: Block) -> Tuple[int, int]:
        if left.outputs == 0 or right.inputs % left.outputs:
            raise self._mismatch("needs right inputs to be a multiple of left outputs")
        return left.inputs, right.outputs


class Merge(Composite):
    """``A :> B``: outputs of A are summed down onto the inputs of B."""

    symbol = ":>"

    def _infer(self, left: Block, right: Block) -> Tuple[int, int]:
        if right.inputs == 0 or left.outputs % right.inputs:
            raise self._mismatch("needs left outputs to be a multiple of right inputs")
        return left.inputs, right.outputs


class Feedback(Composite):
    """``A ~ B``: B loops the first outputs of A back onto the first inputs of A.

    The first ``B.inputs`` outputs of A feed B through a one-sample delay and
    the outputs of B occupy the first ``B.outputs`` inputs of A. Every output
    of A stays visible.
    """

    symbol = "~"

    def _infer(self, left: Block, right: Block) -> Tuple[int, int]:
        if right.inputs > left.outputs or right.outputs > left.inputs:
            raise self._mismatch("needs the feedback block to fit inside the forward block")
        return left.inputs - right.outputs, left.outputs


@dataclass(frozen=True)
class Group(Block):
    """Named grouping wrapper. Display only; it does not change the wiring."""

    label: str
    body: Block
    inputs: int = field(init=False, compare=False, repr=False)
    outputs: int = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", self.body.inputs)
        object.__setattr__(self, "outputs", self.body.outputs)

    def children(self) -> Tuple[Block, ...]:
        return (self.body,)


@dataclass(frozen=True)
class Subroutine(Block):
    """Invocation of a named, parameterized subroutine whose expansion is ``body``."""

    name: str
    body: Block
    params: Tuple[Any, ...] = ()
    inputs: int = field(init=False, compare=False, repr=False)
    outputs: int = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", self.body.inputs)
        object.__setattr__(self, "outputs", self.body.outputs)

    def children(self) -> Tuple[Block, ...]:
        return (self.body,)


@dataclass(frozen=True)
class Diagnostic(Block):
    """Placeholder leaf standing in for an expression that could not be built.

    It has no inputs and a single output so that it renders as a source in
    place of the broken subexpression.
    """

    kind: str
    message: str
    value: Any = field(default=None, hash=False)
    inputs: int = field(default=0, init=False, repr=False)
    outputs: int = field(default=1, init=False, repr=False)


OPAQUE_TYPES = (Group, Subroutine)

COMBINATORS = {
    "parallel": Parallel,
    "sequential": Sequential,
    "split": Split,
    "merge": Merge,
    "feedback": Feedback,
}


def _balanced(combinator: type, blocks: Tuple[Block, ...]) -> Block:
    if len(blocks) == 1:
        return blocks[0]
    half = (len(blocks) + 1) // 2
    return combinator(
        _balanced(combinator, blocks[:half]), _balanced(combinator, blocks[half:])
    )


def compose(kind: str, *blocks: Block) -> Block:
    """Combine two or more blocks with a binary combinator.

    Parallel composition is associative, so its operands are grouped into a
    balanced tree whose depth grows with the log of the operand count. The
    other combinators fold left to right.

    Args:
        kind: One of ``parallel``, ``sequential``, ``split``, ``merge``, ``feedback``.
        *blocks: Operands, in left to right order.

    Returns:
        The combined block.

    Raises:
        ValueError: If the kind is unknown or fewer than two blocks are given.
    """
    try:
        combinator = COMBINATORS[kind]
    except KeyError:
        raise ValueError(f"Unknown combinator: {kind!r}") from None
    if len(blocks) < 2:
        raise ValueError(f"{kind} needs at least two operands, got {len(blocks)}")

    if combinator is Parallel:
        return _balanced(Parallel, blocks)

    result = blocks[0]
    for block in blocks[1:]:
        result = combinator(result, block)
    return result


def iter_blocks(block: Block) -> Iterator[Block]:
    """Yield ``block`` and all of its descendants in pre-order."""
    stack = [block]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children()))
