"""
Symbolic signal trace of a composition tree.

Evaluates a tree once over symbolic terms instead of samples. It answers
static questions such as "which signal reaches this output" or "what does
this tap sink", which is how rewrites of the tree are checked.

Feedback loops are unrolled a single step: the forward block sees
``Rec(loop, i)`` placeholders on its looped inputs, the feedback block sees
``Delay`` of the forward outputs, and the placeholders are then replaced by
the feedback block's outputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from blocks.model import (
    Block,
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
)
from blocks.routing import ATTACH_NAME, CUT_NAME, WIRE_NAME


class Term:
    """Base class of symbolic signal terms."""


@dataclass(frozen=True)
class Input(Term):
    index: int


@dataclass(frozen=True)
class Apply(Term):
    """Output ``port`` of primitive ``name`` applied to ``args``."""

    name: str
    port: int
    args: Tuple[Term, ...] = ()


@dataclass(frozen=True)
class Delay(Term):
    term: Term


@dataclass(frozen=True)
class Rec(Term):
    """Looped input ``index`` of the ``loop``-th feedback node (pre-order)."""

    loop: int
    index: int


@dataclass(frozen=True)
class Fault(Term):
    message: str


SILENCE = Apply("0", 0)


def _add(a: Term, b: Term) -> Term:
    return Apply("+", 0, (a, b))


@dataclass
class SignalTrace:
    """Result of :func:`trace`."""

    outputs: List[Term]
    probes: Dict[TapId, Term] = field(default_factory=dict)
    forced: List[Term] = field(default_factory=list)


def substitute(term: Term, loop: int, replacements: Sequence[Term]) -> Term:
    """Replace ``Rec(loop, i)`` by ``replacements[i]`` once, without re-entering replacements."""
    if isinstance(term, Rec):
        if term.loop == loop and term.index < len(replacements):
            return replacements[term.index]
        return term
    if isinstance(term, Apply):
        if not term.args:
            return term
        return Apply(term.name, term.port, tuple(substitute(a, loop, replacements) for a in term.args))
    if isinstance(term, Delay):
        return Delay(substitute(term.term, loop, replacements))
    return term


class _Tracer:
    def __init__(self) -> None:
        self.loops = 0
        self.probes: Dict[TapId, Term] = {}
        self.forced: List[Term] = []

    def run(self, block: Block, args: List[Term]) -> List[Term]:
        if isinstance(block, Leaf):
            return self._leaf(block, args)
        if isinstance(block, Route):
            outs: List[Optional[Term]] = [None] * block.outputs
            for src, dst in block.connections:
                current = outs[dst]
                outs[dst] = args[src] if current is None else _add(current, args[src])
            return [SILENCE if term is None else term for term in outs]
        if isinstance(block, (Group, Subroutine)):
            return self.run(block.body, args)
        if isinstance(block, Diagnostic):
            return [Fault(block.message)]
        if isinstance(block, Parallel):
            split_at = block.left.inputs
            return self.run(block.left, args[:split_at]) + self.run(block.right, args[split_at:])
        if isinstance(block, Sequential):
            return self.run(block.right, self.run(block.left, args))
        if isinstance(block, Split):
            left = self.run(block.left, args)
            fanned = [left[j % len(left)] for j in range(block.right.inputs)]
            return self.run(block.right, fanned)
        if isinstance(block, Merge):
            left = self.run(block.left, args)
            width = block.right.inputs
            merged: List[Optional[Term]] = [None] * width
            for i, term in enumerate(left):
                current = merged[i % width]
                merged[i % width] = term if current is None else _add(current, term)
            return self.run(block.right, [SILENCE if t is None else t for t in merged])
        if isinstance(block, Feedback):
            return self._feedback(block, args)
        raise TypeError(f"Cannot trace {type(block).__name__}")

    def _leaf(self, leaf: Leaf, args: List[Term]) -> List[Term]:
        if leaf.tap is not None:
            self.probes[leaf.tap] = args[0]
            return []
        if leaf.name == WIRE_NAME and leaf.arity == (1, 1):
            return list(args)
        if leaf.name == CUT_NAME and leaf.arity == (1, 0):
            return []
        if leaf.name == ATTACH_NAME and leaf.arity == (2, 1):
            self.forced.append(args[1])
            return [args[0]]
        operands = tuple(args)
        return [Apply(leaf.name, port, operands) for port in range(leaf.outputs)]

    def _feedback(self, block: Feedback, args: List[Term]) -> List[Term]:
        loop = self.loops
        self.loops += 1
        looped = [Rec(loop, i) for i in range(block.right.outputs)]

        seen = set(self.probes)
        forced_from = len(self.forced)
        forward = self.run(block.left, looped + args)
        forward_probes = [tap_id for tap_id in self.probes if tap_id not in seen]
        forward_forced = len(self.forced)

        back = self.run(block.right, [Delay(t) for t in forward[: block.right.inputs]])

        for tap_id in forward_probes:
            self.probes[tap_id] = substitute(self.probes[tap_id], loop, back)
        for i in range(forced_from, forward_forced):
            self.forced[i] = substitute(self.forced[i], loop, back)
        return [substitute(t, loop, back) for t in forward]


def trace(block: Block, inputs: Optional[Sequence[Term]] = None) -> SignalTrace:
    """Evaluate ``block`` symbolically.

    Args:
        block: Tree to evaluate.
        inputs: Terms fed to the inputs; defaults to ``Input(0) ... Input(n-1)``.

    Returns:
        The output terms, the term sunk by every tap and the terms forced
        through ``attach``.

    Raises:
        ValueError: If the number of inputs does not match the block.
    """
    if inputs is None:
        inputs = [Input(i) for i in range(block.inputs)]
    if len(inputs) != block.inputs:
        raise ValueError(f"Block takes {block.inputs} inputs, got {len(inputs)}")
    tracer = _Tracer()
    outputs = tracer.run(block, list(inputs))
    return SignalTrace(outputs=outputs, probes=tracer.probes, forced=tracer.forced)
