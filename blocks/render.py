"""
Text rendering of composition trees in block-diagram notation.

Operator precedence, tightest first: ``~``, ``,``, ``:``, then ``<:`` and
``:>``. All combinators associate to the left; parentheses are only emitted
where precedence or associativity needs them.
"""

from blocks.model import (
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
)

ATOM_PRECEDENCE = 5

PRECEDENCE = {
    Feedback: 4,
    Parallel: 3,
    Sequential: 2,
    Split: 1,
    Merge: 1,
}


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _precedence(block: Block) -> int:
    return PRECEDENCE.get(type(block), ATOM_PRECEDENCE)


def _render_atom(block: Block) -> str:
    if isinstance(block, Leaf):
        if block.tap is not None:
            return f"tap({_quote(block.tap.name)})"
        return block.name
    if isinstance(block, Route):
        pairs = "".join(f",({src + 1},{dst + 1})" for src, dst in block.connections)
        return f"route({block.inputs},{block.outputs}{pairs})"
    if isinstance(block, Group):
        return f"hgroup({_quote(block.label)}, {render(block.body)})"
    if isinstance(block, Subroutine):
        if not block.params:
            return block.name
        return f"{block.name}({', '.join(str(p) for p in block.params)})"
    if isinstance(block, Diagnostic):
        return f"error({_quote(block.message)})"
    raise TypeError(f"Cannot render {type(block).__name__}")


def _operand(child: Block, precedence: int, right_side: bool) -> str:
    text = render(child)
    child_precedence = _precedence(child)
    if child_precedence < precedence or (right_side and child_precedence == precedence):
        return f"({text})"
    return text


def render(block: Block) -> str:
    """Render a block as block-diagram text.

    Example:
        >>> render(Sequential(Parallel(Leaf("_", 1, 1), Leaf("_", 1, 1)), Leaf("+", 2, 1)))
        '_, _ : +'
    """
    if not isinstance(block, Composite):
        return _render_atom(block)

    precedence = _precedence(block)
    left = _operand(block.left, precedence, right_side=False)
    right = _operand(block.right, precedence, right_side=True)
    if isinstance(block, Parallel):
        return f"{left}, {right}"
    return f"{left} {block.symbol} {right}"
