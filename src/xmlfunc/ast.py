"""
Expression tree node definitions.

The tree is a closed set of node classes, one per operator family, each
with a kind enum naming the concrete operator:

- Const:    a literal Number
- ArgRef:   a reference into the call's argument vector
- Unary:    neg, sin, cos, tan, asin, acos, atan, deg, rad, abs, sqrt,
            exp, ln, log (with a base)
- Binary:   sub, div, pow, mod, atan2
- Variadic: add, mult (one or more operands)

Every node owns its operand subtrees; nothing is shared and evaluation
never mutates a node.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List

from .number import Number


# =============================================================================
# Operator Kinds
# =============================================================================

class UnaryKind(Enum):
    """Single-operand operators; values are the tag names."""
    NEG = "neg"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    DEG = "deg"
    RAD = "rad"
    ABS = "abs"
    SQRT = "sqrt"
    EXP = "exp"
    LN = "ln"
    LOG = "log"


class BinaryKind(Enum):
    """Two-operand operators; values are the tag names."""
    SUB = "sub"
    DIV = "div"
    POW = "pow"
    MOD = "mod"
    ATAN2 = "atan2"


class VariadicKind(Enum):
    """Operand-list operators; values are the tag names."""
    ADD = "add"
    MULT = "mult"


DEFAULT_LOG_BASE = 10.0


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression:
    """Base class for all expression nodes."""
    pass


@dataclass
class Const(Expression):
    """A literal value."""
    value: Number


@dataclass
class ArgRef(Expression):
    """The argument at `index` in the call's argument vector."""
    index: int


@dataclass
class Unary(Expression):
    """A single-operand operator. `base` is only used by LOG."""
    kind: UnaryKind
    operand: Expression
    base: float = DEFAULT_LOG_BASE


@dataclass
class Binary(Expression):
    """A two-operand operator."""
    kind: BinaryKind
    left: Expression
    right: Expression


@dataclass
class Variadic(Expression):
    """A sum or product over a non-empty operand list."""
    kind: VariadicKind
    operands: List[Expression] = field(default_factory=list)


# =============================================================================
# Tree Helpers
# =============================================================================

def children(node: Expression) -> List[Expression]:
    """Direct operand subtrees of a node."""
    if isinstance(node, Unary):
        return [node.operand]
    if isinstance(node, Binary):
        return [node.left, node.right]
    if isinstance(node, Variadic):
        return list(node.operands)
    return []


def walk(node: Expression) -> Iterator[Expression]:
    """Yield every node in the tree, parents before operands."""
    yield node
    for child in children(node):
        yield from walk(child)


def depth(node: Expression) -> int:
    """Number of nodes on the longest root-to-leaf path."""
    return 1 + max((depth(child) for child in children(node)), default=0)


def to_dict(node: Expression) -> Dict[str, Any]:
    """Convert a tree to JSON-serializable dicts."""
    if isinstance(node, Const):
        return {"node": "const", "kind": node.value.kind.value, "value": node.value.value}
    if isinstance(node, ArgRef):
        return {"node": "arg", "index": node.index}
    if isinstance(node, Unary):
        data = {"node": "unary", "op": node.kind.value, "operand": to_dict(node.operand)}
        if node.kind is UnaryKind.LOG:
            data["base"] = node.base
        return data
    if isinstance(node, Binary):
        return {
            "node": "binary",
            "op": node.kind.value,
            "left": to_dict(node.left),
            "right": to_dict(node.right),
        }
    if isinstance(node, Variadic):
        return {
            "node": "variadic",
            "op": node.kind.value,
            "operands": [to_dict(operand) for operand in node.operands],
        }
    raise TypeError(f"Unknown expression type: {type(node).__name__}")


def format_ast(node: Expression, argument_names: List[str] = None, indent: int = 0) -> str:
    """Render a tree as indented text, one node per line."""
    pad = "  " * indent
    if isinstance(node, Const):
        return f"{pad}{node.value.kind.value} {node.value.value!r}"
    if isinstance(node, ArgRef):
        label = f"arg[{node.index}]"
        if argument_names and node.index < len(argument_names) and argument_names[node.index]:
            label += f" {argument_names[node.index]}"
        return f"{pad}{label}"

    head = node.kind.value
    if isinstance(node, Unary) and node.kind is UnaryKind.LOG:
        head += f" base={node.base!r}"
    lines = [f"{pad}{head}"]
    for child in children(node):
        lines.append(format_ast(child, argument_names, indent + 1))
    return "\n".join(lines)
