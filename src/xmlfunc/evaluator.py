"""
Tree-walking evaluator for expression trees.

Promotion rules:
- A binary or list operator produces an integer only if every operand is
  an integer; otherwise it produces a float.
- sub, div and mod use integer subtraction, truncating division and
  truncating remainder for integer operands, and float subtraction,
  division and fmod otherwise.
- pow and atan2 always produce floats.
- add and mult keep an integer and a float accumulator over all operands
  and return the one selected by the operand kinds.
- Trigonometric, exponential and logarithmic operators read the float
  representation and produce floats; neg and abs keep the operand's kind.

Float arithmetic follows IEEE-754: domain errors and overflow give NaN or
infinities rather than exceptions.
"""

import math
from typing import Callable, Dict, Sequence

import numpy as np

from .ast import (
    Expression, Const, ArgRef, Unary, Binary, Variadic,
    UnaryKind, BinaryKind, VariadicKind,
)
from .number import Number, wrap_int
from .errors import error_integer_division_by_zero


_FLOAT_UNARY: Dict[UnaryKind, Callable] = {
    UnaryKind.SIN: np.sin,
    UnaryKind.COS: np.cos,
    UnaryKind.TAN: np.tan,
    UnaryKind.ASIN: np.arcsin,
    UnaryKind.ACOS: np.arccos,
    UnaryKind.ATAN: np.arctan,
    UnaryKind.DEG: np.degrees,
    UnaryKind.RAD: np.radians,
    UnaryKind.SQRT: np.sqrt,
    UnaryKind.EXP: np.exp,
    UnaryKind.LN: np.log,
}

_FLOAT_BINARY: Dict[BinaryKind, Callable] = {
    BinaryKind.SUB: np.subtract,
    BinaryKind.DIV: np.divide,
    BinaryKind.POW: np.power,
    BinaryKind.MOD: np.fmod,
    BinaryKind.ATAN2: np.arctan2,
}


def float_op(func: Callable, *operands: float) -> float:
    """Apply a NumPy ufunc to float64 operands with IEEE semantics."""
    with np.errstate(all="ignore"):
        return float(func(*(np.float64(x) for x in operands)))


def truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def truncating_mod(a: int, b: int) -> int:
    """Remainder of truncating division; its sign follows the dividend."""
    return a - b * truncating_div(a, b)


def evaluate(node: Expression, args: Sequence[Number]) -> Number:
    """
    Evaluate an expression tree.

    Args:
        node: Root of a tree produced by the expression builder
        args: Argument vector, already checked against the argument table

    Returns:
        A new Number; neither the tree nor `args` is modified

    Raises:
        EvaluationError: on integer division or modulo by zero
    """
    if isinstance(node, Const):
        return node.value.copy()
    elif isinstance(node, ArgRef):
        return args[node.index].copy()
    elif isinstance(node, Unary):
        return _eval_unary(node, args)
    elif isinstance(node, Binary):
        return _eval_binary(node, args)
    elif isinstance(node, Variadic):
        return _eval_variadic(node, args)
    else:
        raise TypeError(f"Unknown expression type: {type(node).__name__}")


def _eval_unary(node: Unary, args: Sequence[Number]) -> Number:
    value = evaluate(node.operand, args)
    kind = node.kind

    if kind is UnaryKind.NEG:
        return value.negate()
    if kind is UnaryKind.ABS:
        return value.abs()
    if kind is UnaryKind.LOG:
        factor = 1.0 / math.log(node.base)
        return Number.real(factor * float_op(np.log, value.float_value))
    return Number.real(float_op(_FLOAT_UNARY[kind], value.float_value))


def _eval_binary(node: Binary, args: Sequence[Number]) -> Number:
    left = evaluate(node.left, args)
    right = evaluate(node.right, args)
    kind = node.kind

    if left.is_integer and right.is_integer:
        a, b = left.int_value, right.int_value
        if kind is BinaryKind.SUB:
            return Number.integer(a - b)
        if kind is BinaryKind.DIV:
            if b == 0:
                raise error_integer_division_by_zero(kind.value)
            return Number.integer(truncating_div(a, b))
        if kind is BinaryKind.MOD:
            if b == 0:
                raise error_integer_division_by_zero(kind.value)
            return Number.integer(truncating_mod(a, b))

    return Number.real(float_op(_FLOAT_BINARY[kind], left.float_value, right.float_value))


def _eval_variadic(node: Variadic, args: Sequence[Number]) -> Number:
    if node.kind is VariadicKind.ADD:
        int_acc, float_acc = 0, 0.0
    else:
        int_acc, float_acc = 1, 1.0

    all_integer = True
    for operand in node.operands:
        value = evaluate(operand, args)
        all_integer = all_integer and value.is_integer
        if node.kind is VariadicKind.ADD:
            int_acc = wrap_int(int_acc + value.int_value)
            float_acc = float_acc + value.float_value
        else:
            int_acc = wrap_int(int_acc * value.int_value)
            float_acc = float_acc * value.float_value

    return Number.integer(int_acc) if all_integer else Number.real(float_acc)
