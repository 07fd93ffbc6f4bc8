"""
Expression builder: generic tag trees to typed expression trees.

Each tag selects an operator family. Operands come from two sources:

- named attributes (`arg` for unary operators, `arg1`/`arg2` for binary
  and list operators), whose values are bare strings resolved as an
  integer literal, a float literal or an argument name, in that order;
- child elements, consumed in document order to fill the slots not
  already filled by an attribute.

Unary and binary operators need exactly one and two operands. `add` and
`mult` take one or more, appending children past the named slots.
Attribute values never contain nested markup; nested operators are always
child elements.
"""

import logging
import math
import re
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from .argdefs import ArgDefs, ARG_TAG
from .ast import (
    Expression, Const, ArgRef, Unary, Binary, Variadic,
    UnaryKind, BinaryKind, VariadicKind, DEFAULT_LOG_BASE,
)
from .number import Number, NumberKind, INT64_MIN, INT64_MAX
from .parser import GenericNode
from .tokens import SourceSpan
from .errors import (
    error_unrecognized_operator,
    error_too_few_operands,
    error_too_many_operands,
    error_invalid_literal,
    error_extraneous_data,
    error_unknown_argument_name,
    error_argument_index_range,
    error_unexpected_attribute,
    error_invalid_constant,
    error_invalid_argument_reference,
    error_invalid_log_base,
    error_markup_in_attribute,
)

logger = logging.getLogger(__name__)


CONST_TAGS: Dict[str, NumberKind] = {
    "double": NumberKind.FLOAT,
    "float": NumberKind.FLOAT,
    "real": NumberKind.FLOAT,
    "integer": NumberKind.INTEGER,
    "int": NumberKind.INTEGER,
}

UNARY_TAGS: Dict[str, UnaryKind] = {kind.value: kind for kind in UnaryKind}
BINARY_TAGS: Dict[str, BinaryKind] = {kind.value: kind for kind in BinaryKind}
VARIADIC_TAGS: Dict[str, VariadicKind] = {kind.value: kind for kind in VariadicKind}

UNARY_SLOTS = ("arg",)
BINARY_SLOTS = ("arg1", "arg2")

_INTEGER_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _split_token(text: str) -> Tuple[str, str]:
    """Split off the first whitespace-delimited token; returns (token, rest)."""
    parts = text.strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], (parts[1] if len(parts) > 1 else "")


def parse_integer(text: str, context: str, span: Optional[SourceSpan] = None) -> int:
    """Parse a complete integer literal; trailing text is an error."""
    token, rest = _split_token(text)
    match = _INTEGER_RE.match(token)
    if match is None:
        raise error_invalid_literal("integer value", text.strip(), context, span)
    extra = token[match.end():] + (" " + rest if rest else "")
    if extra.strip():
        raise error_extraneous_data(extra.strip(), match.group(), context, span)
    return _in_range(int(match.group()), text, context, span)


def _in_range(value: int, text: str, context: str, span: Optional[SourceSpan]) -> int:
    if not INT64_MIN <= value <= INT64_MAX:
        raise error_invalid_literal("64-bit integer value", text.strip(), context, span)
    return value


def parse_float(text: str, context: str, span: Optional[SourceSpan] = None) -> float:
    """Parse a complete float literal; trailing text is an error."""
    token, rest = _split_token(text)
    match = _FLOAT_RE.match(token)
    if match is None:
        raise error_invalid_literal("double value", text.strip(), context, span)
    extra = token[match.end():] + (" " + rest if rest else "")
    if extra.strip():
        raise error_extraneous_data(extra.strip(), match.group(), context, span)
    return float(match.group())


class ExpressionBuilder:
    """
    Builds expression trees against one argument table.

    Usage:
        builder = ExpressionBuilder(argdefs)
        root = builder.build(node)
    """

    def __init__(self, argdefs: ArgDefs):
        self.argdefs = argdefs

    def build(self, source: Union[GenericNode, str]) -> Expression:
        """Build an expression from an element or a bare operand string."""
        if isinstance(source, GenericNode):
            return self._build_node(source)
        return self._build_operand_string(source, "operand")

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _build_node(self, node: GenericNode) -> Expression:
        name = node.name
        if name in CONST_TAGS:
            return self._build_const(node, CONST_TAGS[name])
        if name == ARG_TAG:
            return self._build_arg_ref(node)
        if name in UNARY_TAGS:
            return self._build_unary(node, UNARY_TAGS[name])
        if name in BINARY_TAGS:
            return self._build_binary(node, BINARY_TAGS[name])
        if name in VARIADIC_TAGS:
            return self._build_variadic(node, VARIADIC_TAGS[name])
        raise error_unrecognized_operator(name, node.span)

    # =========================================================================
    # Leaves
    # =========================================================================

    def _build_const(self, node: GenericNode, kind: NumberKind) -> Const:
        self._check_attributes(node, frozenset(("value",)))
        if node.children:
            raise error_invalid_constant(node.name, "cannot contain child elements", node.span)
        text = node.get("value")
        if text is None:
            raise error_invalid_constant(node.name, "must have a value attribute", node.span)

        context = f"<{node.name}>"
        if kind is NumberKind.INTEGER:
            return Const(Number.integer(parse_integer(text, context, node.span)))
        return Const(Number.real(parse_float(text, context, node.span)))

    def _build_arg_ref(self, node: GenericNode) -> ArgRef:
        self._check_attributes(node, frozenset(("index", "name")))
        if node.children:
            raise error_invalid_argument_reference("cannot contain child elements", node.span)

        index_text = node.get("index")
        name_text = node.get("name")
        if index_text is not None and name_text is not None:
            raise error_invalid_argument_reference(
                "may only contain one of index attribute or name attribute", node.span
            )
        if index_text is None and name_text is None:
            raise error_invalid_argument_reference(
                "must contain one of index attribute or name attribute", node.span
            )

        if index_text is not None:
            index = parse_integer(index_text, "<arg> index attribute", node.span)
            return self._arg_ref_at(index, node.span)

        name, rest = _split_token(name_text)
        if not name:
            raise error_invalid_argument_reference("name attribute must contain a non-empty string", node.span)
        if rest:
            raise error_extraneous_data(rest, name, "<arg> name attribute", node.span)
        index = self.argdefs.lookup(name)
        if index is None:
            raise error_unknown_argument_name(name, "<arg> name attribute", node.span)
        return ArgRef(index)

    def _arg_ref_at(self, index: int, span: Optional[SourceSpan]) -> ArgRef:
        if index < 0 or index >= self.argdefs.count:
            raise error_argument_index_range(index, self.argdefs.count, span)
        return ArgRef(index)

    def _build_operand_string(self, text: str, context: str,
                              span: Optional[SourceSpan] = None) -> Expression:
        """Resolve a bare string as integer literal, float literal or argument name."""
        token, rest = _split_token(text)
        if not token:
            raise error_invalid_literal("operand", repr(text), context, span)

        if _INTEGER_RE.fullmatch(token):
            if rest:
                raise error_extraneous_data(rest, token, context, span)
            return Const(Number.integer(_in_range(int(token), token, context, span)))

        if _FLOAT_RE.fullmatch(token):
            if rest:
                raise error_extraneous_data(rest, token, context, span)
            return Const(Number.real(float(token)))

        if _NAME_RE.fullmatch(token):
            if rest:
                raise error_extraneous_data(rest, token, context, span)
            index = self.argdefs.lookup(token)
            if index is None:
                raise error_unknown_argument_name(token, context, span)
            return ArgRef(index)

        # Report a usable prefix followed by junk as extraneous data
        prefix = _FLOAT_RE.match(token) or _NAME_RE.match(token)
        if prefix is not None:
            extra = (token[prefix.end():] + " " + rest).strip()
            raise error_extraneous_data(extra, prefix.group(), context, span)
        raise error_invalid_literal("operand", token, context, span)

    # =========================================================================
    # Operators
    # =========================================================================

    def _build_unary(self, node: GenericNode, kind: UnaryKind) -> Unary:
        allowed = frozenset(UNARY_SLOTS + (("base",) if kind is UnaryKind.LOG else ()))
        self._check_attributes(node, allowed)
        (operand,) = self._collect_operands(node, UNARY_SLOTS, variadic=False)

        base = DEFAULT_LOG_BASE
        if kind is UnaryKind.LOG and "base" in node.attributes:
            base = self._parse_log_base(node)
        return Unary(kind, operand, base)

    def _parse_log_base(self, node: GenericNode) -> float:
        text = node.attributes["base"]
        base = parse_float(text, "<log> base attribute", node.span)
        if not base > 0.0 or base == 1.0 or math.isinf(base):
            raise error_invalid_log_base(text, node.span)
        return base

    def _build_binary(self, node: GenericNode, kind: BinaryKind) -> Binary:
        self._check_attributes(node, frozenset(BINARY_SLOTS))
        left, right = self._collect_operands(node, BINARY_SLOTS, variadic=False)
        return Binary(kind, left, right)

    def _build_variadic(self, node: GenericNode, kind: VariadicKind) -> Variadic:
        self._check_attributes(node, frozenset(BINARY_SLOTS))
        operands = self._collect_operands(node, BINARY_SLOTS, variadic=True)
        return Variadic(kind, operands)

    def _check_attributes(self, node: GenericNode, allowed: FrozenSet[str]) -> None:
        for key in node.attributes:
            if key not in allowed:
                raise error_unexpected_attribute(key, node.name, node.span)

    def _collect_operands(self, node: GenericNode, slot_names: Tuple[str, ...],
                          variadic: bool) -> List[Expression]:
        """
        Fill operand slots from named attributes, then from children in order.

        For fixed-arity operators the attribute and child operands together
        must number exactly the arity. For variadic operators children past
        the named slots are appended and at least one operand is required;
        `arg2` without `arg1` needs a child to fill the first slot.
        """
        arity = len(slot_names)
        named = [key in node.attributes for key in slot_names]
        supplied = sum(named) + len(node.children)

        if variadic:
            expected = "at least 2" if named[1] else "at least 1"
            if supplied == 0 or (named[1] and not named[0] and not node.children):
                raise error_too_few_operands(node.name, expected, supplied, node.span)
        else:
            expected = str(arity)
            if supplied > arity:
                raise error_too_many_operands(node.name, expected, supplied, node.span)
            if supplied < arity:
                raise error_too_few_operands(node.name, expected, supplied, node.span)

        slots: List[Optional[Expression]] = [None] * arity
        for position, key in enumerate(slot_names):
            if named[position]:
                slots[position] = self._build_attribute_operand(node, key)

        remaining = iter(node.children)
        for position in range(arity):
            if slots[position] is None:
                child = next(remaining, None)
                if child is None:
                    break
                slots[position] = self._build_node(child)

        operands = [slot for slot in slots if slot is not None]
        operands.extend(self._build_node(child) for child in remaining)
        return operands

    def _build_attribute_operand(self, node: GenericNode, key: str) -> Expression:
        text = node.attributes[key]
        if "<" in text or ">" in text:
            raise error_markup_in_attribute(key, node.name, node.span)
        return self._build_operand_string(text, f"attribute '{key}' of <{node.name}>", node.span)


def build(source: Union[GenericNode, str], argdefs: ArgDefs) -> Expression:
    """
    Convenience function to build an expression tree.

    Args:
        source: A generic tag tree, or a bare operand string
        argdefs: The argument table names and indices resolve against

    Returns:
        The root expression node

    Raises:
        ShapeError: If the tree is not a valid expression
    """
    root = ExpressionBuilder(argdefs).build(source)
    logger.debug("built %s expression", type(root).__name__)
    return root
