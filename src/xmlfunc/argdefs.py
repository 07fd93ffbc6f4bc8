"""
Argument declaration tables.

An `ArgDefs` is the ordered list of argument slots a function accepts, each
with a numeric kind and an optional name. It is built once from an
`<arglist>` element and is read-only afterwards.
"""

import re
import collections.abc
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .number import Number, NumberKind
from .parser import GenericNode
from .tokens import SourceSpan
from .errors import (
    error_empty_arglist,
    error_invalid_arglist_entry,
    error_unknown_argument_type,
    error_duplicate_argument_name,
    error_invalid_argument_declaration,
    error_missing_arglist,
    error_invalid_argument_vector,
    error_insufficient_arguments,
    error_argument_type_mismatch,
    error_unsupported_argument,
)


ARGLIST_TAG = "arglist"
ARG_TAG = "arg"

# Type keyword synonyms accepted in <arg type="...">
TYPE_NAMES: Dict[str, NumberKind] = {
    "double": NumberKind.FLOAT,
    "float": NumberKind.FLOAT,
    "real": NumberKind.FLOAT,
    "integer": NumberKind.INTEGER,
    "int": NumberKind.INTEGER,
}

IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_identifier(text: str) -> bool:
    return IDENTIFIER_RE.fullmatch(text) is not None


class ArgDefs:
    """Ordered, typed argument slots with a name-to-index lookup."""

    def __init__(self, slots: Iterable[Tuple[NumberKind, Optional[str]]] = ()):
        self._types: List[NumberKind] = []
        self._names: List[Optional[str]] = []
        self._xref: Dict[str, int] = {}
        for kind, name in slots:
            self.add(kind, name)

    def add(self, kind: NumberKind, name: Optional[str] = None,
            span: Optional[SourceSpan] = None) -> int:
        """Append a slot and return its index."""
        if name is not None:
            if name in self._xref:
                raise error_duplicate_argument_name(name, span)
            self._xref[name] = len(self._types)
        self._types.append(kind)
        self._names.append(name)
        return len(self._types) - 1

    def __len__(self) -> int:
        return len(self._types)

    @property
    def count(self) -> int:
        return len(self._types)

    def type(self, index: int) -> NumberKind:
        return self._types[index]

    def name(self, index: int) -> Optional[str]:
        return self._names[index]

    def lookup(self, name: str) -> Optional[int]:
        """Index of a named slot, or None."""
        return self._xref.get(name)

    def slots(self) -> List[Tuple[NumberKind, Optional[str]]]:
        return list(zip(self._types, self._names))

    def bind(self, args: Sequence) -> List[Number]:
        """
        Validate a call's argument vector against this table.

        Plain ints and floats are wrapped as Numbers. An integer value in a
        float slot is promoted; a float value in an integer slot is an error.
        Extra trailing arguments are passed through unchecked.

        Raises:
            CallError: on a non-sequence, a short vector, a type mismatch or a
                non-numeric value
        """
        if isinstance(args, (str, bytes, collections.abc.Mapping)) \
                or not isinstance(args, collections.abc.Iterable):
            raise error_invalid_argument_vector(type(args).__name__)
        values = list(args)
        if len(values) < self.count:
            raise error_insufficient_arguments(self.count, len(values))

        bound = []
        for index, value in enumerate(values):
            try:
                number = Number.of(value)
            except TypeError:
                raise error_unsupported_argument(index, type(value).__name__)
            if index < self.count:
                declared = self._types[index]
                if declared is NumberKind.INTEGER and not number.is_integer:
                    raise error_argument_type_mismatch(index, self._names[index])
                if declared is NumberKind.FLOAT and number.is_integer:
                    number = Number.real(number.float_value)
            bound.append(number)
        return bound

    def __repr__(self) -> str:
        return f"ArgDefs({self.slots()!r})"


def build_argdefs(node: Optional[GenericNode]) -> ArgDefs:
    """
    Build an argument table from an <arglist> element.

    Raises:
        DeclarationError: if the element is not a valid argument list
    """
    if node is None or node.name != ARGLIST_TAG:
        raise error_missing_arglist(node.span if node is not None else None)
    if node.attributes:
        key = next(iter(node.attributes))
        raise error_invalid_argument_declaration(f"<arglist> does not accept attribute '{key}'", node.span)
    if not node.children:
        raise error_empty_arglist(node.span)

    argdefs = ArgDefs()
    for child in node.children:
        if child.name != ARG_TAG:
            raise error_invalid_arglist_entry(child.name, child.span)
        if child.children:
            raise error_invalid_argument_declaration("<arg> cannot contain a body", child.span)
        for key in child.attributes:
            if key not in ("type", "name"):
                raise error_invalid_argument_declaration(f"unexpected attribute '{key}'", child.span)

        kind = NumberKind.FLOAT
        type_name = child.get("type")
        if type_name is not None:
            kind = TYPE_NAMES.get(type_name.strip())
            if kind is None:
                raise error_unknown_argument_type(type_name, child.span)

        name = child.get("name")
        if name is not None:
            name = name.strip()
            if not is_identifier(name):
                raise error_invalid_argument_declaration(f"invalid argument name '{name}'", child.span)

        argdefs.add(kind, name, child.span)

    return argdefs
