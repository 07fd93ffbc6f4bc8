"""
Function registry: compiles a document into callable functions.

A document is either a single function:

    <arglist> <arg type="double" name="x"/> </arglist>
    <sin arg="x"/>

or one or more <func> elements, optionally preceded by a shared <arglist>
that functions without their own table use:

    <arglist> <arg name="x"/> </arglist>
    <func name="square"> <mult arg1="x" arg2="x"/> </func>
    <func name="scaled">
        <arglist> <arg name="x"/> <arg type="int" name="n"/> </arglist>
        <mult arg1="x" arg2="n"/>
    </func>

Functions are indexed in declaration order and optionally named.
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from .argdefs import ArgDefs, ARGLIST_TAG, build_argdefs, is_identifier
from .ast import Expression, to_dict, format_ast
from .builder import build
from .evaluator import evaluate
from .number import Number, NumberKind
from .options import ParseOptions
from .parser import GenericNode, parse_document
from .source import load_source, prepare_source, source_line
from .errors import (
    XmlFuncError,
    error_missing_arglist,
    error_duplicate_function_name,
    error_missing_argument_table,
    error_invalid_function_name,
    error_unexpected_attribute,
    error_missing_root,
    error_multiple_roots,
    error_function_index_range,
    error_unknown_function,
    error_ambiguous_function,
    error_nesting_too_deep,
    error_evaluation_too_deep,
)

logger = logging.getLogger(__name__)

FUNC_TAG = "func"

Selector = Union[int, str, None]


@dataclass
class FunctionEntry:
    """One compiled function: an expression root, its argument table and an optional name."""
    root: Expression
    argdefs: ArgDefs
    name: Optional[str] = None
    index: int = 0

    @property
    def label(self) -> str:
        return self.name if self.name is not None else f"#{self.index}"

    @property
    def signature(self) -> str:
        """Render as `name(int a, float b, float)`."""
        params = []
        for kind, name in self.argdefs.slots():
            type_name = "int" if kind is NumberKind.INTEGER else "float"
            params.append(f"{type_name} {name}" if name else type_name)
        return f"{self.label}({', '.join(params)})"

    def eval(self, args: Sequence[Any]) -> Number:
        """
        Evaluate with an argument vector of Numbers, ints or floats.

        Raises:
            CallError: if the arguments do not match the argument table
            EvaluationError: on integer division or modulo by zero, or an
                expression nested too deeply to evaluate
        """
        bound = self.argdefs.bind(args)
        try:
            result = evaluate(self.root, bound)
        except RecursionError:
            raise error_evaluation_too_deep(sys.getrecursionlimit()) from None
        logger.debug("%s -> %s", self.label, result)
        return result

    __call__ = eval

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "index": self.index,
            "signature": self.signature,
            "arguments": [
                {"type": kind.value, "name": name} for kind, name in self.argdefs.slots()
            ],
            "expression": to_dict(self.root),
        }

    def format(self) -> str:
        names = [name for _, name in self.argdefs.slots()]
        return f"{self.signature}\n{format_ast(self.root, names, indent=1)}"


class XmlFunc:
    """
    A compiled document.

    Usage:
        f = XmlFunc.from_file("area.xml")
        f.eval([2.0, 3.0])             # the only function
        f.eval("area", [2.0, 3.0])     # by name
        f.eval(1, [2.0, 3.0])          # by index

    Construction either succeeds completely or raises an XmlFuncError.
    """

    def __init__(self, source: Union[str, Path], options: Optional[ParseOptions] = None):
        text, filename = load_source(source)
        self._load(text, filename, options)

    def _load(self, text: str, filename: Optional[str], options: Optional[ParseOptions]) -> None:
        self.options = options or ParseOptions()
        self.text, self.filename = text, filename
        self.functions: List[FunctionEntry] = []
        self._by_name: Dict[str, FunctionEntry] = {}

        try:
            self._compile()
        except RecursionError:
            raise error_nesting_too_deep(sys.getrecursionlimit()) from None
        except XmlFuncError as exc:
            self._attach_source_line(exc)
            raise

        logger.debug(
            "compiled %d function(s) from %s", len(self.functions), self.filename or "<string>"
        )

    @classmethod
    def from_file(cls, path: Union[str, Path], options: Optional[ParseOptions] = None) -> "XmlFunc":
        return cls(Path(path), options)

    @classmethod
    def from_string(cls, text: str, options: Optional[ParseOptions] = None) -> "XmlFunc":
        """Compile literal document text, never treating it as a path."""
        instance = cls.__new__(cls)
        instance._load(text, None, options)
        return instance

    # =========================================================================
    # Compilation
    # =========================================================================

    def _compile(self) -> None:
        prepared = prepare_source(self.text, self.options, self.filename)
        nodes = parse_document(
            prepared, self.filename, allow_unquoted_values=self.options.allow_unquoted_values
        )
        if not nodes:
            raise error_missing_root("document")

        shared: Optional[ArgDefs] = None
        rest = nodes
        if nodes[0].name == ARGLIST_TAG:
            shared = build_argdefs(nodes[0])
            rest = nodes[1:]

        if any(node.name == FUNC_TAG for node in rest):
            for node in rest:
                if node.name != FUNC_TAG:
                    raise error_multiple_roots("a document of <func> elements", node.span)
                self._compile_func(node, shared)
            return

        if shared is None:
            raise error_missing_arglist(nodes[0].span)
        if not rest:
            raise error_missing_root("document", nodes[0].span)
        if len(rest) > 1:
            raise error_multiple_roots("document", rest[1].span)
        self._add(FunctionEntry(build(rest[0], shared), shared))

    def _compile_func(self, node: GenericNode, shared: Optional[ArgDefs]) -> None:
        for key in node.attributes:
            if key != "name":
                raise error_unexpected_attribute(key, FUNC_TAG, node.span)

        name = node.get("name")
        if name is not None:
            name = name.strip()
            if not is_identifier(name):
                raise error_invalid_function_name(name, node.span)
            if name in self._by_name:
                raise error_duplicate_function_name(name, node.span)

        body = node.children
        argdefs = shared
        if body and body[0].name == ARGLIST_TAG:
            argdefs = build_argdefs(body[0])
            body = body[1:]
        if argdefs is None:
            raise error_missing_argument_table(name or f"#{len(self.functions)}", node.span)

        context = f"<func name=\"{name}\">" if name else "<func>"
        if not body:
            raise error_missing_root(context, node.span)
        if len(body) > 1:
            raise error_multiple_roots(context, body[1].span)

        self._add(FunctionEntry(build(body[0], argdefs), argdefs, name))

    def _add(self, entry: FunctionEntry) -> None:
        entry.index = len(self.functions)
        self.functions.append(entry)
        if entry.name is not None:
            self._by_name[entry.name] = entry

    def _attach_source_line(self, exc: XmlFuncError) -> None:
        """Show the original (unprepared) line in the diagnostic."""
        span = exc.diagnostic.span
        if span is not None:
            line = source_line(self.text, span.start.line)
            if line is not None:
                exc.diagnostic.source_line = line

    # =========================================================================
    # Calling
    # =========================================================================

    def function(self, selector: Selector = None) -> FunctionEntry:
        """
        Select a function by index or name; with no selector the document
        must hold exactly one function.

        Raises:
            CallError: for an out-of-range index, unknown name or ambiguous call
        """
        if selector is None:
            if len(self.functions) != 1:
                raise error_ambiguous_function(len(self.functions))
            return self.functions[0]

        if isinstance(selector, str):
            key = selector.lower() if self.options.normalize_case else selector
            entry = self._by_name.get(key)
            if entry is None:
                raise error_unknown_function(selector)
            return entry

        if isinstance(selector, bool) or not isinstance(selector, int):
            raise TypeError(f"function selector must be an int or str, got {type(selector).__name__}")
        if not 0 <= selector < len(self.functions):
            raise error_function_index_range(selector, len(self.functions))
        return self.functions[selector]

    def eval(self, selector_or_args: Union[Selector, Sequence[Any]],
             args: Optional[Sequence[Any]] = None) -> Number:
        """
        Evaluate a function.

        Forms:
            eval(args)            # the document's only function
            eval(index, args)
            eval(name, args)
        """
        if args is None:
            return self.function(None).eval(selector_or_args)
        return self.function(selector_or_args).eval(args)

    __call__ = eval

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.functions if entry.name is not None]

    def __len__(self) -> int:
        return len(self.functions)

    def __iter__(self) -> Iterator[FunctionEntry]:
        return iter(self.functions)

    def describe(self) -> List[Dict[str, Any]]:
        """JSON-ready description of every function."""
        return [entry.describe() for entry in self.functions]

    def __repr__(self) -> str:
        source = self.filename or "<string>"
        return f"XmlFunc({source!r}, functions={[entry.label for entry in self.functions]!r})"
