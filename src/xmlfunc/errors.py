"""
xmlfunc exceptions and error diagnostics.

Error code ranges:
- E0xx: Structural errors (malformed tag syntax)
- E1xx: Declaration errors (argument tables, function names)
- E2xx: Shape errors (operators, operands, literals)
- E3xx: Call errors (argument vectors, function selectors)
- E4xx: Evaluation errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity = ErrorSeverity.ERROR
    span: Optional[SourceSpan] = None   # None for call-time errors
    source_line: Optional[str] = None   # The actual line of source text
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        if self.span is not None:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        data = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "hints": self.hints,
        }
        if self.span is not None:
            data["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return data


class XmlFuncError(Exception):
    """Base exception for xmlfunc errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def span(self) -> Optional[SourceSpan]:
        return self.diagnostic.span

    def __str__(self) -> str:
        return self.diagnostic.format()


class StructuralError(XmlFuncError):
    """Malformed tag syntax (E0xx)."""
    pass


class DeclarationError(XmlFuncError):
    """Malformed argument or function declarations (E1xx)."""
    pass


class ShapeError(XmlFuncError):
    """Malformed operator trees (E2xx)."""
    pass


class CallError(XmlFuncError):
    """Bad arguments or function selector at call time (E3xx)."""
    pass


class EvaluationError(XmlFuncError):
    """Arithmetic with no defined result (E4xx)."""
    pass


def _diag(code: str, message: str, span: Optional[SourceSpan] = None,
          source_line: Optional[str] = None, hints: Optional[List[str]] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )


# --- Structural error codes ---

def error_content_outside_tag(text: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E001: Non-whitespace content outside any tag."""
    return StructuralError(_diag(
        "E001", f"content outside any tag: '{text}'", span, source_line,
        hints=["all content must be enclosed in tags"],
    ))


def error_unterminated_value(span: SourceSpan, source_line: str = None) -> StructuralError:
    """E002: Quoted attribute value without its closing quote."""
    return StructuralError(_diag(
        "E002", "unterminated quoted attribute value", span, source_line,
        hints=["attribute values must be closed with the same quote that opened them"],
    ))


def error_stray_character(char: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E003: Character that cannot appear at this point in a tag."""
    return StructuralError(_diag("E003", f"unexpected '{char}' inside tag", span, source_line))


def error_unterminated_tag(name: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E004: Tag opened with '<' but never closed with '>' or '/>'."""
    return StructuralError(_diag("E004", f"unterminated tag <{name}>", span, source_line))


def error_missing_closing_tag(name: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E005: Element body runs to end of input."""
    return StructuralError(_diag("E005", f"missing closing tag </{name}>", span, source_line))


def error_mismatched_closing_tag(expected: str, found: str, span: SourceSpan,
                                 source_line: str = None) -> StructuralError:
    """E006: Closing tag does not match the open element."""
    return StructuralError(_diag(
        "E006", f"mismatched closing tag: expected </{expected}>, found </{found}>",
        span, source_line,
    ))


def error_unexpected_closing_tag(name: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E007: Closing tag with no open element."""
    return StructuralError(_diag("E007", f"closing tag </{name}> has no matching opening tag", span, source_line))


def error_duplicate_attribute(key: str, tag: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E008: Attribute key given twice in one tag."""
    return StructuralError(_diag(
        "E008", f"cannot specify more than one '{key}' attribute in <{tag}>", span, source_line,
    ))


def error_malformed_attribute(detail: str, tag: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E009: Attribute that is not key="value"."""
    return StructuralError(_diag("E009", f"malformed attribute in <{tag}>: {detail}", span, source_line))


def error_unterminated_markup(start: str, end: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E010: Declaration or comment without its end delimiter."""
    return StructuralError(_diag("E010", f"{start} is missing closing {end}", span, source_line))


def error_expected_tag_name(found: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E011: '<' or '</' not followed by a tag name."""
    return StructuralError(_diag(
        "E011", f"expected tag name, found {found}", span, source_line,
        hints=["tag names start with a letter followed by letters or digits"],
    ))


def error_closing_tag_attributes(name: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E012: Closing tag carrying attributes or other content."""
    return StructuralError(_diag("E012", f"closing tag </{name}> cannot contain attributes", span, source_line))


def error_unexpected_markup(text: str, span: SourceSpan, source_line: str = None) -> StructuralError:
    """E013: Declaration, comment or other '<!'/'<?' markup left in the input."""
    return StructuralError(_diag(
        "E013", f"unsupported markup '{text}'", span, source_line,
        hints=["declarations and comments are removed only when comment stripping is enabled"],
    ))


# --- Declaration error codes ---

def error_missing_arglist(span: Optional[SourceSpan] = None) -> DeclarationError:
    """E101: Document does not start with an argument table."""
    return DeclarationError(_diag(
        "E101", "missing valid <arglist>", span,
        hints=["a single-function document starts with <arglist>...</arglist>"],
    ))


def error_empty_arglist(span: SourceSpan) -> DeclarationError:
    """E102: Argument table without entries."""
    return DeclarationError(_diag("E102", "<arglist> contains no <arg> entries", span))


def error_invalid_arglist_entry(name: str, span: SourceSpan) -> DeclarationError:
    """E103: Child of <arglist> that is not <arg>."""
    return DeclarationError(_diag(
        "E103", f"<arglist> may only contain <arg> elements, found <{name}>", span,
    ))


def error_unknown_argument_type(type_name: str, span: SourceSpan) -> DeclarationError:
    """E104: Unknown type keyword."""
    return DeclarationError(_diag(
        "E104", f"unknown argument type: '{type_name}'", span,
        hints=["valid types: double, float, real, integer, int"],
    ))


def error_duplicate_argument_name(name: str, span: Optional[SourceSpan] = None) -> DeclarationError:
    """E105: Argument name declared twice in one table."""
    return DeclarationError(_diag("E105", f"duplicate argument name '{name}'", span))


def error_invalid_argument_declaration(detail: str, span: Optional[SourceSpan] = None) -> DeclarationError:
    """E106: Malformed <arg> declaration."""
    return DeclarationError(_diag("E106", f"invalid <arg> declaration: {detail}", span))


def error_duplicate_function_name(name: str, span: Optional[SourceSpan] = None) -> DeclarationError:
    """E107: Function name declared twice."""
    return DeclarationError(_diag("E107", f"duplicate function name '{name}'", span))


def error_missing_argument_table(function: str, span: Optional[SourceSpan] = None) -> DeclarationError:
    """E108: Function with neither a private nor a shared argument table."""
    return DeclarationError(_diag(
        "E108", f"function {function} has no argument table", span,
        hints=["declare a shared <arglist> before the first <func>, or a private one as its first child"],
    ))


def error_invalid_function_name(name: str, span: Optional[SourceSpan] = None) -> DeclarationError:
    """E109: Function name that is not an identifier."""
    return DeclarationError(_diag("E109", f"invalid function name '{name}'", span))


# --- Shape error codes ---

def error_unrecognized_operator(name: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E201: Unknown operator tag."""
    return ShapeError(_diag("E201", f"unrecognized operator <{name}>", span))


def error_too_few_operands(operator: str, expected: str, found: int,
                           span: Optional[SourceSpan] = None) -> ShapeError:
    """E202: Operator is missing operands."""
    return ShapeError(_diag(
        "E202", f"too few operands for <{operator}>: expected {expected}, found {found}", span,
    ))


def error_too_many_operands(operator: str, expected: str, found: int,
                            span: Optional[SourceSpan] = None) -> ShapeError:
    """E203: Operator has more operand sources than its arity."""
    return ShapeError(_diag(
        "E203", f"too many operands for <{operator}>: expected {expected}, found {found}", span,
        hints=["an operand given as an attribute cannot also be given as a child element"],
    ))


def error_invalid_literal(kind: str, text: str, context: str,
                          span: Optional[SourceSpan] = None) -> ShapeError:
    """E204: Text that is not a valid literal or name."""
    return ShapeError(_diag("E204", f"invalid {kind} ({text}) in {context}", span))


def error_extraneous_data(extra: str, after: str, context: str,
                          span: Optional[SourceSpan] = None) -> ShapeError:
    """E205: Trailing text after a literal or name."""
    return ShapeError(_diag("E205", f"extraneous data ({extra}) following {after} in {context}", span))


def error_unknown_argument_name(name: str, context: str,
                                span: Optional[SourceSpan] = None) -> ShapeError:
    """E206: Name with no matching argument declaration."""
    return ShapeError(_diag("E206", f"unrecognized argument name ({name}) in {context}", span))


def error_argument_index_range(index: int, count: int,
                               span: Optional[SourceSpan] = None) -> ShapeError:
    """E207: Argument index outside the declared table."""
    if index < 0:
        message = f"argument index {index} cannot be negative"
    else:
        message = f"argument index {index} exceeds max value of {count - 1}"
    return ShapeError(_diag("E207", message, span))


def error_unexpected_attribute(key: str, tag: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E208: Attribute the operator does not accept."""
    return ShapeError(_diag("E208", f"unexpected attribute '{key}' in <{tag}>", span))


def error_invalid_constant(tag: str, detail: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E209: Malformed constant element."""
    return ShapeError(_diag("E209", f"<{tag}> {detail}", span))


def error_invalid_argument_reference(detail: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E210: Malformed <arg> reference."""
    return ShapeError(_diag("E210", f"<arg> {detail}", span))


def error_invalid_log_base(text: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E211: Log base that is not a positive number other than 1."""
    return ShapeError(_diag(
        "E211", f"invalid base value ({text}) for <log>", span,
        hints=["base for log must be a positive value other than 1"],
    ))


def error_markup_in_attribute(key: str, tag: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E212: Attribute operand containing tag markup."""
    return ShapeError(_diag(
        "E212", f"attribute '{key}' of <{tag}> cannot contain markup", span,
        hints=["nested operators must be given as child elements"],
    ))


def error_missing_root(context: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E213: Function without an expression."""
    return ShapeError(_diag("E213", f"missing valid root value element in {context}", span))


def error_multiple_roots(context: str, span: Optional[SourceSpan] = None) -> ShapeError:
    """E214: Function with more than one expression."""
    return ShapeError(_diag("E214", f"only one root value element allowed in {context}", span))


def error_nesting_too_deep(limit: int) -> ShapeError:
    """E215: Document nested deeper than the parser and builder can follow."""
    return ShapeError(_diag(
        "E215", f"document nesting is too deep (recursion limit {limit})",
        hints=["split deeply nested expressions into flatter add/mult operand lists"],
    ))


# --- Call error codes ---

def error_insufficient_arguments(needed: int, given: int) -> CallError:
    """E301: Argument vector shorter than the declared table."""
    return CallError(_diag(
        "E301", f"insufficient arguments passed to eval: need {needed}, only {given} provided",
    ))


def error_argument_type_mismatch(index: int, name: Optional[str]) -> CallError:
    """E302: Float value supplied for an integer argument."""
    label = f"argument {index}" if name is None else f"argument {index} ({name})"
    return CallError(_diag(
        "E302", f"type mismatch: {label} is declared integer but was given a float", None,
        hints=["float values are never truncated to integer arguments"],
    ))


def error_unsupported_argument(index: int, type_name: str) -> CallError:
    """E303: Argument value that is not a number."""
    return CallError(_diag("E303", f"argument {index} has unsupported type '{type_name}'"))


def error_function_index_range(index: int, count: int) -> CallError:
    """E304: Function index out of range."""
    return CallError(_diag("E304", f"function index {index} out of range (have {count} function(s))"))


def error_unknown_function(name: str) -> CallError:
    """E305: No function with this name."""
    return CallError(_diag("E305", f"unknown function '{name}'"))


def error_ambiguous_function(count: int) -> CallError:
    """E306: No selector given with several functions declared."""
    return CallError(_diag(
        "E306", f"no function selected but {count} functions are declared",
        hints=["pass a function index or name"],
    ))


def error_invalid_argument_vector(type_name: str) -> CallError:
    """E307: Arguments not given as a sequence."""
    return CallError(_diag(
        "E307", f"arguments must be a sequence of numbers, got '{type_name}'",
        hints=["wrap a single argument in a list: eval([x])"],
    ))


# --- Evaluation error codes ---

def error_integer_division_by_zero(operator: str) -> EvaluationError:
    """E401: Integer division or modulo with a zero divisor."""
    return EvaluationError(_diag("E401", f"integer division by zero in <{operator}>"))


def error_evaluation_too_deep(limit: int) -> EvaluationError:
    """E402: Expression nested deeper than evaluation can follow."""
    return EvaluationError(_diag("E402", f"expression nesting is too deep to evaluate (recursion limit {limit})"))
