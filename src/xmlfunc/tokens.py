"""
Token types and source positions for the xmlfunc tag lexer.

Token categories follow the structural error code range:
- E0xx: Structural (lexer/parser) errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the tag lexer."""

    # --- Tag delimiters ---
    TAG_OPEN = auto()           # <
    END_TAG_OPEN = auto()       # </
    TAG_CLOSE = auto()          # >
    EMPTY_TAG_CLOSE = auto()    # />

    # --- Tag contents ---
    NAME = auto()               # tag name or attribute key
    EQUALS = auto()             # =
    STRING = auto()             # "value" or 'value'
    VALUE = auto()              # unquoted attribute value (permissive mode)

    # --- Special ---
    EOF = auto()                # end of input


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source text."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source text."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # Tag/attribute name or attribute value
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.NAME, TokenType.STRING, TokenType.VALUE):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Human-readable descriptions used in parser error messages
TOKEN_DESCRIPTIONS: dict[TokenType, str] = {
    TokenType.TAG_OPEN: "'<'",
    TokenType.END_TAG_OPEN: "'</'",
    TokenType.TAG_CLOSE: "'>'",
    TokenType.EMPTY_TAG_CLOSE: "'/>'",
    TokenType.NAME: "name",
    TokenType.EQUALS: "'='",
    TokenType.STRING: "quoted value",
    TokenType.VALUE: "value",
    TokenType.EOF: "end of input",
}


def describe_token(token: Token) -> str:
    """Describe a token for use in an error message."""
    if token.type in (TokenType.NAME, TokenType.STRING, TokenType.VALUE):
        return f"{TOKEN_DESCRIPTIONS[token.type]} '{token.value}'"
    return TOKEN_DESCRIPTIONS[token.type]


def location_at(text: str, offset: int, filename: Optional[str] = None) -> SourceLocation:
    """Compute the line/column location of a character offset in text."""
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return SourceLocation(line, offset - line_start + 1, offset, filename)


def span_at(text: str, start: int, end: int, filename: Optional[str] = None) -> SourceSpan:
    """Compute a span covering text[start:end]."""
    return SourceSpan(location_at(text, start, filename), location_at(text, end, filename))
