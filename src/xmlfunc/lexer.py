"""
Lexer for the xmlfunc tag dialect.

Converts source text into a stream of tag tokens for the structural parser.
The lexer is modal:
- Outside a tag only whitespace and '<' / '</' are accepted; any other
  content is a structural error.
- Inside a tag it produces names, '=', quoted values and the closing
  '>' / '/>' delimiters. '<', '>' and '/' inside quoted values are plain
  characters.
"""

from typing import List, Optional, Iterator
from .tokens import Token, TokenType, SourceLocation, SourceSpan
from .errors import (
    error_content_outside_tag,
    error_unterminated_value,
    error_stray_character,
    error_malformed_attribute,
    error_unexpected_markup,
)


QUOTES = "\"'"

# Characters allowed in an unquoted attribute value (permissive mode)
UNQUOTED_VALUE_CHARS = set(".-+")


def _is_name_start(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def _is_name_char(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


class Lexer:
    """
    Tokenizer for tagged function source.

    Usage:
        lexer = Lexer(source)
        tokens = lexer.tokenize()

    Or for streaming, as the structural parser does:
        lexer = Lexer(source)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None,
                 allow_unquoted_values: bool = False):
        self.source = source
        self.filename = filename
        self.allow_unquoted_values = allow_unquoted_values
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self.in_tag = False     # Between '<' and '>' / '/>'
        self._last_type: Optional[TokenType] = None
        self.tag_name = "tag"   # Name of the tag being scanned, for messages
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected and not self._is_at_end():
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_whitespace(self) -> None:
        while not self._is_at_end() and self._peek().isspace():
            self._advance()

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        self._last_type = token_type
        return Token(token_type, value, lexeme, self._span(start))

    def next_token(self) -> Token:
        """Scan and return the next token."""
        self._skip_whitespace()
        start = self._location()
        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, start, "")
        if self.in_tag:
            return self._scan_in_tag(start)
        return self._scan_content(start)

    def _scan_content(self, start: SourceLocation) -> Token:
        """Scan between tags, where only '<' may start a token."""
        if self._peek() == '<':
            self._advance()
            if self._peek() in '!?':
                while not self._is_at_end() and not self._peek().isspace() and self._peek() != '>':
                    self._advance()
                raise error_unexpected_markup(
                    self.source[start.offset:self.pos], self._span(start),
                    self.get_source_line(start.line)
                )
            self.in_tag = True
            if self._match('/'):
                return self._make_token(TokenType.END_TAG_OPEN, "</", start)
            return self._make_token(TokenType.TAG_OPEN, "<", start)

        while not self._is_at_end() and not self._peek().isspace() and self._peek() != '<':
            self._advance()
        raise error_content_outside_tag(
            self.source[start.offset:self.pos], self._span(start),
            self.get_source_line(start.line)
        )

    def _scan_in_tag(self, start: SourceLocation) -> Token:
        """Scan inside a tag."""
        ch = self._peek()

        if self._last_type == TokenType.EQUALS and ch not in QUOTES:
            return self._scan_unquoted_value(start)

        if ch == '>':
            self._advance()
            self.in_tag = False
            return self._make_token(TokenType.TAG_CLOSE, ">", start)
        if ch == '/':
            self._advance()
            if self._match('>'):
                self.in_tag = False
                return self._make_token(TokenType.EMPTY_TAG_CLOSE, "/>", start)
            raise error_stray_character('/', self._span(start), self.get_source_line(start.line))
        if ch == '=':
            self._advance()
            return self._make_token(TokenType.EQUALS, "=", start)
        if ch in QUOTES:
            return self._scan_quoted_value(start)
        if _is_name_start(ch):
            while _is_name_char(self._peek()):
                self._advance()
            name = self.source[start.offset:self.pos]
            if self._last_type in (TokenType.TAG_OPEN, TokenType.END_TAG_OPEN):
                self.tag_name = name
            return self._make_token(TokenType.NAME, name, start)

        self._advance()
        raise error_stray_character(ch, self._span(start), self.get_source_line(start.line))

    def _scan_quoted_value(self, start: SourceLocation) -> Token:
        """Scan a quoted attribute value; the closing quote must match."""
        quote = self._advance()
        while not self._is_at_end() and self._peek() != quote:
            self._advance()

        if self._is_at_end():
            raise error_unterminated_value(self._span(start), self.get_source_line(start.line))

        self._advance()  # consume closing quote
        value = self.source[start.offset + 1:self.pos - 1]
        return self._make_token(TokenType.STRING, value, start)

    def _scan_unquoted_value(self, start: SourceLocation) -> Token:
        """Scan an unquoted run of alphanumerics, '.', '-' and '+'."""
        if not self.allow_unquoted_values:
            raise error_malformed_attribute(
                "attribute value must be in quotes", self.tag_name, self._span(start),
                self.get_source_line(start.line)
            )
        while _is_name_char(self._peek()) or self._peek() in UNQUOTED_VALUE_CHARS:
            self._advance()
        if self.pos == start.offset:
            raise error_malformed_attribute(
                "attribute is missing value", self.tag_name, self._span(start),
                self.get_source_line(start.line)
            )
        value = self.source[start.offset:self.pos]
        return self._make_token(TokenType.VALUE, value, start)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source and return a list of tokens ending in EOF."""
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens (streaming mode)."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None,
             allow_unquoted_values: bool = False) -> List[Token]:
    """
    Convenience function to tokenize source text.

    Args:
        source: The source text to tokenize
        filename: Optional filename for error messages
        allow_unquoted_values: Accept unquoted attribute values

    Returns:
        List of tokens

    Raises:
        StructuralError: If tokenization fails
    """
    lexer = Lexer(source, filename, allow_unquoted_values)
    return lexer.tokenize()
