"""
Structural parser for the xmlfunc tag dialect.

Converts a tag token stream into generic attributed trees (`GenericNode`):
a tag name, a mapping of attribute keys to string values, and an ordered
list of child nodes. The parser knows nothing about operators; the
expression builder interprets the generic trees.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .lexer import Lexer
from .tokens import Token, TokenType, SourceSpan, describe_token
from .errors import (
    error_unterminated_tag,
    error_missing_closing_tag,
    error_mismatched_closing_tag,
    error_unexpected_closing_tag,
    error_duplicate_attribute,
    error_malformed_attribute,
    error_expected_tag_name,
    error_closing_tag_attributes,
)


@dataclass
class GenericNode:
    """A parsed tag with its attributes and child tags."""
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["GenericNode"] = field(default_factory=list)
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get an attribute value."""
        return self.attributes.get(key, default)

    def to_markup(self) -> str:
        """Render the node back to compact tag markup."""
        attrs = "".join(f' {key}="{value}"' for key, value in self.attributes.items())
        if not self.children:
            return f"<{self.name}{attrs}/>"
        body = "".join(child.to_markup() for child in self.children)
        return f"<{self.name}{attrs}>{body}</{self.name}>"


class TagTree:
    """
    Recursive descent parser producing `GenericNode` trees.

    Each call to `next_node()` consumes one complete top-level element and
    returns it, or returns None once only whitespace remains.

    Usage:
        tree = TagTree(source)
        for node in tree:
            process(node)
    """

    def __init__(self, source: str, filename: Optional[str] = None,
                 allow_unquoted_values: bool = False):
        self.lexer = Lexer(source, filename, allow_unquoted_values)
        self.filename = filename

    def _advance(self) -> Token:
        """Consume and return the next token."""
        return self.lexer.next_token()

    def _source_line(self, token: Token) -> Optional[str]:
        return self.lexer.get_source_line(token.span.start.line)

    def _span_from(self, start: Token, end: Token) -> SourceSpan:
        return SourceSpan(start.span.start, end.span.end)

    def next_node(self) -> Optional[GenericNode]:
        """Parse and return the next top-level element, or None at end of input."""
        token = self._advance()
        if token.type == TokenType.EOF:
            return None
        if token.type == TokenType.END_TAG_OPEN:
            name = self._advance()
            label = name.value if name.type == TokenType.NAME else ""
            raise error_unexpected_closing_tag(label, self._span_from(token, name), self._source_line(token))
        return self._parse_element(token)

    def __iter__(self) -> Iterator[GenericNode]:
        while True:
            node = self.next_node()
            if node is None:
                break
            yield node

    def _parse_element(self, open_token: Token) -> GenericNode:
        """Parse an element whose '<' has just been consumed."""
        name_token = self._advance()
        if name_token.type != TokenType.NAME:
            raise error_expected_tag_name(
                describe_token(name_token), name_token.span, self._source_line(name_token)
            )
        name = name_token.value
        attributes, token = self._parse_attributes(name, open_token)
        if token.type == TokenType.EMPTY_TAG_CLOSE:
            return GenericNode(name, attributes, [], self._span_from(open_token, token))

        children: List[GenericNode] = []
        while True:
            token = self._advance()
            if token.type == TokenType.TAG_OPEN:
                children.append(self._parse_element(token))
            elif token.type == TokenType.END_TAG_OPEN:
                end = self._parse_closing_tag(name, token)
                return GenericNode(name, attributes, children, self._span_from(open_token, end))
            else:  # EOF; content errors are raised by the lexer
                raise error_missing_closing_tag(
                    name, self._span_from(open_token, name_token), self._source_line(open_token)
                )

    def _parse_attributes(self, tag: str, open_token: Token) -> Tuple[Dict[str, str], Token]:
        """Parse key="value" pairs; returns them with the closing '>' or '/>' token."""
        attributes: Dict[str, str] = {}
        while True:
            token = self._advance()
            if token.type in (TokenType.TAG_CLOSE, TokenType.EMPTY_TAG_CLOSE):
                return attributes, token
            if token.type == TokenType.EOF:
                raise error_unterminated_tag(tag, self._span_from(open_token, token), self._source_line(open_token))
            if token.type != TokenType.NAME:
                raise error_malformed_attribute(
                    f"expected attribute name, found {describe_token(token)}",
                    tag, token.span, self._source_line(token)
                )

            key = token.value
            equals = self._advance()
            if equals.type != TokenType.EQUALS:
                raise error_malformed_attribute(
                    f"attribute '{key}' is missing '='", tag, equals.span, self._source_line(equals)
                )
            value = self._advance()
            if value.type == TokenType.EOF:
                raise error_unterminated_tag(tag, self._span_from(open_token, value), self._source_line(open_token))
            if value.type not in (TokenType.STRING, TokenType.VALUE):
                raise error_malformed_attribute(
                    f"attribute '{key}' is missing value", tag, value.span, self._source_line(value)
                )
            if key in attributes:
                raise error_duplicate_attribute(key, tag, self._span_from(token, value), self._source_line(token))
            attributes[key] = value.value

    def _parse_closing_tag(self, name: str, start: Token) -> Token:
        """Parse '</name>' for the element `name`; returns the final '>' token."""
        name_token = self._advance()
        if name_token.type != TokenType.NAME:
            raise error_expected_tag_name(
                describe_token(name_token), name_token.span, self._source_line(name_token)
            )
        if name_token.value != name:
            raise error_mismatched_closing_tag(
                name, name_token.value, self._span_from(start, name_token), self._source_line(start)
            )
        end = self._advance()
        if end.type == TokenType.TAG_CLOSE:
            return end
        if end.type == TokenType.EOF:
            raise error_unterminated_tag(f"/{name}", self._span_from(start, end), self._source_line(start))
        raise error_closing_tag_attributes(name, self._span_from(start, end), self._source_line(start))


def parse_document(source: str, filename: Optional[str] = None,
                   allow_unquoted_values: bool = False) -> List[GenericNode]:
    """
    Convenience function to parse every top-level element in source.

    Args:
        source: Prepared source text (declarations and comments removed)
        filename: Optional filename for error messages
        allow_unquoted_values: Accept unquoted attribute values

    Returns:
        The top-level nodes in document order

    Raises:
        StructuralError: If the text is not well-formed
    """
    return list(TagTree(source, filename, allow_unquoted_values))
