"""
Source loading and preparation.

Documents are prepared in three steps before tokenizing:
loading (file or literal text), markup stripping (XML declarations and
comments) and case normalization. Stripping blanks markup in place so
line and column numbers in diagnostics still match the original text.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional, Tuple, Union

from .options import ParseOptions
from .tokens import span_at
from .errors import error_unterminated_markup

logger = logging.getLogger(__name__)


# (start delimiter, end delimiter) pairs removed by strip_markup
MARKUP_DELIMITERS = (
    ("<?xml", "?>"),
    ("<!--", "-->"),
)

# Start delimiters match case-insensitively (<?XML is a declaration too)
_MARKUP_START_RE = re.compile(
    "|".join(re.escape(start) for start, _ in MARKUP_DELIMITERS), re.IGNORECASE
)
_MARKUP_END = {start: end for start, end in MARKUP_DELIMITERS}


def load_source(src: Union[str, Path]) -> Tuple[str, Optional[str]]:
    """
    Resolve a document source.

    Args:
        src: A path to a readable file, or the document text itself.
            Path objects are always read as files.

    Returns:
        (text, filename) where filename is None for literal text
    """
    if isinstance(src, Path):
        return src.read_text(encoding="utf-8"), str(src)
    if "<" not in src and os.path.isfile(src) and os.access(src, os.R_OK):
        logger.debug("reading document from %s", src)
        with open(src, "r", encoding="utf-8") as fp:
            return fp.read(), src
    return src, None


def source_line(text: str, line: int) -> Optional[str]:
    """Get a specific line of text (1-indexed)."""
    lines = text.split("\n")
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return None


def _blank(text: str) -> str:
    return "".join(c if c == "\n" else " " for c in text)


def strip_markup(text: str, filename: Optional[str] = None) -> str:
    """
    Replace XML declarations and comments with whitespace.

    Newlines inside removed markup are kept, so every remaining character
    stays at its original line and column.

    Raises:
        StructuralError: if a start delimiter has no matching end delimiter
    """
    pieces = []
    pos = 0
    while True:
        match = _MARKUP_START_RE.search(text, pos)
        if match is None:
            break
        begin, start = match.start(), match.group()
        end = _MARKUP_END[start.lower()]
        close = text.find(end, begin + len(start))
        if close < 0:
            span = span_at(text, begin, begin + len(start), filename)
            raise error_unterminated_markup(start, end, span, source_line(text, span.start.line))
        stop = close + len(end)
        pieces.append(text[pos:begin])
        pieces.append(_blank(text[begin:stop]))
        pos = stop
    pieces.append(text[pos:])
    return "".join(pieces)


def normalize(text: str) -> str:
    """Lower-case a document so tag names and keywords match case-insensitively."""
    return text.lower()


def prepare_source(text: str, options: Optional[ParseOptions] = None,
                   filename: Optional[str] = None) -> str:
    """Apply the preparation steps selected by `options` to document text."""
    options = options or ParseOptions()
    if options.strip_comments:
        text = strip_markup(text, filename)
    if options.normalize_case:
        text = normalize(text)
    return text
