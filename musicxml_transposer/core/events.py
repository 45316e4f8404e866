"""
Event pass over a MusicXML document.

Wraps the expat parser so that subclasses receive element-open, text
and element-close callbacks together with the exact source text of each
tag and of everything between tags. Output built from those raw slices
is byte-identical to the input wherever nothing is rewritten.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from xml.parsers import expat
import logging

from musicxml_transposer.core.errors import ParseError

logger = logging.getLogger(__name__)


# BOM, XML declaration, leading comments/PIs and a DOCTYPE (with optional
# internal subset), plus the whitespace that follows them.
PREAMBLE_PATTERN = re.compile(
    r"\A\ufeff?\s*"
    r"(?:<\?xml\b.*?\?>\s*)?"
    r"(?:(?:<!--.*?-->|<\?.*?\?>)\s*)*"
    r"(?:<!DOCTYPE\b[^\[>]*(?:\[.*?\])?\s*>\s*)?",
    re.DOTALL,
)

START_TAG_PATTERN = re.compile(
    rb"<[^\s/>]+(?:\s+[^\s=/>]+\s*=\s*(?:\"[^\"]*\"|'[^']*'))*\s*/?>"
)
END_TAG_PATTERN = re.compile(rb"</[^>]*>")


def split_preamble(text: str) -> Tuple[str, str]:
    """
    Separate the declaration/DOCTYPE preamble from the document body.

    Returns:
        Tuple of (preamble, body); preamble + body == text
    """
    match = PREAMBLE_PATTERN.match(text)
    end = match.end() if match else 0
    return text[:end], text[end:]


@dataclass
class OpenElement:
    """An element on the context stack."""
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    self_closing: bool = False
    start: int = 0  # byte offset of '<'
    end: int = 0  # byte offset just past the opening tag


class MarkupEventPass:
    """
    Base class for a single pass over one document.

    Subclasses override `on_start`, `on_text`, `on_end` and `on_tail`.
    An instance runs exactly once; all scratch state belongs to it.
    """

    def __init__(self):
        self._data = b""
        self._pos = 0
        self._parser = None
        self._used = False
        self.stack: List[OpenElement] = []

    # -- callbacks -----------------------------------------------------

    def on_start(self, element: OpenElement, before: str, tag: str) -> None:
        """
        An element opened.

        Args:
            element: The element, already pushed on the stack
            before: Source text between the previous tag and this one
            tag: Source text of the opening tag
        """

    def on_text(self, text: str) -> None:
        """Decoded character data inside the innermost open element."""

    def on_end(self, element: OpenElement, before: str, tag: str) -> None:
        """
        An element closed.

        Args:
            element: The element, already popped from the stack
            before: Source text between the previous tag and this one
            tag: Source text of the closing tag ('' for an empty-element tag)
        """

    def on_tail(self, text: str) -> None:
        """Source text after the root element's closing tag."""

    # -- helpers for subclasses ------------------------------------------

    @property
    def parent(self) -> Optional[OpenElement]:
        """Element enclosing the innermost open element."""
        if len(self.stack) < 2:
            return None
        return self.stack[-2]

    @property
    def depth(self) -> int:
        return len(self.stack)

    @property
    def position(self) -> int:
        """Byte offset up to which the source has been consumed."""
        return self._pos

    def source_slice(self, start: int, end: int) -> str:
        """Source text between two byte offsets of the parsed body."""
        return self._data[start:end].decode("utf-8")

    # -- driver ----------------------------------------------------------

    def _run(self, body: str, preamble: str = "") -> None:
        """
        Feed a document through expat.

        The preamble is parsed too, so entities declared in an internal
        DOCTYPE subset resolve, but callbacks only see the body.

        Raises:
            ParseError: If the document is not well-formed
            RuntimeError: If this instance has already run
        """
        if self._used:
            raise RuntimeError(
                f"{type(self).__name__} instances are single use; create a new one"
            )
        self._used = True

        head = preamble.encode("utf-8")
        self._data = head + body.encode("utf-8")
        self._pos = len(head)

        # The text is already decoded; ignore any declared encoding
        parser = expat.ParserCreate("UTF-8")
        parser.StartElementHandler = self._handle_start
        parser.EndElementHandler = self._handle_end
        parser.CharacterDataHandler = self._handle_text
        self._parser = parser

        try:
            parser.Parse(self._data, True)
        except expat.ExpatError as e:
            line = e.lineno
            column = e.offset + 1
            raise ParseError(
                f"Malformed MusicXML at line {line}, column {column}: "
                f"{expat.ErrorString(e.code)}",
                line=line,
                column=column,
            ) from e
        finally:
            self._parser = None

        self.on_tail(self.source_slice(self._pos, len(self._data)))

    def _handle_start(self, name, attributes):
        start = self._parser.CurrentByteIndex
        match = START_TAG_PATTERN.match(self._data, start)
        if match is None:
            raise ParseError(f"Unreadable opening tag for <{name}> at byte {start}")

        end = match.end()
        before = self.source_slice(self._pos, start)
        tag = self.source_slice(start, end)
        self._pos = end

        element = OpenElement(
            name=name,
            attributes=dict(attributes),
            self_closing=tag.endswith("/>"),
            start=start,
            end=end,
        )
        self.stack.append(element)
        self.on_start(element, before, tag)

    def _handle_end(self, name):
        element = self.stack.pop()

        if element.self_closing:
            self.on_end(element, "", "")
            return

        start = self._parser.CurrentByteIndex
        match = END_TAG_PATTERN.match(self._data, start)
        if match is None:
            raise ParseError(f"Unreadable closing tag for <{name}> at byte {start}")

        before = self.source_slice(self._pos, start)
        tag = self.source_slice(start, match.end())
        self._pos = match.end()
        self.on_end(element, before, tag)

    def _handle_text(self, data):
        self.on_text(data)
