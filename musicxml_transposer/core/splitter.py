"""
Structural splitter - break a partwise score into header, parts and measures.

The pieces are kept as raw source text so that a score can be rebuilt
byte for byte, or rebuilt with each measure replaced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import logging

from musicxml_transposer.core.events import MarkupEventPass, OpenElement, split_preamble

logger = logging.getLogger(__name__)


@dataclass
class Part:
    """One part of a partwise score, kept as raw text."""

    id: str
    open_tag: str = ""
    measures: List[str] = field(default_factory=list)
    gaps: List[str] = field(default_factory=list)  # text before each measure
    leading: str = ""  # text between the previous part and this one
    trailer: str = ""  # text between the last measure and the closing tag
    close_tag: str = ""

    @property
    def measure_count(self) -> int:
        return len(self.measures)

    def reassemble(
        self,
        measures: Optional[List[str]] = None,
        gaps: Optional[List[str]] = None,
    ) -> str:
        """Rebuild the part, optionally with replacement measures and gaps."""
        measures = self.measures if measures is None else measures
        gaps = self.gaps if gaps is None else gaps
        body = "".join(gap + measure for gap, measure in zip(gaps, measures))
        return f"{self.leading}{self.open_tag}{body}{self.trailer}{self.close_tag}"


@dataclass
class Document:
    """A partwise score split into header, parts and footer."""

    header: str = ""
    parts: List[Part] = field(default_factory=list)
    footer: str = ""
    preamble: str = ""  # declaration and DOCTYPE, also the start of `header`

    @property
    def measure_count(self) -> int:
        return sum(part.measure_count for part in self.parts)

    def reassemble(self, transform: Optional[Callable[[str], str]] = None) -> str:
        """
        Rebuild the document.

        Args:
            transform: Optional function applied to every measure's text

        Returns:
            The document text; identical to the input without a transform
        """
        parts = []
        for part in self.parts:
            measures = None
            if transform is not None:
                measures = [transform(measure) for measure in part.measures]
            parts.append(part.reassemble(measures))
        return self.header + "".join(parts) + self.footer


class StructuralSplitter(MarkupEventPass):
    """
    Split one document into a `Document`.

    `part` is recognized only as a direct child of the root element and
    `measure` only as a direct child of such a part. An instance splits
    exactly one document.
    """

    def __init__(self):
        super().__init__()
        self._preamble = ""
        self._document = Document()
        self._part: Optional[Part] = None
        self._mark = 0  # end of the last part/measure consumed
        self._measure_start: Optional[int] = None
        self._header_done = False

    def split(self, text: str) -> Document:
        """
        Split a document.

        Raises:
            ParseError: If the text is not well-formed
        """
        self._preamble, body = split_preamble(text)
        self._document.preamble = self._preamble
        self._run(body, preamble=self._preamble)

        logger.debug(
            f"Split document into {len(self._document.parts)} part(s), "
            f"{self._document.measure_count} measure(s)"
        )
        return self._document

    def _finish_header(self, end: int) -> None:
        self._document.header = self.source_slice(0, end)
        self._header_done = True
        self._mark = end

    def on_start(self, element: OpenElement, before: str, tag: str) -> None:
        if element.name == "part" and self.depth == 2:
            if not self._header_done:
                self._finish_header(element.start)
            self._part = Part(
                id=element.attributes.get("id", ""),
                open_tag=tag,
                leading=self.source_slice(self._mark, element.start),
            )
            self._mark = element.end

        elif element.name == "measure" and self.depth == 3 and self._part is not None:
            self._part.gaps.append(self.source_slice(self._mark, element.start))
            self._measure_start = element.start

    def on_end(self, element: OpenElement, before: str, tag: str) -> None:
        end = self.position
        tag_start = end - len(tag.encode("utf-8"))

        if element.name == "measure" and self.depth == 2 and self._measure_start is not None:
            self._part.measures.append(self.source_slice(self._measure_start, end))
            self._measure_start = None
            self._mark = end

        elif element.name == "part" and self.depth == 1 and self._part is not None:
            self._part.trailer = self.source_slice(self._mark, tag_start)
            self._part.close_tag = tag
            self._document.parts.append(self._part)
            self._part = None
            self._mark = end

        elif self.depth == 0:
            if not self._header_done:
                self._finish_header(tag_start)
            self._document.footer = self.source_slice(self._mark, end)

    def on_tail(self, text: str) -> None:
        self._document.footer += text


def split_document(text: str) -> Document:
    """Split a partwise score into header, parts and raw measures."""
    return StructuralSplitter().split(text)
