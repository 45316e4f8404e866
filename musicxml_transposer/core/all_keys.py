"""
All-keys generator - fan one melody out into twelve transpositions.

Two variants:
- `generate` returns twelve independent documents, one per key.
- `generate_combined` returns one score in which every part plays its
  measures once per key, renumbered, with a double barline between keys
  and a final barline at the very end.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, TypeVar, Union
import logging

from musicxml_transposer.core.keys import KeyOrder, resolve_key_name
from musicxml_transposer.core.pitch import KeySignature, transpose_fifths
from musicxml_transposer.core.rewriter import StreamingRewriter
from musicxml_transposer.core.splitter import split_document

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


FINAL_BARLINE = "light-heavy"
DOUBLE_BARLINE = "light-light"

BARLINE_PATTERN = re.compile(r"\s*<barline(?=[\s/>])[^>]*?(?:/>|>.*?</barline>)", re.DOTALL)
LOCATION_PATTERN = re.compile(r"""\blocation\s*=\s*(["'])([^"']*)\1""")
MEASURE_NUMBER_PATTERN = re.compile(r"""(<measure\b[^>]*?(?<![\w-])number\s*=\s*)(["'])[^"']*\2""")
CHILD_INDENT_PATTERN = re.compile(r"<measure\b[^>]*>(\s*)")
TRAILING_SPACE = re.compile(r"\s*\Z")


@dataclass(frozen=True)
class TransposedKey:
    """One transposed copy of a document."""
    label: str
    semitones: int
    document: str


def transposed_key_label(source_key: Optional[KeySignature], semitones: int) -> str:
    """
    Label for the key a document lands in after transposition.

    Documents without a key signature are labeled as if in C major.
    """
    if source_key is None:
        logger.debug("No key signature found, labeling from C major")
        source_key = KeySignature()
    return resolve_key_name(transpose_fifths(source_key.fifths, semitones), source_key.mode)


def rewrite_measure(measure: str, semitones: int, preamble: str = "") -> str:
    """
    Transpose one raw measure.

    The document's preamble is parsed along with the measure so that
    entities declared in its DOCTYPE resolve; it is not part of the result.
    """
    return StreamingRewriter(semitones).rewrite(preamble + measure)[len(preamble):]


def renumber_measure(measure: str, number: int) -> str:
    """Set the `number` attribute of a measure's opening tag."""
    return MEASURE_NUMBER_PATTERN.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{number}{m.group(2)}",
        measure,
        count=1,
    )


def _is_right_barline(barline: str) -> bool:
    open_tag = barline[: barline.index(">") + 1]
    match = LOCATION_PATTERN.search(open_tag)
    return match is None or match.group(2) == "right"


def set_barline(measure: str, style: Optional[str]) -> str:
    """
    Replace a measure's right-hand barline.

    Args:
        measure: Raw measure text
        style: Bar style for a new right barline, or None for none

    Returns:
        The measure with right barlines removed and, if a style was
        given, a new one added as its last child
    """
    measure = BARLINE_PATTERN.sub(
        lambda m: "" if _is_right_barline(m.group()) else m.group(),
        measure,
    )
    if style is None:
        return measure

    barline = f'<barline location="right"><bar-style>{style}</bar-style></barline>'

    stripped = measure.rstrip()
    if stripped.endswith("/>") and "</measure>" not in measure:
        # <measure number="1"/>
        return f"{stripped[:-2].rstrip()}>{barline}</measure>{measure[len(stripped):]}"

    close = measure.rfind("</measure>")
    if close == -1:
        return measure

    indent_match = CHILD_INDENT_PATTERN.match(measure)
    indent = indent_match.group(1) if indent_match else ""
    position = close - len(TRAILING_SPACE.search(measure[:close]).group())
    return measure[:position] + indent + barline + measure[position:]


class AllKeysOrchestrator:
    """
    Generate a document in all twelve keys.

    Each key is an independent rewrite of the same input. With
    `max_workers` above 1 the rewrites run on a thread pool; results
    always come back in key order.
    """

    def __init__(
        self,
        key_order: Union[str, KeyOrder] = KeyOrder.CHROMATIC,
        max_workers: int = 1,
    ):
        """
        Args:
            key_order: "chromatic" or "circleOfFourths"
            max_workers: Parallel rewrites (1 = sequential)

        Raises:
            InputFormatError: If the key order is unknown
        """
        self.key_order = KeyOrder.from_name(key_order)
        self.max_workers = max(1, int(max_workers))

    @property
    def sequence(self) -> List[int]:
        """Semitone offsets in the order they are generated."""
        return self.key_order.semitones

    def _map(self, func: Callable[[T], R], items: Iterable[T]) -> List[R]:
        if self.max_workers == 1:
            return [func(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(func, items))

    def transpose_one(self, text: str, semitones: int) -> TransposedKey:
        """Transpose the whole document into one key."""
        rewriter = StreamingRewriter(semitones)
        document = rewriter.rewrite(text)
        label = transposed_key_label(rewriter.source_key, semitones)
        logger.debug(f"Generated {label} ({semitones:+d})")
        return TransposedKey(label=label, semitones=semitones, document=document)

    def generate(self, text: str) -> List[TransposedKey]:
        """
        Transpose a document into all twelve keys.

        Args:
            text: MusicXML document text

        Returns:
            Twelve TransposedKey records in key order

        Raises:
            ParseError: If the document is not well-formed
        """
        logger.info(f"Generating all keys in {self.key_order.value} order")
        return self._map(lambda s: self.transpose_one(text, s), self.sequence)

    def generate_combined(self, text: str) -> str:
        """
        Build one score holding the melody in all twelve keys.

        Every part repeats its measures once per key, in key order.
        Measures are renumbered consecutively; the last measure of each
        key gets a double barline and the last measure overall a final
        barline. Other right-hand barlines are removed.

        Raises:
            ParseError: If the document is not well-formed
        """
        document = split_document(text)
        sequence = self.sequence
        parts = []

        for part in document.parts:
            count = part.measure_count
            jobs = [(s, measure) for s in sequence for measure in part.measures]
            rewritten = self._map(
                lambda job: rewrite_measure(job[1], job[0], document.preamble), jobs
            )

            measures = []
            for index, measure in enumerate(rewritten):
                key_index, measure_index = divmod(index, count)
                measure = renumber_measure(measure, index + 1)

                if measure_index == count - 1:
                    last_key = key_index == len(sequence) - 1
                    measure = set_barline(measure, FINAL_BARLINE if last_key else DOUBLE_BARLINE)
                else:
                    measure = set_barline(measure, None)
                measures.append(measure)

            parts.append(part.reassemble(measures, part.gaps * len(sequence)))
            logger.debug(f"Part {part.id!r}: {count} measures -> {len(measures)}")

        return document.header + "".join(parts) + document.footer


def transpose_to_all_keys(
    text: str,
    key_order: Union[str, KeyOrder] = KeyOrder.CHROMATIC,
    max_workers: int = 1,
) -> List[TransposedKey]:
    """Transpose a document into all twelve keys as separate documents."""
    return AllKeysOrchestrator(key_order, max_workers).generate(text)


def transpose_to_all_keys_combined(
    text: str,
    key_order: Union[str, KeyOrder] = KeyOrder.CHROMATIC,
    max_workers: int = 1,
) -> str:
    """Transpose a document into all twelve keys within one score."""
    return AllKeysOrchestrator(key_order, max_workers).generate_combined(text)
