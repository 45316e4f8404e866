"""
Streaming rewriter - transpose a MusicXML document in one pass.

Walks the document's open/text/close events and rewrites only the
musically significant fields:

    note/pitch/{step, alter, octave}
    note/accidental
    harmony/root/{root-step, root-alter}
    harmony/bass/{bass-step, bass-alter}
    key/fifths

Every other byte of the input is copied through unchanged. `pitch`,
`root` and `bass` are buffered until they close, because their final
spelling depends on all of their fields together.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
import logging

from musicxml_transposer.core.events import MarkupEventPass, OpenElement, split_preamble
from musicxml_transposer.core.harmony import HARMONY_FIELDS, HarmonyRewriteState
from musicxml_transposer.core.intervals import parse_interval
from musicxml_transposer.core.pitch import (
    DEFAULT_ALTER,
    DEFAULT_OCTAVE,
    KeySignature,
    accidental_name,
    parse_int,
    transpose_fifths,
    transpose_pitch,
)

logger = logging.getLogger(__name__)


# Container -> leaf elements captured directly beneath it
CAPTURED_FIELDS: Dict[str, tuple] = {
    "pitch": ("step", "alter", "octave"),
    "root": HARMONY_FIELDS["root"],
    "bass": HARMONY_FIELDS["bass"],
    "key": ("fifths", "mode"),
}

BUFFERED_CONTAINERS = ("pitch", "root", "bass")

TRAILING_SPACE = re.compile(r"\s*\Z")

LEAF_MARKUP_PATTERN = re.compile(r"(<!--.*?-->|<\?.*?\?>)", re.DOTALL)


@dataclass
class CapturedField:
    """A leaf element whose text may be replaced."""

    name: str
    open_tag: str
    text_parts: List[str] = field(default_factory=list)
    raw_parts: List[str] = field(default_factory=list)
    close_tag: str = ""

    @property
    def text(self) -> str:
        return "".join(self.text_parts)

    @property
    def source(self) -> str:
        return self.open_tag + "".join(self.raw_parts) + self.close_tag

    def render(self, value: Optional[str] = None) -> str:
        """Serialize the element, with `value` as its text if given."""
        if value is None or self.text.strip() == value:
            return self.source

        if self.close_tag:
            return f"{self.open_tag}{self._replace_text(value)}{self.close_tag}"

        # <alter/> -> <alter>1</alter>
        open_tag = self.open_tag[:-2].rstrip() + ">"
        return f"{open_tag}{value}</{self.name}>"

    def _replace_text(self, value: str) -> str:
        """Raw content with the text run replaced; comments and PIs stay."""
        raw = "".join(self.raw_parts)
        # Even indices are character data, odd indices are markup
        segments = LEAF_MARKUP_PATTERN.split(raw)

        placed = False
        for index in range(0, len(segments), 2):
            segment = segments[index]
            stripped = segment.strip()
            if not stripped:
                continue
            start = segment.index(stripped)
            lead, trail = segment[:start], segment[start + len(stripped):]
            segments[index] = lead + ("" if placed else value) + trail
            placed = True

        if placed:
            return "".join(segments)

        if "<![CDATA[" not in raw:
            return raw + value
        # Text held only in CDATA
        stripped = raw.strip()
        start = raw.index(stripped)
        return raw[:start] + value + raw[start + len(stripped):]


@dataclass
class BufferedBlock:
    """A pitch/root/bass subtree held back until it closes."""

    element: OpenElement
    open_tag: str
    pieces: List[Union[str, CapturedField]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.element.name

    def index_of(self, name: str) -> Optional[int]:
        for index, piece in enumerate(self.pieces):
            if isinstance(piece, CapturedField) and piece.name == name:
                return index
        return None

    def find(self, name: str) -> Optional[CapturedField]:
        index = self.index_of(name)
        return None if index is None else self.pieces[index]

    def value(self, name: str) -> Optional[str]:
        captured = self.find(name)
        return None if captured is None else captured.text

    def _indent_before(self, index: Optional[int]) -> str:
        if index is None or index == 0:
            return ""
        previous = self.pieces[index - 1]
        if not isinstance(previous, str):
            return ""
        return TRAILING_SPACE.search(previous).group()

    def insert_after(self, anchor: str, name: str, value: str) -> None:
        """Add a new leaf right after `anchor`, indented like it."""
        index = self.index_of(anchor)
        element = f"{self._indent_before(index)}<{name}>{value}</{name}>"
        if index is None:
            self.insert_before_close(name, value)
            return
        self.pieces.insert(index + 1, element)

    def insert_before_close(self, name: str, value: str, indent_like: Optional[str] = None) -> None:
        """Add a new leaf as the last child of the block."""
        indent = self._indent_before(self.index_of(indent_like)) if indent_like else ""
        position = len(self.pieces)
        while (
            position > 0
            and isinstance(self.pieces[position - 1], str)
            and not self.pieces[position - 1].strip()
        ):
            position -= 1
        self.pieces.insert(position, f"{indent}<{name}>{value}</{name}>")

    def render(self, close_tag: str, updates: Optional[Dict[str, Optional[str]]] = None) -> str:
        """
        Serialize the block.

        Args:
            close_tag: Source text of the block's closing tag
            updates: Leaf name -> new text, or None to drop that leaf.
                Repeated leaves of an updated name are dropped.
        """
        updates = updates or {}
        out: List[str] = [self.open_tag]
        written = set()

        for piece in self.pieces:
            if not isinstance(piece, CapturedField):
                out.append(piece)
                continue

            if piece.name not in updates:
                out.append(piece.render())
                continue

            value = updates[piece.name]
            if value is None or piece.name in written:
                # Drop the leaf together with its indentation
                if len(out) > 1 and not out[-1].strip():
                    out.pop()
                continue

            written.add(piece.name)
            out.append(piece.render(value))

        out.append(close_tag)
        return "".join(out)


@dataclass
class NoteState:
    """Scratch record for the note being rewritten."""
    transposed_alter: Optional[int] = None


@dataclass
class KeyState:
    """Scratch record for the key signature being rewritten."""
    fifths: Optional[int] = None
    mode: Optional[str] = None


class StreamingRewriter(MarkupEventPass):
    """
    Transpose one document by a fixed number of semitones.

    An instance performs exactly one rewrite; create a new one per call.
    After `rewrite` returns, `source_key` holds the first key signature
    found in the input (None if there was none).
    """

    def __init__(self, semitones: int):
        super().__init__()
        self.semitones = int(semitones)
        self.source_key: Optional[KeySignature] = None

        self._out: List[str] = []
        self._block: Optional[BufferedBlock] = None
        self._field: Optional[CapturedField] = None
        self._field_element: Optional[OpenElement] = None
        self._field_in_block = False
        self._note: Optional[NoteState] = None
        self._harmony: Optional[HarmonyRewriteState] = None
        self._key: Optional[KeyState] = None

    def rewrite(self, text: str) -> str:
        """
        Transpose a complete document (or a well-formed fragment).

        Args:
            text: MusicXML text, optionally with declaration and DOCTYPE

        Returns:
            The transposed text

        Raises:
            ParseError: If the text is not well-formed
        """
        preamble, body = split_preamble(text)
        logger.debug(f"Rewriting {len(body)} characters by {self.semitones:+d} semitones")
        self._run(body, preamble=preamble)
        return preamble + "".join(self._out)

    # -- output ----------------------------------------------------------

    def _emit(self, text: str) -> None:
        if not text:
            return
        if self._block is not None:
            self._block.pieces.append(text)
        else:
            self._out.append(text)

    def _write_content(self, text: str) -> None:
        if not text:
            return
        if self._field is not None:
            self._field.raw_parts.append(text)
        else:
            self._emit(text)

    def _release_field(self) -> None:
        """Stop capturing a leaf that turned out to contain elements."""
        captured = self._field
        self._field = None
        self._field_element = None
        self._field_in_block = False
        self._emit(captured.open_tag + "".join(captured.raw_parts))

    # -- events ----------------------------------------------------------

    def on_start(self, element: OpenElement, before: str, tag: str) -> None:
        self._write_content(before)
        if self._field is not None:
            self._release_field()

        name = element.name
        parent = self.parent

        if name == "note":
            self._note = NoteState()
        elif name == "harmony":
            self._harmony = HarmonyRewriteState()
        elif name == "key":
            self._key = KeyState()

        if self._opens_block(name, parent):
            self._block = BufferedBlock(element=element, open_tag=tag)
        elif self._captures(name, parent):
            self._field = CapturedField(name=name, open_tag=tag)
            self._field_element = element
            self._field_in_block = self._block is not None
        else:
            self._emit(tag)

    def on_text(self, text: str) -> None:
        if self._field is not None:
            self._field.text_parts.append(text)

    def on_end(self, element: OpenElement, before: str, tag: str) -> None:
        if self._field is not None and self._field_element is element:
            captured = self._field
            if before:
                captured.raw_parts.append(before)
            captured.close_tag = tag
            self._field = None
            self._field_element = None
            self._finish_field(captured)
        else:
            self._write_content(before)
            if self._block is not None and self._block.element is element:
                self._finish_block(tag)
            else:
                self._emit(tag)

        name = element.name
        if name == "note":
            self._note = None
        elif name == "harmony":
            self._harmony = None
        elif name == "key":
            self._finish_key()

    def on_tail(self, text: str) -> None:
        self._out.append(text)

    # -- capture rules ---------------------------------------------------

    def _opens_block(self, name: str, parent: Optional[OpenElement]) -> bool:
        if self._block is not None or name not in BUFFERED_CONTAINERS:
            return False
        if name == "pitch":
            return True
        return parent is not None and parent.name == "harmony" and self._harmony is not None

    def _captures(self, name: str, parent: Optional[OpenElement]) -> bool:
        if parent is None:
            return False

        if parent.name in BUFFERED_CONTAINERS:
            return (
                self._block is not None
                and self._block.element is parent
                and name in CAPTURED_FIELDS[parent.name]
            )

        if parent.name == "key":
            return self._key is not None and name in CAPTURED_FIELDS["key"]

        if name == "accidental" and parent.name == "note":
            return self._note is not None and self._note.transposed_alter is not None

        return False

    # -- rewrites --------------------------------------------------------

    def _finish_field(self, captured: CapturedField) -> None:
        if self._field_in_block and self._block is not None:
            self._field_in_block = False
            self._block.pieces.append(captured)
            if self._block.name in HARMONY_FIELDS and self._harmony is not None:
                self._harmony.observe(self._block.name, captured.name, captured.text)
            return

        if captured.name == "fifths":
            self._emit(self._rewrite_fifths(captured))
        elif captured.name == "mode":
            if self._key is not None:
                self._key.mode = captured.text.strip()
            self._emit(captured.render())
        elif captured.name == "accidental":
            name = accidental_name(self._note.transposed_alter) if self._note else None
            self._emit(captured.render(name))
        else:
            self._emit(captured.render())

    def _rewrite_fifths(self, captured: CapturedField) -> str:
        text = captured.text.strip()
        try:
            fifths = int(text)
        except ValueError:
            logger.warning(f"Key signature with unreadable fifths {text!r} left unchanged")
            return captured.render()

        if self._key is not None:
            self._key.fifths = fifths

        return captured.render(str(transpose_fifths(fifths, self.semitones)))

    def _finish_key(self) -> None:
        key = self._key
        self._key = None
        if self.source_key is None and key is not None and key.fifths is not None:
            self.source_key = KeySignature(fifths=key.fifths, mode=key.mode or "major")

    def _finish_block(self, close_tag: str) -> None:
        block = self._block
        self._block = None

        if block.name == "pitch":
            self._emit(self._render_pitch(block, close_tag))
        else:
            self._emit(self._render_harmony(block, close_tag))

    def _render_pitch(self, block: BufferedBlock, close_tag: str) -> str:
        step = block.value("step")
        if step is None or not step.strip():
            logger.debug("Pitch without a step left unchanged")
            return block.render(close_tag)

        octave_text = block.value("octave")
        if octave_text is None:
            logger.debug(f"Pitch {step.strip()} has no octave, assuming {DEFAULT_OCTAVE}")

        alter = parse_int(block.value("alter"), DEFAULT_ALTER)
        octave = parse_int(octave_text, DEFAULT_OCTAVE)
        transposed = transpose_pitch(step, alter, octave, self.semitones)

        if self._note is not None:
            self._note.transposed_alter = transposed.alter

        if octave_text is None:
            anchor = "alter" if block.find("alter") is not None else "step"
            block.insert_after(anchor, "octave", str(transposed.octave))
        if transposed.alter and block.find("alter") is None:
            block.insert_after("step", "alter", str(transposed.alter))

        return block.render(close_tag, {
            "step": transposed.step,
            "alter": str(transposed.alter) if transposed.alter else None,
            "octave": str(transposed.octave),
        })

    def _render_harmony(self, block: BufferedBlock, close_tag: str) -> str:
        edit = self._harmony.resolve(block.name, self.semitones) if self._harmony else None
        if edit is None:
            return block.render(close_tag)

        step_name, alter_name = HARMONY_FIELDS[block.name]
        updates: Dict[str, Optional[str]] = {step_name: edit.step}

        if edit.remove_alter:
            updates[alter_name] = None
        elif block.find(alter_name) is not None:
            updates[alter_name] = edit.alter_text

        if edit.insert_alter:
            block.insert_before_close(alter_name, edit.alter_text, indent_like=step_name)

        return block.render(close_tag, updates)


def transpose_document(text: str, interval: Union[int, str]) -> str:
    """
    Transpose a MusicXML document.

    Args:
        text: MusicXML document text
        interval: Semitones as an int, or a string such as "+5", "-3", "7"

    Returns:
        The transposed document text

    Raises:
        InputFormatError: If the interval string is malformed
        ParseError: If the document is not well-formed
    """
    semitones = parse_interval(interval) if isinstance(interval, str) else int(interval)
    return StreamingRewriter(semitones).rewrite(text)
