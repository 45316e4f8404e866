"""
Bookkeeping for chord symbols.

A harmony element carries a root and an optional bass, each spelled as a
step plus an optional alter element. The step alone cannot be transposed
correctly until the alter (if any) has been seen, so values are recorded
as they arrive and resolved once the enclosing root/bass closes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import logging

from musicxml_transposer.core.pitch import DEFAULT_OCTAVE, parse_int, transpose_pitch

logger = logging.getLogger(__name__)


# Container -> (step element, alter element)
HARMONY_FIELDS: Dict[str, Tuple[str, str]] = {
    "root": ("root-step", "root-alter"),
    "bass": ("bass-step", "bass-alter"),
}


@dataclass
class HarmonyNote:
    """Root or bass of one chord symbol, as read from the source."""
    step: Optional[str] = None
    alter: int = 0
    has_explicit_alter: bool = False


@dataclass(frozen=True)
class HarmonyEdit:
    """What to write back for one root/bass block."""
    step: str
    alter: int
    insert_alter: bool = False
    remove_alter: bool = False

    @property
    def alter_text(self) -> str:
        return str(self.alter)


@dataclass
class HarmonyRewriteState:
    """Root and bass records for the harmony element being rewritten."""

    root: HarmonyNote = field(default_factory=HarmonyNote)
    bass: HarmonyNote = field(default_factory=HarmonyNote)

    @staticmethod
    def is_field(container: str, name: str) -> bool:
        """True if `name` is a step/alter element of `container`."""
        return name in HARMONY_FIELDS.get(container, ())

    def block(self, container: str) -> HarmonyNote:
        if container == "bass":
            return self.bass
        return self.root

    def observe(self, container: str, name: str, text: str) -> None:
        """
        Record a step or alter value seen inside a root/bass block.

        Args:
            container: "root" or "bass"
            name: Element name, e.g. "root-step"
            text: Element text as found in the source
        """
        step_name, alter_name = HARMONY_FIELDS[container]
        note = self.block(container)

        if name == step_name:
            note.step = text.strip()
        elif name == alter_name:
            note.alter = parse_int(text, 0)
            note.has_explicit_alter = True

    def resolve(self, container: str, semitones: int) -> Optional[HarmonyEdit]:
        """
        Transpose a finished root/bass block.

        Step and alter are transposed together. An alter element is
        inserted when the result needs one and the source had none, and
        removed when the source had one and the result is natural.

        Returns:
            The edit to apply, or None if the block had no step
        """
        note = self.block(container)
        if not note.step:
            logger.debug(f"Harmony {container} without a step left unchanged")
            return None

        transposed = transpose_pitch(note.step, note.alter, DEFAULT_OCTAVE, semitones)

        return HarmonyEdit(
            step=transposed.step,
            alter=transposed.alter,
            insert_alter=transposed.alter != 0 and not note.has_explicit_alter,
            remove_alter=transposed.alter == 0 and note.has_explicit_alter,
        )
