"""
Pitch and key signature arithmetic.

Pitches are moved by whole semitones and respelled from a fixed,
sharp-only table. Key signatures are moved around the circle of fifths
with a table lookup, because one chromatic step is not one fifths step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger(__name__)


# Semitone value of each natural step within an octave
NATURAL_VALUES = {
    "C": 0,
    "D": 2,
    "E": 4,
    "F": 5,
    "G": 7,
    "A": 9,
    "B": 11,
}

# Pitch class -> spelling. Always sharps, never flats.
SHARP_SPELLINGS = [
    "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B",
]

# Fifths change for a transposition of N semitones (N in 0..11)
FIFTHS_DELTAS = [0, 7, 2, -3, 4, -1, 6, 1, -4, 3, -2, 5]

# Transposed alter -> accidental element text
ACCIDENTAL_NAMES = {
    2: "double-sharp",
    1: "sharp",
    0: "natural",
    -1: "flat",
    -2: "double-flat",
}

DEFAULT_ALTER = 0
DEFAULT_OCTAVE = 4


@dataclass(frozen=True)
class Pitch:
    """A spelled pitch: step letter, chromatic alteration and octave."""

    step: str
    alter: int = DEFAULT_ALTER
    octave: int = DEFAULT_OCTAVE

    @property
    def name(self) -> str:
        """Pitch name without octave, e.g. 'C#'."""
        if self.alter > 0:
            return self.step + "#" * self.alter
        if self.alter < 0:
            return self.step + "b" * -self.alter
        return self.step

    @property
    def name_with_octave(self) -> str:
        """Pitch name with octave, e.g. 'C#4'."""
        return f"{self.name}{self.octave}"


@dataclass(frozen=True)
class KeySignature:
    """A traditional key signature."""

    fifths: int = 0
    mode: str = "major"

    @property
    def is_minor(self) -> bool:
        return self.mode == "minor"


def natural_value(step: str) -> int:
    """Semitone value of a step letter; unknown letters count as C."""
    value = NATURAL_VALUES.get(step.strip().upper())
    if value is None:
        logger.debug(f"Unknown step {step!r}, treating as C")
        return 0
    return value


def transpose_pitch(
    step: str,
    alter: int = DEFAULT_ALTER,
    octave: int = DEFAULT_OCTAVE,
    semitones: int = 0,
) -> Pitch:
    """
    Transpose a pitch by a number of semitones.

    Args:
        step: Step letter A-G
        alter: Chromatic alteration in semitones
        octave: Octave number (4 = the octave starting at middle C)
        semitones: Signed transposition interval

    Returns:
        The transposed pitch, spelled from the sharp-only table
    """
    total = natural_value(step) + alter + octave * 12 + semitones
    new_octave, pitch_class = divmod(total, 12)

    spelling = SHARP_SPELLINGS[pitch_class]
    new_alter = 1 if spelling.endswith("#") else 0

    return Pitch(step=spelling[0], alter=new_alter, octave=new_octave)


def wrap_fifths(fifths: int) -> int:
    """Bring a fifths count into -7..7 by whole cycles of 12."""
    while fifths > 7:
        fifths -= 12
    while fifths < -7:
        fifths += 12
    return fifths


def transpose_fifths(fifths: int, semitones: int) -> int:
    """
    Transpose a key signature's fifths count by a number of semitones.

    Args:
        fifths: Current sharps (positive) or flats (negative)
        semitones: Signed transposition interval

    Returns:
        New fifths count in -7..7
    """
    delta = FIFTHS_DELTAS[semitones % 12]
    return wrap_fifths(fifths + delta)


def accidental_name(alter: int) -> Optional[str]:
    """Accidental element text for an alteration, or None if there is none."""
    return ACCIDENTAL_NAMES.get(alter)


def parse_int(text: Optional[str], default: int) -> int:
    """
    Read an integer from element text.

    Decimal text is truncated toward zero ("1.0" -> 1, "-0.5" -> 0).
    Missing or unreadable text gives the default.
    """
    if text is None:
        return default

    text = text.strip()
    if not text:
        return default

    try:
        return int(text)
    except ValueError:
        pass

    try:
        return int(float(text))
    except (ValueError, OverflowError):
        logger.debug(f"Unreadable number {text!r}, using {default}")
        return default
