"""
Key names and practice orders.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from musicxml_transposer.core.errors import InputFormatError
from musicxml_transposer.core.pitch import KeySignature


# Tonic for fifths -7..7 (index = fifths + 7)
MAJOR_TONICS = [
    "Cb", "Gb", "Db", "Ab", "Eb", "Bb", "F",
    "C",
    "G", "D", "A", "E", "B", "F#", "C#",
]

MINOR_TONICS = [
    "Ab", "Eb", "Bb", "F", "C", "G", "D",
    "A",
    "E", "B", "F#", "C#", "G#", "D#", "A#",
]

CHROMATIC_ORDER = [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11]

# Successive perfect fourths up from the tonic
CIRCLE_OF_FOURTHS_ORDER = [0, 5, 10, 3, 8, 1, 6, 11, 4, 9, 2, 7]


class KeyOrder(Enum):
    """Order in which the twelve keys are generated."""
    CHROMATIC = "chromatic"
    CIRCLE_OF_FOURTHS = "circleOfFourths"

    @classmethod
    def from_name(cls, name: Union[str, "KeyOrder"]) -> "KeyOrder":
        """
        Look up a key order by name.

        Accepts the canonical values plus the spellings used by older
        front ends ("fourths", "circle-of-fourths", "circle_of_fourths").

        Raises:
            InputFormatError: If the name is not a known order
        """
        if isinstance(name, cls):
            return name

        normalized = str(name).strip().replace("-", "").replace("_", "").lower()
        aliases = {
            "chromatic": cls.CHROMATIC,
            "circleoffourths": cls.CIRCLE_OF_FOURTHS,
            "fourths": cls.CIRCLE_OF_FOURTHS,
        }
        try:
            return aliases[normalized]
        except KeyError:
            raise InputFormatError(
                f"Unknown key order: {name!r}. Use 'chromatic' or 'circleOfFourths'"
            ) from None

    @property
    def semitones(self) -> List[int]:
        """Semitone offsets in generation order."""
        if self is KeyOrder.CIRCLE_OF_FOURTHS:
            return list(CIRCLE_OF_FOURTHS_ORDER)
        return list(CHROMATIC_ORDER)


def key_order_sequence(order: Union[str, KeyOrder]) -> List[int]:
    """Semitone offsets for a key order name."""
    return KeyOrder.from_name(order).semitones


def tonic_name(fifths: int, mode: str = "major") -> str:
    """Tonic spelling for a key signature; fifths is clamped to -7..7."""
    fifths = max(-7, min(7, fifths))
    table = MINOR_TONICS if mode == "minor" else MAJOR_TONICS
    return table[fifths + 7]


def resolve_key_name(fifths: int, mode: Optional[str] = "major") -> str:
    """
    Human-readable key label.

    Args:
        fifths: Sharps (positive) or flats (negative)
        mode: "major" or "minor"; anything else is labeled major

    Returns:
        Label such as "Eb major" or "F# minor"
    """
    mode = "minor" if (mode or "").strip().lower() == "minor" else "major"
    return f"{tonic_name(fifths, mode)} {mode}"


def key_signature_name(key: KeySignature) -> str:
    """Label for a KeySignature."""
    return resolve_key_name(key.fifths, key.mode)
