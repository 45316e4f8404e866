"""
Interval parsing and naming.

Intervals are plain semitone counts, written as signed decimal
integers: "+5", "-3" or "7" (no sign means up).
"""

from __future__ import annotations

import re
from typing import List, Tuple

from musicxml_transposer.core.errors import InputFormatError


INTERVAL_PATTERN = re.compile(r"([+-]?)([0-9]+)")

# Interval names within one octave, indexed by semitone count
INTERVAL_NAMES = [
    "Unison",
    "Minor 2nd",
    "Major 2nd",
    "Minor 3rd",
    "Major 3rd",
    "Perfect 4th",
    "Tritone",
    "Perfect 5th",
    "Minor 6th",
    "Major 6th",
    "Minor 7th",
    "Major 7th",
]


def parse_interval(text: str) -> int:
    """
    Parse an interval string into a signed semitone count.

    Args:
        text: Interval like "+5", "-3" or "7"

    Returns:
        Semitones (positive = up, negative = down)

    Raises:
        InputFormatError: If the text is not a signed decimal integer
    """
    match = INTERVAL_PATTERN.fullmatch(str(text))
    if not match:
        raise InputFormatError(
            f"Invalid interval format: {text}. Use format like +5, -3, or 7"
        )

    sign = -1 if match.group(1) == "-" else 1
    return sign * int(match.group(2))


def format_interval(semitones: int) -> str:
    """Signed form of an interval, e.g. "+7", "-3", "0"."""
    if semitones > 0:
        return f"+{semitones}"
    return str(semitones)


def interval_name(semitones: int) -> str:
    """
    Describe the size and direction of an interval.

    Returns:
        Name like "Perfect 5th up", "Minor 3rd down", "No change",
        "Octave up" or "Major 2nd + 1 octave down"
    """
    if semitones == 0:
        return "No change"

    direction = "up" if semitones > 0 else "down"
    octaves, within = divmod(abs(semitones), 12)

    if within == 0:
        size = "Octave" if octaves == 1 else f"{octaves} octaves"
    elif octaves == 0:
        size = INTERVAL_NAMES[within]
    else:
        plural = "octave" if octaves == 1 else "octaves"
        size = f"{INTERVAL_NAMES[within]} + {octaves} {plural}"

    return f"{size} {direction}"


def describe_interval(semitones: int) -> str:
    """
    Label for an interval as shown to users.

    Example:
        describe_interval(7) -> "+7 semitones (Perfect 5th up)"
    """
    unit = "semitone" if abs(semitones) == 1 else "semitones"
    return f"{format_interval(semitones)} {unit} ({interval_name(semitones)})"


def get_interval_options() -> List[Tuple[str, str]]:
    """
    Get the list of single-interval transpositions offered to users.

    Returns:
        List of (interval_code, display_name) tuples from +11 down to -11
    """
    return [(format_interval(s), describe_interval(s)) for s in range(11, -12, -1)]
