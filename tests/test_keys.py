"""
Tests for key names, key orders and interval helpers.
"""

import pytest

from musicxml_transposer.core.errors import InputFormatError
from musicxml_transposer.core.intervals import (
    describe_interval,
    format_interval,
    get_interval_options,
    interval_name,
    parse_interval,
)
from musicxml_transposer.core.keys import (
    KeyOrder,
    key_order_sequence,
    key_signature_name,
    resolve_key_name,
    tonic_name,
)
from musicxml_transposer.core.pitch import KeySignature


class TestKeyNames:
    """Tests for key signature labels."""

    def test_major_keys(self):
        """Sharps for positive fifths, flats for negative."""
        assert resolve_key_name(0, "major") == "C major"
        assert resolve_key_name(6, "major") == "F# major"
        assert resolve_key_name(-3, "major") == "Eb major"
        assert resolve_key_name(-7, "major") == "Cb major"

    def test_minor_keys(self):
        """Relative minors use their own table."""
        assert resolve_key_name(0, "minor") == "A minor"
        assert resolve_key_name(-3, "minor") == "C minor"
        assert resolve_key_name(7, "minor") == "A# minor"

    def test_fifths_clamped(self):
        """Out-of-range fifths are clamped to the table."""
        assert tonic_name(9) == "C#"
        assert tonic_name(-12) == "Cb"

    def test_other_modes_labeled_major(self):
        """Missing or unusual modes are labeled major."""
        assert resolve_key_name(2, None) == "D major"
        assert resolve_key_name(2, "dorian") == "D major"
        assert resolve_key_name(2, " Minor ") == "B minor"

    def test_key_signature_name(self):
        """KeySignature records resolve the same way."""
        assert key_signature_name(KeySignature(-1, "minor")) == "D minor"


class TestKeyOrder:
    """Tests for practice orders."""

    def test_chromatic(self):
        """Chromatic order walks up in semitones."""
        assert key_order_sequence("chromatic") == list(range(12))

    def test_circle_of_fourths(self):
        """Circle of fourths steps up by perfect fourths."""
        sequence = key_order_sequence("circleOfFourths")
        assert sequence[2] == 10
        assert sequence == [(5 * i) % 12 for i in range(12)]

    @pytest.mark.parametrize("name", ["fourths", "circle-of-fourths", "circle_of_fourths", "CircleOfFourths"])
    def test_aliases(self, name):
        """Older spellings resolve to the circle of fourths."""
        assert KeyOrder.from_name(name) is KeyOrder.CIRCLE_OF_FOURTHS

    def test_enum_passthrough(self):
        """An enum member is returned unchanged."""
        assert KeyOrder.from_name(KeyOrder.CHROMATIC) is KeyOrder.CHROMATIC

    def test_unknown_order(self):
        """Unknown names are input errors."""
        with pytest.raises(InputFormatError):
            KeyOrder.from_name("random")

    def test_sequence_is_a_copy(self):
        """Callers cannot change the stored order."""
        sequence = KeyOrder.CHROMATIC.semitones
        sequence.reverse()
        assert KeyOrder.CHROMATIC.semitones[0] == 0


class TestIntervals:
    """Tests for interval parsing and labels."""

    @pytest.mark.parametrize("text,expected", [
        ("+5", 5), ("-3", -3), ("7", 7), ("0", 0), ("+0", 0), ("-12", -12), ("25", 25),
    ])
    def test_parse_valid(self, text, expected):
        """Signed decimal integers; no sign means up."""
        assert parse_interval(text) == expected

    @pytest.mark.parametrize("text", ["", "+", "abc", "3.5", "+-3", " 3", "P5", "--3"])
    def test_parse_invalid(self, text):
        """Anything else is rejected."""
        with pytest.raises(InputFormatError):
            parse_interval(text)

    def test_input_format_error_is_value_error(self):
        """Callers may catch ValueError."""
        with pytest.raises(ValueError):
            parse_interval("up")

    def test_format_interval(self):
        """Positive intervals carry a plus sign."""
        assert format_interval(7) == "+7"
        assert format_interval(-3) == "-3"
        assert format_interval(0) == "0"

    def test_interval_names(self):
        """Names give size and direction."""
        assert interval_name(0) == "No change"
        assert interval_name(7) == "Perfect 5th up"
        assert interval_name(-3) == "Minor 3rd down"
        assert interval_name(12) == "Octave up"
        assert interval_name(-24) == "2 octaves down"
        assert interval_name(14) == "Major 2nd + 1 octave up"

    def test_describe_interval(self):
        """User-facing labels."""
        assert describe_interval(7) == "+7 semitones (Perfect 5th up)"
        assert describe_interval(-1) == "-1 semitone (Minor 2nd down)"
        assert describe_interval(0) == "0 semitones (No change)"

    def test_interval_options(self):
        """Options run from +11 down to -11."""
        options = get_interval_options()
        assert len(options) == 23
        assert options[0] == ("+11", "+11 semitones (Major 7th up)")
        assert options[11] == ("0", "0 semitones (No change)")
        assert options[-1][0] == "-11"
