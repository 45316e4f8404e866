"""
Tests for the streaming rewriter.
"""

import pytest
from music21 import converter, key, note

from musicxml_transposer.core.errors import InputFormatError, ParseError
from musicxml_transposer.core.events import split_preamble
from musicxml_transposer.core.pitch import KeySignature
from musicxml_transposer.core.rewriter import StreamingRewriter, transpose_document


def _note(pitch: str, extra: str = "") -> str:
    return f"<note><pitch>{pitch}</pitch><duration>1</duration>{extra}</note>"


def _midi_numbers(text: str) -> list:
    score = converter.parseData(text, format="musicxml")
    return [n.pitch.midi for n in score.recurse().getElementsByClass(note.Note)]


class TestByteFidelity:
    """Tests that untouched bytes survive."""

    def test_zero_semitones_is_identity(self, simple_score):
        """A sharp-spelled score comes back byte for byte."""
        assert transpose_document(simple_score, 0) == simple_score

    def test_markup_outside_fields_kept(self):
        """Comments, CDATA, entities, PIs and attribute quoting are copied verbatim."""
        source = (
            "<score-partwise version='4.0'>\n"
            "  <!-- a comment -->\n"
            "  <?editor keep?>\n"
            "  <work><work-title>Tom &amp; Jerry</work-title></work>\n"
            "  <credit page=\"1\"><credit-words><![CDATA[<raw>]]></credit-words></credit>\n"
            "  <part id=\"P1\"><measure number=\"1\">"
            + _note("<step>C</step><octave>4</octave>")
            + "</measure></part>\n"
            "</score-partwise>\n"
        )
        result = transpose_document(source, 2)
        assert result == source.replace("<step>C</step>", "<step>D</step>")

    def test_preamble_and_tail_kept(self):
        """BOM, declaration, DOCTYPE and trailing text are re-attached."""
        preamble = (
            "\ufeff<?xml version=\"1.0\" encoding=\"UTF-8\"?>\r\n"
            "<!DOCTYPE score-partwise [\r\n  <!ENTITY x \"y\">\r\n]>\r\n"
        )
        body = "<score-partwise>\r\n" + _note("<step>E</step><octave>4</octave>") + "\r\n</score-partwise>"
        tail = "\r\n<!-- end -->\r\n"

        result = transpose_document(preamble + body + tail, 1)

        assert result.startswith(preamble)
        assert result.endswith("</score-partwise>" + tail)
        assert "<step>F</step>" in result

    def test_internal_subset_entities(self):
        """Entities declared in the DOCTYPE resolve and are copied unexpanded."""
        preamble = "<?xml version=\"1.0\"?>\n<!DOCTYPE a [<!ENTITY foo \"bar\"><!ENTITY g \"G\">]>\n"
        body = "<a>&foo;" + _note("<step>&g;</step><octave>4</octave>") + _note("<step>C</step>") + "</a>"

        result = transpose_document(preamble + body, 1)

        assert result == preamble + body.replace(
            "<step>&g;</step>", "<step>&g;</step><alter>1</alter>"
        ).replace("<step>C</step>", "<step>C</step><alter>1</alter><octave>4</octave>")

    def test_declared_encoding_ignored(self):
        """Already-decoded text is parsed as is, whatever the declaration says."""
        source = "<?xml version=\"1.0\" encoding=\"ISO-8859-1\"?>\n<a><credit>Café</credit>" + \
            _note("<step>D</step><octave>4</octave>") + "</a>"
        result = transpose_document(source, 2)
        assert result == source.replace("<step>D</step>", "<step>E</step>")

    def test_split_preamble(self):
        """Preamble and body add back up to the input."""
        text = "<?xml version=\"1.0\"?>\n<!DOCTYPE a>\n<a/>"
        preamble, body = split_preamble(text)
        assert body == "<a/>"
        assert preamble + body == text

    def test_non_ascii_text(self):
        """Byte offsets stay aligned after multi-byte characters."""
        source = "<score><credit>Étude für Flöte ♯</credit>" + _note("<step>G</step><octave>4</octave>") + "</score>"
        result = transpose_document(source, 2)
        assert result == source.replace("<step>G</step>", "<step>A</step>")


class TestPitchRewrite:
    """Tests for note pitches."""

    def test_alter_inserted_after_step(self):
        """C4 +1 gains an alter between step and octave."""
        result = transpose_document(_note("<step>C</step><octave>4</octave>"), 1)
        assert result == _note("<step>C</step><alter>1</alter><octave>4</octave>")

    def test_alter_removed(self):
        """F#4 +1 is G4 with no alter element."""
        result = transpose_document(_note("<step>F</step><alter>1</alter><octave>4</octave>"), 1)
        assert result == _note("<step>G</step><octave>4</octave>")

    def test_octave_carries(self):
        """B4 +1 is C5; C4 -1 is B3."""
        assert transpose_document(_note("<step>B</step><octave>4</octave>"), 1) == \
            _note("<step>C</step><octave>5</octave>")
        assert transpose_document(_note("<step>C</step><octave>4</octave>"), -1) == \
            _note("<step>B</step><octave>3</octave>")

    def test_missing_octave_inserted(self):
        """A pitch without an octave is treated as octave 4 and given one."""
        result = transpose_document(_note("<step>B</step>"), 1)
        assert result == _note("<step>C</step><octave>5</octave>")

    def test_missing_octave_inserted_after_alter(self):
        """Inserted elements keep schema order."""
        result = transpose_document(_note("<step>C</step>"), 1)
        assert result == _note("<step>C</step><alter>1</alter><octave>4</octave>")

    def test_pretty_printed_pitch(self):
        """Inserted alter copies the step's indentation; removed alter takes its own."""
        source = (
            "<note>\n"
            "  <pitch>\n"
            "    <step>A</step>\n"
            "    <octave>3</octave>\n"
            "  </pitch>\n"
            "</note>"
        )
        up = transpose_document(source, 1)
        assert up == source.replace(
            "<step>A</step>\n", "<step>A</step>\n    <alter>1</alter>\n"
        )
        assert transpose_document(up, 1) == source.replace("<step>A</step>", "<step>B</step>")

    def test_empty_alter_element(self):
        """<alter/> is expanded when it needs a value."""
        result = transpose_document(_note("<step>D</step><alter/><octave>4</octave>"), 1)
        assert result == _note("<step>D</step><alter>1</alter><octave>4</octave>")

    def test_decimal_alter(self):
        """Decimal alter text is read as an integer."""
        result = transpose_document(_note("<step>F</step><alter>1.0</alter><octave>4</octave>"), 0)
        assert result == _note("<step>F</step><alter>1</alter><octave>4</octave>")

    def test_whitespace_inside_fields(self):
        """Text around the value is preserved."""
        result = transpose_document(_note("<step> C </step><octave>\n4\n</octave>"), 2)
        assert result == _note("<step> D </step><octave>\n4\n</octave>")

    def test_comments_inside_fields_kept(self):
        """Only the text run of a rewritten field changes."""
        result = transpose_document(_note("<step>C<!--x--></step><octave><?pi?> 4</octave>"), 12)
        assert result == _note("<step>C<!--x--></step><octave><?pi?> 5</octave>")

        result = transpose_document(_note("<step><!--a-->E<!--b--></step><octave>4</octave>"), 1)
        assert result == _note("<step><!--a-->F<!--b--></step><octave>4</octave>")

        result = transpose_document(_note("<step>C</step><alter><!--none--></alter><octave>4</octave>"), 1)
        assert result == _note("<step>C</step><alter><!--none-->1</alter><octave>4</octave>")

    def test_duplicate_alters_collapse(self):
        """Repeated alter elements collapse into one."""
        source = _note("<step>G</step><alter>1</alter><alter>1</alter><octave>4</octave>")
        result = transpose_document(source, 0)
        assert result.count("<alter>") == 1

    def test_pitch_without_step_untouched(self):
        """No step means nothing to transpose."""
        source = _note("<octave>4</octave>", "<accidental>sharp</accidental>")
        assert transpose_document(source, 3) == source

    def test_rest_untouched(self):
        """Rests and unpitched notes pass through."""
        source = "<measure><note><rest/><duration>4</duration></note><note><unpitched><display-step>E</display-step></unpitched></note></measure>"
        assert transpose_document(source, 5) == source

    def test_interval_string(self):
        """Intervals may be given as strings."""
        source = _note("<step>C</step><octave>4</octave>")
        assert transpose_document(source, "-3") == transpose_document(source, -3)

    def test_bad_interval_string(self):
        """A malformed interval fails before parsing."""
        with pytest.raises(InputFormatError):
            transpose_document("<not-even-parsed", "up a fifth")

    def test_alter_outside_pitch_untouched(self):
        """Unexpected nesting passes through."""
        source = "<note><alter>1</alter><step>C</step></note>"
        assert transpose_document(source, 1) == source


class TestAccidentalRewrite:
    """Tests for accidental remapping."""

    def test_sharp_to_natural(self):
        """F# up a semitone is G natural."""
        source = _note("<step>F</step><alter>1</alter><octave>4</octave>", "<accidental>sharp</accidental>")
        result = transpose_document(source, 1)
        assert "<accidental>natural</accidental>" in result

    def test_natural_to_sharp(self):
        """Attributes on the accidental are kept."""
        source = _note("<step>C</step><octave>4</octave>", '<accidental cautionary="yes">natural</accidental>')
        result = transpose_document(source, 1)
        assert '<accidental cautionary="yes">sharp</accidental>' in result

    def test_accidental_before_pitch_untouched(self):
        """Only accidentals following the rewritten pitch are remapped."""
        source = "<note><accidental>flat</accidental><pitch><step>C</step><octave>4</octave></pitch></note>"
        result = transpose_document(source, 1)
        assert result.startswith("<note><accidental>flat</accidental>")

    def test_accidental_mark_untouched(self):
        """Accidentals in ornaments are not note accidentals."""
        source = _note(
            "<step>C</step><octave>4</octave>",
            "<notations><ornaments><accidental-mark>sharp</accidental-mark></ornaments></notations>",
        )
        result = transpose_document(source, 2)
        assert "<accidental-mark>sharp</accidental-mark>" in result


class TestKeyRewrite:
    """Tests for key signatures."""

    def test_fifths_transposed(self):
        """C major up a fifth is G major; mode is untouched."""
        source = "<key><fifths>0</fifths><mode>major</mode></key>"
        assert transpose_document(source, 7) == "<key><fifths>1</fifths><mode>major</mode></key>"

    def test_source_key_exposed(self):
        """The first key signature is remembered."""
        rewriter = StreamingRewriter(2)
        rewriter.rewrite(
            "<part><key><fifths>-3</fifths><mode>minor</mode></key>"
            "<key><fifths>2</fifths></key></part>"
        )
        assert rewriter.source_key == KeySignature(-3, "minor")

    def test_no_key(self):
        """Documents without a key have no source key."""
        rewriter = StreamingRewriter(2)
        rewriter.rewrite(_note("<step>C</step><octave>4</octave>"))
        assert rewriter.source_key is None

    def test_unreadable_fifths_untouched(self):
        """Non-numeric fifths are left as they are."""
        source = "<key><fifths>lots</fifths></key>"
        assert transpose_document(source, 3) == source


class TestErrors:
    """Tests for malformed input and instance reuse."""

    def test_malformed_document(self):
        """Mismatched tags raise ParseError."""
        with pytest.raises(ParseError) as excinfo:
            transpose_document("<score-partwise><part></score-partwise>", 1)
        assert "Malformed MusicXML" in str(excinfo.value)

    def test_error_position_counts_preamble(self):
        """Line numbers refer to the full input."""
        text = "<?xml version=\"1.0\"?>\n<a>\n<b></a>"
        with pytest.raises(ParseError) as excinfo:
            transpose_document(text, 0)
        assert excinfo.value.line == 3
        assert excinfo.value.column is not None

    def test_empty_document(self):
        """Empty text is not a document."""
        with pytest.raises(ParseError):
            transpose_document("", 0)

    def test_single_use(self):
        """A rewriter performs one rewrite only."""
        rewriter = StreamingRewriter(0)
        rewriter.rewrite("<a/>")
        with pytest.raises(RuntimeError):
            rewriter.rewrite("<a/>")


class TestMusic21CrossCheck:
    """Rewritten scores read back correctly with music21."""

    def test_transposed_pitches(self, simple_score):
        """Every note moves by the interval."""
        original = _midi_numbers(simple_score)
        for semitones in (1, 5, -4):
            assert _midi_numbers(transpose_document(simple_score, semitones)) == \
                [m + semitones for m in original]

    def test_transposed_key(self, simple_score):
        """The key signature moves with the notes."""
        score = converter.parseData(transpose_document(simple_score, 7), format="musicxml")
        signature = score.recurse().getElementsByClass(key.KeySignature).first()
        assert signature.sharps == 1

    def test_minor_key_and_chords(self, duet_score):
        """Two parts, a minor key and a slash chord."""
        result = transpose_document(duet_score, 2)

        assert "<key><fifths>-1</fifths><mode>minor</mode></key>" in result
        assert "<root><root-step>F</root-step></root>" in result
        assert "<bass><bass-step>A</bass-step></bass>" in result
        assert "<accidental>natural</accidental>" in result
        assert _midi_numbers(result) == [m + 2 for m in _midi_numbers(duet_score)]
