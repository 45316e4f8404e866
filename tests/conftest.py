"""
Shared fixtures for MusicXML Transposer tests.
"""

import pytest


SIMPLE_SCORE = """<?xml version="1.0" encoding="UTF-8" standalone="no"?>
<!DOCTYPE score-partwise PUBLIC "-//Recordare//DTD MusicXML 4.0 Partwise//EN" "http://www.musicxml.org/dtds/partwise.dtd">
<score-partwise version="4.0">
  <part-list>
    <score-part id="P1">
      <part-name>Melody</part-name>
    </score-part>
  </part-list>
  <part id="P1">
    <measure number="1">
      <attributes>
        <divisions>1</divisions>
        <key>
          <fifths>0</fifths>
          <mode>major</mode>
        </key>
        <time>
          <beats>4</beats>
          <beat-type>4</beat-type>
        </time>
        <clef>
          <sign>G</sign>
          <line>2</line>
        </clef>
      </attributes>
      <harmony>
        <root>
          <root-step>C</root-step>
        </root>
        <kind>major</kind>
      </harmony>
      <note>
        <pitch>
          <step>C</step>
          <octave>4</octave>
        </pitch>
        <duration>2</duration>
        <type>half</type>
      </note>
      <note>
        <pitch>
          <step>F</step>
          <alter>1</alter>
          <octave>4</octave>
        </pitch>
        <duration>2</duration>
        <type>half</type>
        <accidental>sharp</accidental>
      </note>
    </measure>
    <measure number="2">
      <note>
        <pitch>
          <step>B</step>
          <octave>4</octave>
        </pitch>
        <duration>4</duration>
        <type>whole</type>
      </note>
      <barline location="right">
        <bar-style>light-heavy</bar-style>
      </barline>
    </measure>
  </part>
</score-partwise>
"""

# Two parts, a minor key, a slash chord and a forward repeat
DUET_SCORE = """<?xml version="1.0" encoding="UTF-8"?>
<score-partwise version="4.0">
  <part-list>
    <score-part id="P1"><part-name>Flute</part-name></score-part>
    <score-part id="P2"><part-name>Bass</part-name></score-part>
  </part-list>
  <part id="P1">
    <measure number="1">
      <barline location="left">
        <bar-style>heavy-light</bar-style>
        <repeat direction="forward"/>
      </barline>
      <attributes>
        <divisions>1</divisions>
        <key><fifths>-3</fifths><mode>minor</mode></key>
      </attributes>
      <harmony>
        <root><root-step>E</root-step><root-alter>-1</root-alter></root>
        <kind>major</kind>
        <bass><bass-step>G</bass-step></bass>
      </harmony>
      <note>
        <pitch><step>E</step><alter>-1</alter><octave>5</octave></pitch>
        <duration>4</duration>
        <type>whole</type>
        <accidental>flat</accidental>
      </note>
    </measure>
  </part>
  <part id="P2">
    <measure number="1">
      <note>
        <pitch><step>C</step><octave>3</octave></pitch>
        <duration>4</duration>
        <type>whole</type>
      </note>
    </measure>
  </part>
</score-partwise>
"""


@pytest.fixture
def simple_score():
    """One part, two measures, C major, a chord symbol and an accidental."""
    return SIMPLE_SCORE


@pytest.fixture
def duet_score():
    """Two parts in C minor with a slash chord."""
    return DUET_SCORE


@pytest.fixture
def score_file(tmp_path):
    """SIMPLE_SCORE written to disk."""
    path = tmp_path / "song.musicxml"
    path.write_text(SIMPLE_SCORE, encoding="utf-8")
    return path


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the configuration at an empty directory and drop the cached instance."""
    from musicxml_transposer import config as config_module

    config_dir = tmp_path / "config"
    monkeypatch.setenv(config_module.CONFIG_HOME_ENV, str(config_dir))
    monkeypatch.setattr(config_module, "_config", None)
    return config_dir
