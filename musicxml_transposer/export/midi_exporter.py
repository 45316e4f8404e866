"""
MIDI Exporter - Render transposed documents to MIDI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union, Optional
from dataclasses import dataclass
import logging

from music21 import converter, tempo

from musicxml_transposer.config import MidiConfig

logger = logging.getLogger(__name__)


DEFAULT_VELOCITY = 80


@dataclass
class MidiExportOptions:
    """Options for MIDI export."""

    velocity: int = DEFAULT_VELOCITY  # Note velocity (0-127)
    tempo: Optional[int] = None  # Override tempo (BPM), None = use score tempo

    def __post_init__(self):
        # Validate velocity
        self.velocity = max(0, min(127, self.velocity))

    @classmethod
    def from_config(cls, config: MidiConfig) -> "MidiExportOptions":
        return cls(velocity=config.velocity, tempo=config.tempo)


class MidiExporter:
    """
    Export MusicXML documents to MIDI format.

    The document is parsed with music21 and written with its built-in
    MIDI export. Only playback is affected by the options; the
    MusicXML text itself is never changed.
    """

    def __init__(self, options: Optional[MidiExportOptions] = None):
        """
        Initialize MIDI exporter.

        Args:
            options: Export options, or None for defaults
        """
        self.options = options or MidiExportOptions()

    def to_stream(self, text: str):
        """Parse MusicXML text into a music21 score with options applied."""
        m21_score = converter.parseData(text, format="musicxml")

        # Apply tempo override if specified
        if self.options.tempo:
            # Remove existing tempo marks
            for t in list(m21_score.recurse().getElementsByClass(tempo.MetronomeMark)):
                t.activeSite.remove(t)

            # Add new tempo
            mm = tempo.MetronomeMark(number=self.options.tempo)
            m21_score.insert(0, mm)

        # Apply velocity if specified (non-default)
        if self.options.velocity != DEFAULT_VELOCITY:
            for n in m21_score.recurse().notes:
                n.volume.velocity = self.options.velocity

        return m21_score

    def export(self, text: str, output_path: Union[str, Path]) -> Path:
        """
        Export a MusicXML document to MIDI format.

        Args:
            text: MusicXML document text
            output_path: Output file path (.mid or .midi)

        Returns:
            Path to created MIDI file
        """
        output_path = Path(output_path)

        # Ensure .mid extension
        if output_path.suffix.lower() not in [".mid", ".midi"]:
            output_path = output_path.with_suffix(".mid")

        # Create output directory if needed
        output_path.parent.mkdir(parents=True, exist_ok=True)

        self.to_stream(text).write("midi", fp=str(output_path))

        logger.info(f"Exported MIDI to: {output_path}")
        return output_path

    @staticmethod
    def get_supported_extensions() -> list:
        """Get list of supported file extensions."""
        return [".mid", ".midi"]
