"""
Export module for MusicXML Transposer.

Provides writers for the supported output formats:
- MusicXML (byte-for-byte as produced by the rewriter)
- MIDI (via music21)
"""

from musicxml_transposer.export.midi_exporter import MidiExporter, MidiExportOptions
from musicxml_transposer.export.musicxml_exporter import (
    MusicXMLExporter,
    MusicXMLExportOptions,
    default_output_path,
    key_file_name,
    load_document,
)

__all__ = [
    "MidiExporter",
    "MidiExportOptions",
    "MusicXMLExporter",
    "MusicXMLExportOptions",
    "default_output_path",
    "key_file_name",
    "load_document",
]
