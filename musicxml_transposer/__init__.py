"""
MusicXML Transposer

Transposes MusicXML notes, key signatures and chord symbols by a number
of semitones while leaving every other byte of the document untouched,
and generates practice copies of a melody in all twelve keys.
"""

__version__ = "1.0.0"

from musicxml_transposer.core.rewriter import transpose_document
from musicxml_transposer.core.all_keys import (
    AllKeysOrchestrator,
    transpose_to_all_keys,
    transpose_to_all_keys_combined,
)
from musicxml_transposer.config import Config

__all__ = [
    "transpose_document",
    "AllKeysOrchestrator",
    "transpose_to_all_keys",
    "transpose_to_all_keys_combined",
    "Config",
    "__version__",
]
