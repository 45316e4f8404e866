"""
Core module for MusicXML Transposer.

Contains the pitch/key arithmetic, the streaming rewriter and the
all-keys generator.
"""

from musicxml_transposer.core.errors import (
    TransposeError,
    InputFormatError,
    ParseError,
)
from musicxml_transposer.core.pitch import (
    Pitch,
    KeySignature,
    transpose_pitch,
    transpose_fifths,
)
from musicxml_transposer.core.keys import (
    KeyOrder,
    resolve_key_name,
    key_order_sequence,
)
from musicxml_transposer.core.intervals import (
    parse_interval,
    describe_interval,
    get_interval_options,
)
from musicxml_transposer.core.harmony import HarmonyRewriteState
from musicxml_transposer.core.rewriter import (
    StreamingRewriter,
    transpose_document,
)
from musicxml_transposer.core.splitter import (
    Document,
    Part,
    StructuralSplitter,
    split_document,
)
from musicxml_transposer.core.all_keys import (
    AllKeysOrchestrator,
    TransposedKey,
    transpose_to_all_keys,
    transpose_to_all_keys_combined,
)

__all__ = [
    "TransposeError",
    "InputFormatError",
    "ParseError",
    "Pitch",
    "KeySignature",
    "transpose_pitch",
    "transpose_fifths",
    "KeyOrder",
    "resolve_key_name",
    "key_order_sequence",
    "parse_interval",
    "describe_interval",
    "get_interval_options",
    "HarmonyRewriteState",
    "StreamingRewriter",
    "transpose_document",
    "Document",
    "Part",
    "StructuralSplitter",
    "split_document",
    "AllKeysOrchestrator",
    "TransposedKey",
    "transpose_to_all_keys",
    "transpose_to_all_keys_combined",
]
