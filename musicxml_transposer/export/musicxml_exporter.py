"""
MusicXML Exporter - Write transposed documents to disk.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Union
from dataclasses import dataclass
import logging

from musicxml_transposer.core.all_keys import TransposedKey
from musicxml_transposer.core.errors import InputFormatError

logger = logging.getLogger(__name__)


DEFAULT_SUFFIX = "_transposed"


@dataclass
class MusicXMLExportOptions:
    """Options for MusicXML export."""

    extension: str = ".musicxml"  # used when the target has no MusicXML extension
    overwrite: bool = True


def load_document(path: Union[str, Path]) -> str:
    """
    Read a MusicXML document as text, keeping its line endings.

    Raises:
        InputFormatError: For compressed .mxl archives and files that
            are not UTF-8
        OSError: If the file cannot be read
    """
    path = Path(path)
    if path.suffix.lower() == ".mxl":
        raise InputFormatError(
            f"Compressed MusicXML is not supported: {path.name}. "
            "Export an uncompressed .musicxml file instead"
        )

    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise InputFormatError(
            f"{path.name} is not UTF-8 encoded ({e.reason}). "
            "Re-save it as UTF-8 MusicXML"
        ) from e


def default_output_path(
    input_path: Union[str, Path],
    suffix: str = DEFAULT_SUFFIX,
) -> Path:
    """
    Output path for a single transposition, beside the input.

    Example:
        default_output_path("song.musicxml") -> song_transposed.musicxml
    """
    input_path = Path(input_path)
    return input_path.with_name(f"{input_path.stem}{suffix}{input_path.suffix}")


def key_file_name(stem: str, index: int, label: str, extension: str = ".musicxml") -> str:
    """
    File name for one key of an all-keys run.

    Example:
        key_file_name("song", 1, "C# major") -> song_02_Csharp_major.musicxml
    """
    key = label.replace("#", "sharp").replace(" ", "_")
    return f"{stem}_{index + 1:02d}_{key}{extension}"


class MusicXMLExporter:
    """
    Write MusicXML text to files.

    Documents are written exactly as produced by the rewriter: the
    text is not re-serialized and line endings are left as they are.
    """

    def __init__(self, options: Optional[MusicXMLExportOptions] = None):
        """
        Initialize MusicXML exporter.

        Args:
            options: Export options, or None for defaults
        """
        self.options = options or MusicXMLExportOptions()

    def _normalize(self, output_path: Path) -> Path:
        if output_path.suffix.lower() not in [".musicxml", ".xml"]:
            output_path = output_path.with_suffix(self.options.extension)
        return output_path

    def export(self, text: str, output_path: Union[str, Path]) -> Path:
        """
        Write one document.

        Args:
            text: MusicXML document text
            output_path: Output file path

        Returns:
            Path to created MusicXML file

        Raises:
            FileExistsError: If the file exists and overwriting is off
        """
        output_path = self._normalize(Path(output_path))

        if output_path.exists() and not self.options.overwrite:
            raise FileExistsError(f"Output file already exists: {output_path}")

        # Create output directory if needed
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)

        logger.info(f"Exported MusicXML to: {output_path}")
        return output_path

    def export_all_keys(
        self,
        results: Iterable[TransposedKey],
        directory: Union[str, Path],
        stem: str,
    ) -> List[Path]:
        """
        Write one file per key.

        Args:
            results: Transposed documents in key order
            directory: Output directory
            stem: Base file name, usually the input's stem

        Returns:
            Paths of the created files, in key order
        """
        directory = Path(directory)
        paths = []
        for index, result in enumerate(results):
            name = key_file_name(stem, index, result.label, self.options.extension)
            paths.append(self.export(result.document, directory / name))

        logger.info(f"Exported {len(paths)} keys to: {directory}")
        return paths

    @staticmethod
    def get_supported_extensions() -> list:
        """Get list of supported file extensions."""
        return [".musicxml", ".xml"]
