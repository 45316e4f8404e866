"""
Configuration module for MusicXML Transposer.

Handles default transposition settings, output naming and MIDI export
preferences, stored as JSON in the user's home directory.
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)


CONFIG_HOME_ENV = "MUSICXML_TRANSPOSER_HOME"


def get_default_config_dir() -> Path:
    """Directory holding config.json (overridable via environment)."""
    override = os.environ.get(CONFIG_HOME_ENV)
    if override:
        return Path(override)
    return Path.home() / ".musicxml_transposer"


@dataclass
class TransposeConfig:
    """Configuration for transposition."""
    key_order: str = "chromatic"  # "chromatic" or "circleOfFourths"
    combined_score: bool = False  # all keys in one score vs. twelve files
    max_workers: int = 1  # parallel rewrites for all-keys (1 = sequential)


@dataclass
class OutputConfig:
    """Configuration for written files."""
    suffix: str = "_transposed"
    extension: str = ".musicxml"  # ".musicxml" or ".xml"
    overwrite: bool = True


@dataclass
class MidiConfig:
    """Configuration for MIDI export."""
    enabled: bool = False
    velocity: int = 80
    tempo: Optional[int] = None  # BPM override, None = use score tempo


@dataclass
class Config:
    """
    Main configuration class for MusicXML Transposer.

    Handles loading/saving settings and keeps the recent files list.
    """

    transpose: TransposeConfig = field(default_factory=TransposeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    midi: MidiConfig = field(default_factory=MidiConfig)

    # Recent files
    recent_files: list = field(default_factory=list)
    recent_files_max: int = 10

    # Application directories
    _config_dir: Path = field(default_factory=get_default_config_dir)

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def config_file(self) -> Path:
        return self._config_dir / "config.json"

    def save(self) -> None:
        """Save configuration to disk."""
        data = {
            "transpose": asdict(self.transpose),
            "output": asdict(self.output),
            "midi": asdict(self.midi),
            "recent_files": self.recent_files[:self.recent_files_max],
        }

        self._config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(cls, config_dir: Optional[Union[str, Path]] = None) -> "Config":
        """Load configuration from disk or create default."""
        config = cls() if config_dir is None else cls(_config_dir=Path(config_dir))

        if config.config_file.exists():
            try:
                with open(config.config_file, "r") as f:
                    data = json.load(f)

                if "transpose" in data:
                    config.transpose = TransposeConfig(**data["transpose"])
                if "output" in data:
                    config.output = OutputConfig(**data["output"])
                if "midi" in data:
                    config.midi = MidiConfig(**data["midi"])

                config.recent_files = data.get("recent_files", [])

            except (json.JSONDecodeError, TypeError, KeyError) as e:
                logger.warning(f"Could not load config file: {e}")

        return config

    def add_recent_file(self, filepath: Union[str, Path]) -> None:
        """Add a file to recent files list."""
        filepath = str(filepath)

        # Remove if already exists
        if filepath in self.recent_files:
            self.recent_files.remove(filepath)

        # Add to front
        self.recent_files.insert(0, filepath)

        # Trim to max length
        self.recent_files = self.recent_files[:self.recent_files_max]

        self.save()


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _config
    _config = Config()
    _config.save()
