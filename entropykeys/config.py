"""
Entropy Keys Configuration Management

Handles loading and validation of configuration from TOML file.

Example:
    log_level = "DEBUG"
    internal_origins = ["https://portfolio.metamask.io", ""]

    [[sources]]
    id = "hot-wallet"
    name = "Hot wallet"
    primary = true

Seeds are never read from this file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

import toml

from .entropy import EntropySource


# Default configuration path
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "entropykeys" / "config.toml"

# Request origins that should not be salted
DEFAULT_INTERNAL_ORIGINS = (
    "https://portfolio.metamask.io",
    "https://portfolio-builds.metafi-dev.codefi.network",
    "https://docs.metamask.io",
    "https://developer.metamask.io",
    "",  # extension or mobile app
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class SourceConfig:
    """Entropy source exposed by the CLI's static provider."""
    id: str
    name: str = ""
    primary: bool = False

    def to_source(self) -> EntropySource:
        return EntropySource(id=self.id, name=self.name or self.id, primary=self.primary)


@dataclass
class Config:
    """
    Complete Entropy Keys configuration.
    """
    # Origins mapped to "no salt"
    internal_origins: List[str] = field(default_factory=lambda: list(DEFAULT_INTERNAL_ORIGINS))

    # Sources for the static provider, in enumeration order
    sources: List[SourceConfig] = field(default_factory=list)

    # Paths
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG_PATH)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from file.

        Args:
            config_path: Path to config file (default: ~/.config/entropykeys/config.toml)

        Returns:
            Loaded configuration; defaults if the file does not exist

        Raises:
            ValueError: If the file is not valid TOML or has bad values
        """
        path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        config = cls()
        config.config_path = path

        if not path.exists():
            return config

        try:
            data = toml.load(path)
        except toml.TomlDecodeError as e:
            raise ValueError(f"Invalid configuration file {path}: {e}") from e

        config._apply_dict(data)
        return config

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary data to config."""
        if "log_level" in data:
            self.log_level = str(data["log_level"]).upper()
        if "log_file" in data:
            self.log_file = Path(data["log_file"])

        if "internal_origins" in data:
            origins = data["internal_origins"]
            if not isinstance(origins, list):
                raise ValueError("internal_origins must be a list")
            self.internal_origins = [str(origin) for origin in origins]

        if "sources" in data:
            sources = data["sources"]
            if not isinstance(sources, list):
                raise ValueError("sources must be an array of tables")
            self.sources = []
            for s in sources:
                if not isinstance(s, dict) or "id" not in s:
                    raise ValueError("Every source needs an id")
                self.sources.append(SourceConfig(
                    id=str(s["id"]),
                    name=str(s.get("name", "")),
                    primary=bool(s.get("primary", False)),
                ))

    def entropy_sources(self) -> List[EntropySource]:
        """Configured sources as EntropySource objects."""
        return [source.to_source() for source in self.sources]

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

        ids = [source.id for source in self.sources]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate entropy source id in configuration")

        if sum(1 for source in self.sources if source.primary) > 1:
            raise ValueError("At most one entropy source may be primary")
