"""
Cascade Configuration Module
============================

Centralized configuration management for dependency-cascade.
Supports environment variables and TOML/JSON config files.

Design Decision:
- Configuration is a singleton dataclass that can be passed through the pipeline
- Precedence is CLI flags > config file > environment > defaults
- The core graph engine never reads configuration; only loaders and the CLI do
"""

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional, Union

DEFAULT_DECLARATION_NAME = "dependencies.toml"

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


@dataclass
class ScanConfig:
    """Configuration for declaration file discovery.

    Attributes:
        declaration_file_name: File name common to every module's declaration
        ignored_dirs: Directory names never descended into
        follow_symlinks: Whether to follow symlinked directories while scanning
    """
    declaration_file_name: Optional[str] = None
    ignored_dirs: list = field(default_factory=lambda: [
        ".git",
        "node_modules",
        "target",
        ".venv",
        "__pycache__",
    ])
    follow_symlinks: bool = False

    def __post_init__(self):
        """Load the declaration name from environment if not explicitly provided."""
        if self.declaration_file_name is None:
            self.declaration_file_name = os.environ.get(
                "CASCADE_DECLARATION_NAME", DEFAULT_DECLARATION_NAME
            )


@dataclass
class GraphConfig:
    """Configuration for graph construction.

    Attributes:
        allow_cycles: Whether a cyclic dependency graph is accepted
    """
    allow_cycles: Optional[bool] = None

    def __post_init__(self):
        if self.allow_cycles is None:
            self.allow_cycles = os.environ.get("CASCADE_ALLOW_CYCLES", "").strip().lower() in _TRUTHY


@dataclass
class OutputConfig:
    """Configuration for query output.

    Attributes:
        indent: JSON indentation (None for compact single-line output)
        format: Output format for query results (json or text)
    """
    indent: Optional[int] = None
    format: str = "json"

    def __post_init__(self):
        if self.format not in ("json", "text"):
            raise ConfigError(f"Unsupported output format: {self.format}")


@dataclass
class CascadeConfig:
    """Main configuration container for dependency-cascade.

    Usage:
        config = CascadeConfig()  # Uses all defaults
        config = CascadeConfig(graph=GraphConfig(allow_cycles=True))
        config = CascadeConfig.from_file("cascade.toml")
    """
    scan: ScanConfig = field(default_factory=ScanConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    verbose: bool = False
    debug: int = 0

    @classmethod
    def from_dict(cls, config_dict: dict) -> "CascadeConfig":
        """Create configuration from a dictionary.

        Useful for loading from TOML/JSON files or CLI inputs.
        """
        try:
            return cls(
                scan=ScanConfig(**config_dict.get("scan", {})),
                graph=GraphConfig(**config_dict.get("graph", {})),
                output=OutputConfig(**config_dict.get("output", {})),
                verbose=config_dict.get("verbose", False),
                debug=config_dict.get("debug", 0),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CascadeConfig":
        """Load configuration from a TOML or JSON file.

        The format is chosen by file extension; anything other than
        ``.json`` is parsed as TOML.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Unable to read config file {path}: {e}") from e

        try:
            if path.suffix == ".json":
                data = json.loads(text)
            else:
                data = tomllib.loads(text)
        except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a table/object")
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        return asdict(self)


# Default global configuration instance
_default_config: Optional[CascadeConfig] = None


def get_config() -> CascadeConfig:
    """Get the global configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = CascadeConfig()
    return _default_config


def set_config(config: Optional[CascadeConfig]) -> None:
    """Set the global configuration instance (None resets to defaults)."""
    global _default_config
    _default_config = config
