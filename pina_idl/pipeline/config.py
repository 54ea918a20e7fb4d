"""
Configuration for the IDL generation pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Well-known program addresses recognized in `assert_address(&<path>)` calls.
DEFAULT_KNOWN_ADDRESSES: dict[str, str] = {
    "system::ID": "11111111111111111111111111111111",
    "token::ID": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    "token_2022::ID": "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb",
    "associated_token_account::ID": "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
}


class OutputMode(str, Enum):
    """Output mode for file generation.

    Controls behavior when the output file already exists.
    """

    ERROR_IF_EXISTS = "error"  # Default: raise error if file exists
    FORCE = "force"  # Overwrite the existing file


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        mode: How to handle existing output files
        pretty: Whether to indent the JSON output
        validate_before_write: Whether to re-parse the JSON before writing
        atomic_write: Whether to use atomic file writes
    """

    mode: OutputMode = OutputMode.ERROR_IF_EXISTS
    pretty: bool = True
    validate_before_write: bool = True
    atomic_write: bool = True


@dataclass
class GeneratorConfig:
    """Configuration options for IDL generation."""

    # Program name to use instead of the package name from Cargo.toml
    name_override: str | None = None

    # Name used when Cargo.toml has no [package] name
    fallback_name: str = "unknown_program"

    # Directory holding the Rust sources, relative to the program root
    source_dir: str = "src"

    # Glob selecting source files inside source_dir (searched recursively)
    source_glob: str = "*.rs"

    # Address paths recognized as default values for instruction accounts
    known_addresses: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_KNOWN_ADDRESSES))

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """Create a config from a dictionary."""
        config = GeneratorConfig()
        for k, v in d.items():
            if hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "name_override": self.name_override,
            "fallback_name": self.fallback_name,
            "source_dir": self.source_dir,
            "source_glob": self.source_glob,
            "known_addresses": self.known_addresses,
        }
