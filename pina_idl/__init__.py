"""pina IDL extractor

A Python package for extracting interface definitions from pina Solana
programs. Scans the Rust sources with tree-sitter and emits a canonical JSON
schema describing accounts, instructions, events, errors and PDAs.
"""

__version__ = "0.1.0"

from .errors import IdlError
from .pipeline import (
    GeneratorConfig,
    IdlGenerator,
    OutputConfig,
    OutputMode,
)
from .pipeline.writer import AtomicWriter

__all__ = [
    "IdlGenerator",
    "GeneratorConfig",
    "OutputConfig",
    "OutputMode",
    "AtomicWriter",
    "IdlError",
]
