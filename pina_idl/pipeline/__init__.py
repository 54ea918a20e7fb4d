"""
Pipeline - static IDL extraction for pina programs.

1. Phase 1 (Scanner): Parse each Rust file and classify declarations
2. Phase 2 (Analyzer): Merge all files, resolve references, build IR
3. Phase 3 (Emitter): Map the IR to the schema node tree
4. Phase 4 (Writer): Serialize to JSON and write atomically
"""

from __future__ import annotations

from .config import GeneratorConfig, OutputConfig, OutputMode
from .generator import IdlGenerator

__all__ = [
    "GeneratorConfig",
    "OutputConfig",
    "OutputMode",
    "IdlGenerator",
]
