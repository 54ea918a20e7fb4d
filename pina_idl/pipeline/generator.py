"""
IDL generator.

Drives the pipeline for one program directory: manifest, source files,
scanner, assembler, emitter and serializer.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .. import __version__
from ..errors import IoFailure
from .analyzer import ProgramAssembler, ProgramIR
from .config import GeneratorConfig
from .emitter import RootNode, SchemaEmitter
from .manifest import read_package_name
from .scanner import DeclarationScanner
from .writer import serialize

logger = logging.getLogger(__name__)


class IdlGenerator:
    """Generates the IDL schema of a pina program.

    Example:
        generator = IdlGenerator("programs/counter")
        print(generator.generate_json())
    """

    def __init__(self, program_path: str | Path, config: GeneratorConfig | None = None):
        self.program_path = Path(program_path)
        self.config = config or GeneratorConfig()
        self._scanner = DeclarationScanner()
        self._assembler = ProgramAssembler(self.config.known_addresses)
        self._emitter = SchemaEmitter(version=__version__)

    def program_name(self) -> str:
        if self.config.name_override:
            return self.config.name_override
        return read_package_name(self.program_path) or self.config.fallback_name

    def source_files(self) -> list[Path]:
        """Rust sources under the source directory (or the program root when it has none), sorted."""
        if not self.program_path.is_dir():
            raise IoFailure(self.program_path, NotADirectoryError("program path is not a directory"))
        source_dir = self.program_path / self.config.source_dir
        if not source_dir.is_dir():
            source_dir = self.program_path
        return sorted(path for path in source_dir.rglob(self.config.source_glob) if path.is_file())

    def build_ir(self) -> ProgramIR:
        """Scan every source file and assemble the program IR."""
        name = self.program_name()
        files = self.source_files()
        logger.debug("Generating IDL for %s from %d source files", name, len(files))
        scans = [self._scanner.scan_file(path) for path in files]
        return self._assembler.assemble(name, scans)

    def generate(self) -> RootNode:
        """
        Generate the schema node tree.

        Raises:
            IdlError: On the first failure of any stage
        """
        return self._emitter.emit(self.build_ir())

    def generate_json(self, pretty: bool = True) -> str:
        """Generate the schema and serialize it to JSON text."""
        return serialize(self.generate(), pretty=pretty)
