"""
Atomic file writer for the generated schema.

Ensures that writes are atomic so an interrupted run never leaves a
truncated schema file behind.
"""

from __future__ import annotations

import json
import tempfile
from collections.abc import Callable
from pathlib import Path

from ...errors import IoFailure, SerializationFailure
from ..config import OutputConfig, OutputMode


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file
    """

    def __init__(self, config: OutputConfig | None = None, validate: Callable[[str], None] | None = None):
        """Initialize the atomic writer.

        Args:
            config: Output handling options
            validate: Optional validation function, defaults to a JSON parse check
        """
        self.config = config or OutputConfig()
        self._validate = validate or self._default_validate

    def write(self, path: str | Path, content: str) -> None:
        """Write content to a file, honoring the configured output mode.

        Raises:
            IoFailure: If the file exists in ERROR_IF_EXISTS mode, or on any OS error
            SerializationFailure: If validation fails
        """
        path = Path(path)
        if self.config.mode == OutputMode.ERROR_IF_EXISTS and path.exists():
            raise IoFailure(path, FileExistsError(f"Output file already exists: {path}. Use --force to overwrite."))

        if self.config.validate_before_write:
            self._validate(content)

        try:
            if self.config.atomic_write:
                self._write_atomic(path, content)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise IoFailure(path, e) from e

    def _write_atomic(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(path)
        except Exception:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass  # Best effort cleanup
            raise

    def _default_validate(self, content: str) -> None:
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            raise SerializationFailure(f"Generated schema is not valid JSON: {e}") from e
