"""
Cargo manifest reader.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from ..errors import IoFailure, SyntaxFailure

MANIFEST_NAME = "Cargo.toml"


def read_package_name(program_path: str | Path) -> str | None:
    """
    Return `[package].name` from the program's Cargo.toml, or None if unset.

    Raises:
        IoFailure: If the manifest cannot be read
        SyntaxFailure: If the manifest is not valid TOML
    """
    path = Path(program_path) / MANIFEST_NAME
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IoFailure(path, e) from e

    try:
        manifest = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise SyntaxFailure(path, line=getattr(e, "lineno", None), snippet=str(e)) from e

    package = manifest.get("package")
    if not isinstance(package, dict):
        return None
    name = package.get("name")
    return name if isinstance(name, str) and name else None
