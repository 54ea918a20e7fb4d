"""
Project scaffolding for new pina programs.

Renders a program crate from the jinja2 templates shipped with the package.
The generated program is a small PDA counter the IDL pipeline can process.
"""

from __future__ import annotations

import logging
from pathlib import Path

import jinja2

from .errors import ScaffoldError
from .utils import snake_to_pascal_case, to_snake_case

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates" / "init"

# Placeholder program address; replace it with the address of a generated keypair before deploying
DEFAULT_PROGRAM_ID = "GJQcuWrT2f3f4KNuJcXhhwUa1ZQTYbxzzJ1hotzKu8hS"

PINA_VERSION = "0.6"

# Output file -> template name
PROJECT_FILES = {
    "Cargo.toml": "Cargo.toml.jinja2",
    "src/lib.rs": "lib.rs.jinja2",
    ".gitignore": "gitignore.jinja2",
}


def _environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        undefined=jinja2.StrictUndefined,
    )


def render_project(name: str, program_id: str = DEFAULT_PROGRAM_ID) -> dict[str, str]:
    """Render every project file for a program called `name`, keyed by relative path."""
    context = {
        "name": to_snake_case(name),
        "pascal_name": snake_to_pascal_case(name),
        "program_id": program_id,
        "pina_version": PINA_VERSION,
    }
    env = _environment()
    return {path: env.get_template(template).render(**context) for path, template in PROJECT_FILES.items()}


def init_project(path: str | Path, name: str, force: bool = False) -> list[Path]:
    """
    Create a new pina program at `path`.

    Args:
        path: Project directory, created if missing
        name: Program (crate) name
        force: Overwrite files that already exist

    Returns:
        The files written

    Raises:
        ScaffoldError: If the name is not usable, a file exists and force is off, or writing fails
    """
    if not to_snake_case(name):
        raise ScaffoldError(f"invalid program name `{name}`")

    path = Path(path)
    files = render_project(name)

    if not force:
        existing = [rel for rel in files if (path / rel).exists()]
        if existing:
            raise ScaffoldError(f"refusing to overwrite existing file {path / existing[0]} (use --force)")

    written = []
    try:
        for rel, content in files.items():
            target = path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            written.append(target)
    except OSError as e:
        raise ScaffoldError(f"failed to write project files in {path}: {e}") from e

    logger.debug("Scaffolded %s at %s", name, path)
    return written


def next_steps(path: str | Path, name: str) -> str:
    """Message printed after a successful init."""
    return "\n".join(
        [
            f"Initialized new Pina project at {path}",
            "",
            "Next steps:",
            f"  cd {path}",
            "  cargo build",
            "  pina-idl idl --path . --output idl.json",
            "",
            f"Replace the placeholder program id in src/lib.rs before deploying {to_snake_case(name)}.",
        ]
    )
