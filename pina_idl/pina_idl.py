import logging
import sys
from pathlib import Path

import click

from .errors import IdlError
from .pipeline import GeneratorConfig, IdlGenerator, OutputConfig, OutputMode
from .pipeline.writer import AtomicWriter
from .scaffold import init_project, next_steps


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def pina_idl(verbose):
    """Extract IDL schemas from pina programs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@pina_idl.command()
@click.option("--path", "-p", default=".", type=click.Path(file_okay=False, resolve_path=True), help="Program directory")
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False, resolve_path=True), help="Output file (default: stdout)")
@click.option("--name", "-n", default=None, type=str, help="Program name override")
@click.option("--pretty/--compact", default=True, help="Indent the JSON output")
@click.option("--force", "-f", is_flag=True, default=False, help="Overwrite an existing output file")
def idl(path, output, name, pretty, force):
    """Generate the IDL schema of the program at PATH."""
    config = GeneratorConfig(name_override=name)
    try:
        text = IdlGenerator(path, config).generate_json(pretty=pretty)
        if output is None:
            click.echo(text, nl=False)
        else:
            mode = OutputMode.FORCE if force else OutputMode.ERROR_IF_EXISTS
            AtomicWriter(OutputConfig(mode=mode, pretty=pretty)).write(Path(output), text)
    except IdlError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@pina_idl.command()
@click.argument("name", type=str)
@click.option("--path", "-p", default=None, type=click.Path(file_okay=False, resolve_path=True), help="Target directory (default: ./NAME)")
@click.option("--force", "-f", is_flag=True, default=False, help="Overwrite existing files")
def init(name, path, force):
    """Scaffold a new pina program named NAME."""
    target = Path(path) if path is not None else Path.cwd() / name
    try:
        init_project(target, name, force=force)
    except IdlError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(next_steps(target, name))
