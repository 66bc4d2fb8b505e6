"""
amlang CLI utilities.

Shared helpers used by the CLI commands.
"""

import logging
import platform
import sys
from pathlib import Path

import typer

from amlang._version import get_version
from amlang.core.config import InterpreterConfig, find_config, load_config
from amlang.core.errors import AmError


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        python_version = platform.python_version()
        python_impl = platform.python_implementation()

        typer.echo(f"amlang version {get_version()}")
        typer.echo(f"  Python:        {python_impl} {python_version}")
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send interpreter logs to stderr; DEBUG with --verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def resolve_config(explicit: Path | None, source_file: Path) -> InterpreterConfig:
    """Load --config if given, else an am.toml beside the source file, else defaults."""
    path = explicit if explicit is not None else find_config(source_file.parent)
    if path is None:
        return InterpreterConfig()
    return load_config(path)


def format_error(error: AmError) -> str:
    """One-line header plus location/snippet, as printed to stderr."""
    kind = getattr(error, "kind", None)
    header = f"{error.label} error" + (f" [{kind}]" if kind else "")
    return f"{header}: {error}"
