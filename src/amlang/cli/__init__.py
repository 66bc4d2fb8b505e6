"""
amlang CLI package.

- commands.py: run and ast commands
- utils.py: shared utilities (version, logging, config lookup)
"""

import sys

import typer

from amlang.cli.commands import ast_command, run_command
from amlang.cli.utils import version_callback

app = typer.Typer(
    help="""amlang – interpreter for the AM language

  • run FILE   evaluate a program and print its results
  • ast FILE   print the parsed syntax tree
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
) -> None:
    """amlang CLI main callback for global options."""
    pass


app.command(name="run")(run_command)
app.command(name="ast")(ast_command)


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


__all__ = ["app", "main"]

if __name__ == "__main__":
    main(sys.argv[1:])
