"""
Program commands: ``amlang run`` and ``amlang ast``.
"""

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.text import Text

from amlang.cli.utils import configure_logging, format_error, resolve_config
from amlang.core.errors import AmError, EvaluationError, attach_source
from amlang.core.ir.program import Statement
from amlang.core.lang.evaluator import Interpreter, StatementResult
from amlang.core.lang.parser import parse_expression, parse_source
from amlang.core.lang.values import Value, render, render_pretty, to_json

console = Console(highlight=False)


def _trace(statement: Statement, value: Value) -> None:
    typer.echo(f"[trace] {statement} ⇒ {render(value)}", err=True)


def _print_results(outputs: list[tuple[str, Value]], pretty: bool) -> None:
    for label, value in outputs:
        if pretty:
            console.print(
                Text.assemble((label, "dim"), " ⇒ ", (render_pretty(value), "bold cyan"))
            )
        else:
            typer.echo(render(value))


def _json_document(
    outputs: list[tuple[str, Value]], error: AmError | None = None
) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "results": [{"expression": label, "value": to_json(value)} for label, value in outputs]
    }
    if error is not None:
        doc["error"] = error.to_dict()
    return doc


def _expression_outputs(results: list[StatementResult]) -> list[tuple[str, Value]]:
    return [(str(r.statement), r.value) for r in results if r.is_expression]


def run_command(
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="AM source file"
    ),
    trace: bool = typer.Option(
        False, "--trace", help="Print every statement and its value to stderr"
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Human-readable output"),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON"),
    call: str | None = typer.Option(
        None, "--call", "-c", help="Evaluate one more expression after the program"
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Path to am.toml (default: beside FILE)"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log interpreter activity"),
) -> None:
    """
    Evaluate an AM program and print the value of each expression statement.
    """
    if pretty and json_output:
        raise typer.BadParameter("--pretty and --json cannot be combined")

    configure_logging(verbose)
    source = file.read_text(encoding="utf-8")
    outputs: list[tuple[str, Value]] = []

    try:
        settings = resolve_config(config, file)
        program = parse_source(source)
        interpreter = Interpreter(config=settings, trace=_trace if trace else None)
        try:
            outputs = _expression_outputs(interpreter.execute(program))
        except EvaluationError as e:
            outputs = _expression_outputs(e.partial_results)
            raise
        if call is not None:
            try:
                call_expr = parse_expression(call)
                outputs.append((call, interpreter.evaluate_expr(call_expr)))
            except EvaluationError as e:
                # Positions inside algorithm bodies refer to the program file
                if e.call_depth == 0:
                    attach_source(e, call)
                raise
            except AmError as e:
                attach_source(e, call)
                raise

    except AmError as e:
        if e.context is not None and e.context.snippet is None:
            attach_source(e, source, file)
        if json_output:
            typer.echo(json.dumps(_json_document(outputs, e), ensure_ascii=False, indent=2))
        else:
            _print_results(outputs, pretty)
        typer.echo(format_error(e), err=True)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps(_json_document(outputs), ensure_ascii=False, indent=2))
    else:
        _print_results(outputs, pretty)


def ast_command(
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="AM source file"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the AST as JSON"),
) -> None:
    """
    Parse an AM program and print its syntax tree.
    """
    source = file.read_text(encoding="utf-8")
    try:
        program = parse_source(source)
    except AmError as e:
        typer.echo(format_error(attach_source(e, source, file)), err=True)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(program.model_dump_json(indent=2, exclude_none=True))
    else:
        typer.echo(str(program))
