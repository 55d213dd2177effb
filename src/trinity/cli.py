"""
Trinity CLI.

Terminal front-end for the expression engine:

- eval: evaluate expressions in one session and print the values
- repl: interactive session with ``:vars``, ``:reset`` and ``:quit``
- tokens / ast / check: inspect how an expression is read
"""

from __future__ import annotations

import json
import logging
import platform
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table
from rich.text import Text

from trinity import __version__
from trinity.core.config import EngineConfig, load_config
from trinity.core.errors import ExpressionError
from trinity.core.expression_lang import (
    Environment,
    evaluate,
    infer_kind,
    parse_expr,
    tokenize,
)
from trinity.core.ir.expressions import Expr
from trinity.core.ir.values import Value

logger = logging.getLogger(__name__)

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)

REPL_PROMPT = "trinity> "


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"Trinity version {__version__}")
        typer.echo(f"  Python:        {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()


app = typer.Typer(
    help="""Trinity - matrix and vector expression language

Examples:
  trinity eval "A = rot(90)" "A [1; 0]"
  trinity check "(A! v!)?"
  trinity repl
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and environment information",
        ),
    ] = None,
) -> None:
    """Trinity CLI main callback for global options."""


# =============================================================================
# Helpers
# =============================================================================


def _configure(config_path: Path | None, verbose: bool) -> EngineConfig:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        err_console.print(Text(f"Cannot load configuration: {e}", style="red"))
        raise typer.Exit(1) from e
    logger.debug("Using %s", config)
    return config


def _print_value(value: Value) -> None:
    console.print(Text(str(value)))


def _print_error(error: ExpressionError, source: str) -> None:
    err_console.print(Text(error.format(source), style="red"))


def _parse_or_exit(source: str, config: EngineConfig) -> Expr:
    try:
        return parse_expr(source, config)
    except ExpressionError as e:
        _print_error(e, source)
        raise typer.Exit(1) from e


def _ast_to_dict(node: Any) -> Any:
    """Plain-data view of an AST, tagging each node with its type."""
    if isinstance(node, BaseModel):
        data: dict[str, Any] = {"node": type(node).__name__}
        for name in type(node).model_fields:
            data[name] = _ast_to_dict(getattr(node, name))
        return data
    if isinstance(node, tuple):
        return [_ast_to_dict(item) for item in node]
    if isinstance(node, str):
        return str(node)
    return node


# =============================================================================
# Commands
# =============================================================================


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to a trinity.toml file"),
]
VerboseOption = Annotated[
    bool, typer.Option("--verbose", help="Log parser and evaluator activity")
]


@app.command(name="eval")
def eval_command(
    expressions: Annotated[list[str], typer.Argument(help="Expressions, evaluated in order")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Evaluate expressions in one session and print each value.

    Stops at the first error and exits with status 1.
    """
    config = _configure(config_path, verbose)
    env = Environment()
    for source in expressions:
        try:
            value = evaluate(parse_expr(source, config), env, config=config)
        except ExpressionError as e:
            _print_error(e, source)
            raise typer.Exit(1) from e
        _print_value(value)


@app.command()
def repl(
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Start an interactive session.

    Commands: :vars lists bindings, :reset clears them, :quit exits.
    """
    config = _configure(config_path, verbose)
    env = Environment()

    while True:
        try:
            line = console.input(REPL_PROMPT)
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        source = line.strip()
        if not source:
            continue
        if source in (":quit", ":q", ":exit"):
            break
        if source == ":vars":
            _print_bindings(env)
            continue
        if source == ":reset":
            env.reset()
            console.print("Environment cleared.", style="dim")
            continue
        if source.startswith(":"):
            err_console.print(Text(f"Unknown command {source}", style="red"))
            continue

        try:
            value = evaluate(parse_expr(source, config), env, config=config)
        except ExpressionError as e:
            _print_error(e, source)
            continue
        _print_value(value)


def _print_bindings(env: Environment) -> None:
    if not env:
        console.print("No variables defined.", style="dim")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Value")
    for name, value in env.snapshot().items():
        table.add_row(name, value.kind.value, Text(str(value)))
    console.print(table)


@app.command()
def tokens(
    expression: Annotated[str, typer.Argument(help="Expression to tokenize")],
) -> None:
    """Show the tokens of an expression."""
    try:
        token_list = tokenize(expression)
    except ExpressionError as e:
        _print_error(e, expression)
        raise typer.Exit(1) from e

    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Text")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    for tok in token_list:
        table.add_row(tok.kind.name, Text(tok.value), str(tok.pos), str(tok.end))
    console.print(table)


@app.command()
def ast(
    expression: Annotated[str, typer.Argument(help="Expression to parse")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show the canonical form and syntax tree of an expression."""
    config = _configure(config_path, verbose)
    expr = _parse_or_exit(expression, config)
    console.print(Text(str(expr), style="bold"))
    console.print(Text(json.dumps(_ast_to_dict(expr), indent=2)))


@app.command()
def check(
    expression: Annotated[str, typer.Argument(help="Expression to check")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Infer the result kind of an expression without evaluating it.

    Variables are unknown, so their kinds show as 'any'.
    """
    config = _configure(config_path, verbose)
    expr = _parse_or_exit(expression, config)
    try:
        kind = infer_kind(expr)
    except ExpressionError as e:
        _print_error(e, expression)
        raise typer.Exit(1) from e
    console.print(Text(kind.value))


def main() -> None:
    app(standalone_mode=True)


if __name__ == "__main__":
    main()
