"""Validate command for checking JSONPath query syntax and typing."""

from __future__ import annotations

import typer
from rich.console import Console

from rfcpath import config as config_module
from rfcpath.color import bright_green, bright_red, escape_text, should_use_color
from rfcpath.output_format import build_console
from rfcpath.query import parse_query
from rfcpath.query_language import QueryLanguageError, format_query_error


def validate_query(console: Console, query: str, color_enabled: bool) -> bool:
    """Print the verdict for one query and return whether it is valid."""
    query_text = config_module.resolve_saved_query(query)
    try:
        parse_query(query_text, throw_on_error=True)
    except QueryLanguageError as exc:
        console.print(
            f"{bright_red('invalid', color_enabled)} {escape_text(query, color_enabled)}",
            markup=color_enabled,
        )
        console.print(escape_text(format_query_error(exc), color_enabled), markup=color_enabled)
        return False

    console.print(
        f"{bright_green('valid', color_enabled)} {escape_text(query, color_enabled)}",
        markup=color_enabled,
    )
    return True


def register(app: typer.Typer) -> None:
    """Register the validate command."""

    @app.command("validate")
    def validate_command(
        queries: list[str] = typer.Argument(  # noqa: B008
            ..., metavar="QUERY", help="JSONPath queries or saved query names"
        ),
        config: str = typer.Option(
            config_module.DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
    ) -> None:
        """Check that queries are well-formed and well-typed."""
        del config
        color_enabled = should_use_color(color_flag)
        console = build_console(color_enabled)
        results = [validate_query(console, query, color_enabled) for query in queries]
        if not all(results):
            raise typer.Exit(code=1)
