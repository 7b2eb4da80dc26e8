"""Query command for evaluating JSONPath queries against JSON documents."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass

import click
import typer

from rfcpath import config as config_module
from rfcpath.color import should_use_color
from rfcpath.output_format import (
    DEFAULT_OUTPUT_THEME,
    OutputFormat,
    OutputFormatError,
    build_console,
    get_query_formatter,
    print_prepared_output,
)
from rfcpath.query import compile_query
from rfcpath.query_language import (
    QueryOptions,
    QueryParseError,
    QueryRuntimeError,
    format_query_error,
)
from rfcpath.query_language.options import DEFAULT_MAX_DEPTH, DEFAULT_MAX_NODES_VISITED


logger = logging.getLogger("rfcpath")


@dataclass
class QueryArgs:
    """Arguments for the query command."""

    query: str
    file: str | None
    config: str
    color_flag: bool | None
    max_results: int
    offset: int
    out: str
    out_theme: str
    max_depth: int
    max_nodes_visited: int


def load_document(filepath: str | None) -> object:
    """Load a JSON document from a file, or from stdin when filepath is None or '-'.

    Raises:
        typer.BadParameter: If the file cannot be read or is not valid JSON
    """
    source = "stdin" if filepath in (None, "-") else f"'{filepath}'"
    try:
        if filepath in (None, "-"):
            return json.load(sys.stdin)
        with open(filepath, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as err:
        raise typer.BadParameter(f"File {source} not found") from err
    except PermissionError as err:
        raise typer.BadParameter(f"Permission denied for {source}") from err
    except json.JSONDecodeError as err:
        raise typer.BadParameter(f"Invalid JSON in {source}: {err}") from err


def run_query(args: QueryArgs) -> None:
    """Run the query command."""
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    if args.offset < 0:
        raise typer.BadParameter("--offset must be non-negative")
    if args.max_results < 0:
        raise typer.BadParameter("--max-results must be non-negative")
    if args.max_depth < 1:
        raise typer.BadParameter("--max-depth must be positive")
    if args.max_nodes_visited < 1:
        raise typer.BadParameter("--max-nodes-visited must be positive")
    try:
        formatter = get_query_formatter(args.out)
    except OutputFormatError as exc:
        raise click.UsageError(str(exc)) from exc

    options = QueryOptions(
        throw_on_error=True,
        max_depth=args.max_depth,
        max_nodes_visited=args.max_nodes_visited,
    )
    query_text = config_module.resolve_saved_query(args.query)
    try:
        compiled_query = compile_query(query_text, options)
    except QueryParseError as exc:
        raise click.UsageError(format_query_error(exc)) from exc

    document = load_document(args.file)

    try:
        nodes = compiled_query.run(document) if compiled_query is not None else None
    except QueryRuntimeError as exc:
        raise click.UsageError(str(exc)) from exc
    if nodes is None:
        raise click.UsageError("Query evaluation failed")

    end = args.offset + args.max_results if args.max_results else None
    window = nodes[args.offset : end]
    logger.info("Selected %d nodes, displaying %d", len(nodes), len(window))

    try:
        prepared_output = formatter.prepare(window, color_enabled, args.out_theme)
    except OutputFormatError as exc:
        raise click.UsageError(str(exc)) from exc

    print_prepared_output(console, prepared_output)


def register(app: typer.Typer) -> None:
    """Register the query command."""

    @app.command("query")
    def query_command(  # noqa: PLR0913
        query: str = typer.Argument(
            ..., metavar="QUERY", help="JSONPath query or the name of a saved query"
        ),
        file: str | None = typer.Argument(
            None, metavar="FILE", help="JSON document to query, stdin when omitted or '-'"
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
        max_results: int = typer.Option(
            0,
            "--max-results",
            "-n",
            metavar="N",
            help="Maximum number of results to display, 0 for all",
        ),
        offset: int = typer.Option(
            0,
            "--offset",
            metavar="N",
            help="Number of results to skip before displaying",
        ),
        out: str = typer.Option(
            OutputFormat.VALUES,
            "--out",
            help="Output format: values, nodes, paths or json",
        ),
        out_theme: str = typer.Option(
            DEFAULT_OUTPUT_THEME,
            "--out-theme",
            help="Syntax theme for highlighted JSON output",
        ),
        max_depth: int = typer.Option(
            DEFAULT_MAX_DEPTH,
            "--max-depth",
            metavar="N",
            help="Maximum document nesting depth traversed",
        ),
        max_nodes_visited: int = typer.Option(
            DEFAULT_MAX_NODES_VISITED,
            "--max-nodes-visited",
            metavar="N",
            help="Maximum number of nodes visited during evaluation",
        ),
    ) -> None:
        """Select nodes from a JSON document with an RFC 9535 JSONPath query."""
        args = QueryArgs(
            query=query,
            file=file,
            config=config,
            color_flag=color_flag,
            max_results=max_results,
            offset=offset,
            out=out,
            out_theme=out_theme,
            max_depth=max_depth,
            max_nodes_visited=max_nodes_visited,
        )
        config_module.log_applied_config_defaults("query")
        config_module.log_command_arguments(args, "query")
        run_query(args)
