#!/usr/bin/env python
"""CLI interface for rfcpath - RFC 9535 JSONPath queries."""

from __future__ import annotations

import sys

import typer

from rfcpath import config, logging_config
from rfcpath.commands import query, validate


app = typer.Typer(
    help="Query JSON documents with RFC 9535 JSONPath expressions.",
    no_args_is_help=True,
)


DEFAULT_VERBOSE: dict[str, bool] = {"value": False}


def _resolve_verbose(verbose: bool | None) -> bool:
    if verbose is None:
        return DEFAULT_VERBOSE["value"]
    return verbose


@app.callback()
def main_callback(
    verbose: bool | None = typer.Option(
        None,
        "--verbose",
        "-v",
        help="Enable verbose logging output",
    ),
) -> None:
    """Global CLI options."""
    if verbose is None and not DEFAULT_VERBOSE["value"]:
        return
    logging_config.configure_logging(_resolve_verbose(verbose))


query.register(app)
validate.register(app)


def main() -> None:
    """Main CLI entry point."""
    try:
        loaded_config = config.load_cli_config(sys.argv)
    except typer.BadParameter as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise SystemExit(2) from exc

    defaults = loaded_config.defaults
    DEFAULT_VERBOSE["value"] = bool(defaults.pop("verbose", False))
    config.CONFIG_DEFAULTS.clear()
    config.CONFIG_DEFAULTS.update(defaults)
    config.CONFIG_SAVED_QUERIES.clear()
    config.CONFIG_SAVED_QUERIES.update(loaded_config.saved_queries)

    command = typer.main.get_command(app)
    default_map = config.build_default_map(defaults) if defaults else None
    command.main(
        args=sys.argv[1:],
        prog_name="rfcpath",
        standalone_mode=True,
        default_map=default_map,
    )


if __name__ == "__main__":
    main()
