"""Output format abstraction and format-specific renderers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from rich.console import Console
from rich.syntax import Syntax

from rfcpath.color import escape_text, path_style
from rfcpath.query_language import Node


DEFAULT_OUTPUT_THEME = "github-dark"


class OutputFormat(StrEnum):
    """Supported output formats."""

    VALUES = "values"
    NODES = "nodes"
    PATHS = "paths"
    JSON = "json"


class OutputFormatError(RuntimeError):
    """Raised when output formatting fails."""


@dataclass(frozen=True)
class OutputOperation:
    """One prepared output operation."""

    kind: str
    text: str | None = None
    renderable: object | None = None
    markup: bool = False


@dataclass(frozen=True)
class PreparedOutput:
    """Prepared output operations ready for console rendering."""

    operations: tuple[OutputOperation, ...]


class QueryOutputFormatter(Protocol):
    """Formatter interface for the query command."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        """Prepare selected nodes for rendering."""
        ...


def build_console(color_enabled: bool) -> Console:
    """Build the console used for command output."""
    return Console(
        no_color=not color_enabled,
        force_terminal=True if color_enabled else None,
        highlight=False,
        soft_wrap=True,
    )


def dump_json(value: object, indent: int | None = None) -> str:
    """Serialize a result value as JSON text.

    Raises:
        OutputFormatError: If the value is not JSON serializable
    """
    try:
        return json.dumps(value, ensure_ascii=False, indent=indent)
    except (TypeError, ValueError) as exc:
        raise OutputFormatError(f"Result is not JSON serializable: {exc}") from exc


def _write_plain_output(console: Console, text: str) -> None:
    """Write plain output directly to console stream."""
    console.file.write(f"{text}\n")
    console.file.flush()


def print_prepared_output(console: Console, prepared_output: PreparedOutput) -> None:
    """Print already prepared output operations."""
    for operation in prepared_output.operations:
        if operation.kind == "plain_write":
            if operation.text is not None:
                _write_plain_output(console, operation.text)
            continue
        if operation.renderable is not None:
            console.print(operation.renderable)
            continue
        console.print(operation.text if operation.text is not None else "", markup=operation.markup)


def _normalize_syntax_theme(out_theme: str) -> str:
    """Return a valid theme name for syntax rendering."""
    normalized_theme = out_theme.strip()
    if normalized_theme:
        return normalized_theme
    return DEFAULT_OUTPUT_THEME


def _prepare_output(text: str, color_enabled: bool, out_theme: str) -> PreparedOutput:
    """Prepare JSON text with syntax highlighting when color is enabled."""
    if color_enabled:
        return PreparedOutput(
            operations=(
                OutputOperation(
                    kind="console_print",
                    renderable=Syntax(
                        text,
                        "json",
                        theme=_normalize_syntax_theme(out_theme),
                        line_numbers=False,
                        word_wrap=True,
                    ),
                ),
            )
        )
    return PreparedOutput(operations=(OutputOperation(kind="plain_write", text=text),))


def _no_results() -> PreparedOutput:
    return PreparedOutput(
        operations=(OutputOperation(kind="console_print", text="No results", markup=False),)
    )


def _lines_output(lines: list[str], color_enabled: bool) -> PreparedOutput:
    """Prepare one operation per line, markup only when color is on."""
    kind = "console_print" if color_enabled else "plain_write"
    return PreparedOutput(
        operations=tuple(
            OutputOperation(kind=kind, text=line, markup=color_enabled) for line in lines
        )
    )


class ValuesOutputFormatter:
    """One compact JSON value per line."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        del out_theme
        if not nodes:
            return _no_results()
        lines = [escape_text(dump_json(node.value), color_enabled) for node in nodes]
        return _lines_output(lines, color_enabled)


class NodesOutputFormatter:
    """Normalized path and JSON value separated by a tab."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        del out_theme
        if not nodes:
            return _no_results()
        lines = [
            f"{path_style(node.path, color_enabled)}\t"
            f"{escape_text(dump_json(node.value), color_enabled)}"
            for node in nodes
        ]
        return _lines_output(lines, color_enabled)


class PathsOutputFormatter:
    """Normalized paths only."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        del out_theme
        if not nodes:
            return _no_results()
        lines = [path_style(node.path, color_enabled) for node in nodes]
        return _lines_output(lines, color_enabled)


class JsonOutputFormatter:
    """Whole result as one JSON array."""

    def prepare(self, nodes: list[Node], color_enabled: bool, out_theme: str) -> PreparedOutput:
        text = dump_json([node.value for node in nodes], indent=2)
        return _prepare_output(text, color_enabled, out_theme)


_FORMATTERS: dict[OutputFormat, QueryOutputFormatter] = {
    OutputFormat.VALUES: ValuesOutputFormatter(),
    OutputFormat.NODES: NodesOutputFormatter(),
    OutputFormat.PATHS: PathsOutputFormatter(),
    OutputFormat.JSON: JsonOutputFormatter(),
}


def get_query_formatter(output_format: str) -> QueryOutputFormatter:
    """Return query formatter for selected output format.

    Raises:
        OutputFormatError: If the format is not supported
    """
    normalized_output = output_format.strip().lower()
    try:
        return _FORMATTERS[OutputFormat(normalized_output)]
    except ValueError as exc:
        supported = ", ".join(item.value for item in OutputFormat)
        raise OutputFormatError(
            f"Unsupported output format '{output_format}', expected one of: {supported}"
        ) from exc

