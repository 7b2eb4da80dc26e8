"""Public entry points for evaluating JSONPath queries.

Every function here has a tolerant mode, where invalid queries and exceeded
limits produce None, and a strict mode, where the structured
``QueryLanguageError`` is raised to the caller.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from rfcpath.query_language import parser
from rfcpath.query_language.ast import Query
from rfcpath.query_language.compiler import CompiledQuery, compile_expr, compile_query_text
from rfcpath.query_language.errors import QueryLanguageError
from rfcpath.query_language.options import DEFAULT_OPTIONS, QueryOptions
from rfcpath.query_language.paths import format_normalized_path as _format_path
from rfcpath.query_language.runtime import NodeList


logger = logging.getLogger("rfcpath")


def _resolve_options(options: QueryOptions | None, throw_on_error: bool | None) -> QueryOptions:
    resolved = DEFAULT_OPTIONS if options is None else options
    if throw_on_error is not None and throw_on_error != resolved.throw_on_error:
        resolved = dataclasses.replace(resolved, throw_on_error=throw_on_error)
    return resolved


def parse_query(
    text: str,
    options: QueryOptions | None = None,
    *,
    throw_on_error: bool | None = None,
) -> Query | None:
    """Parse query text into an AST.

    Args:
        text: JSONPath query text
        options: Parsing options, only max_expression_depth and throw_on_error apply
        throw_on_error: Overrides options.throw_on_error when given

    Returns:
        Parsed query, or None when the text is invalid in tolerant mode
    """
    resolved = _resolve_options(options, throw_on_error)
    try:
        return parser.parse_query(text, resolved.max_expression_depth)
    except QueryLanguageError as exc:
        if resolved.throw_on_error:
            raise
        logger.debug("Rejected query %r: %s", text, exc.message)
        return None


def is_valid_query(text: str, options: QueryOptions | None = None) -> bool:
    """Check whether text is a well-formed and well-typed query."""
    return parse_query(text, options, throw_on_error=False) is not None


def compile_query(
    text: str | Query,
    options: QueryOptions | None = None,
    *,
    throw_on_error: bool | None = None,
) -> CompiledQuery | None:
    """Parse once and return a handle that can be run against many documents.

    Returns:
        Compiled query, or None when the text is invalid in tolerant mode
    """
    resolved = _resolve_options(options, throw_on_error)
    if isinstance(text, Query):
        return compile_expr(text, resolved)
    try:
        return compile_query_text(text, resolved)
    except QueryLanguageError as exc:
        if resolved.throw_on_error:
            raise
        logger.debug("Rejected query %r: %s", text, exc.message)
        return None


def query_nodes(
    document: object,
    query: str | Query,
    options: QueryOptions | None = None,
    *,
    throw_on_error: bool | None = None,
) -> NodeList | None:
    """Evaluate a query and return the selected nodes with their locations.

    Args:
        document: Decoded JSON value
        query: Query text or an already parsed query
        options: Evaluation limits and strictness
        throw_on_error: Overrides options.throw_on_error when given

    Returns:
        Selected nodes, or None on failure in tolerant mode
    """
    compiled = compile_query(query, options, throw_on_error=throw_on_error)
    if compiled is None:
        return None
    return compiled.run(document)


def query_values(
    document: object,
    query: str | Query,
    options: QueryOptions | None = None,
    *,
    throw_on_error: bool | None = None,
) -> list[object] | None:
    """Evaluate a query and return the selected values.

    Returns:
        Selected values in result order, or None on failure in tolerant mode
    """
    nodes = query_nodes(document, query, options, throw_on_error=throw_on_error)
    return None if nodes is None else nodes.values()


def format_normalized_path(steps: Iterable[str | int]) -> str:
    """Render member names and array indices as a normalized path string."""
    return _format_path(steps)
