"""Compiler entrypoints for query language."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rfcpath.query_language.ast import Query
from rfcpath.query_language.errors import QueryRuntimeError
from rfcpath.query_language.options import DEFAULT_OPTIONS, QueryOptions
from rfcpath.query_language.parser import parse_query
from rfcpath.query_language.runtime import NodeList, evaluate_query


logger = logging.getLogger("rfcpath")


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """Parsed query bound to the options it runs with.

    The handle is immutable, so one instance can be evaluated against any
    number of documents, including from several threads at once.
    """

    query: Query
    options: QueryOptions = DEFAULT_OPTIONS
    text: str | None = None

    def run(self, document: object) -> NodeList | None:
        """Evaluate against a document.

        Returns:
            Selected nodes, or None when a limit was exceeded in tolerant mode

        Raises:
            QueryRuntimeError: If evaluation fails and options.throw_on_error is set
        """
        try:
            return evaluate_query(self.query, document, self.options)
        except QueryRuntimeError as exc:
            if self.text is not None:
                exc.with_query(self.text)
            if self.options.throw_on_error:
                raise
            logger.debug("Query evaluation failed: %s", exc.message)
            return None

    def values(self, document: object) -> list[object] | None:
        """Evaluate and return only the selected values."""
        nodes = self.run(document)
        return None if nodes is None else nodes.values()

    def paths(self, document: object) -> list[str] | None:
        """Evaluate and return only the normalized paths."""
        nodes = self.run(document)
        return None if nodes is None else nodes.paths()

    def __call__(self, document: object) -> NodeList | None:
        return self.run(document)


def compile_expr(query: Query, options: QueryOptions = DEFAULT_OPTIONS) -> CompiledQuery:
    """Compile a parsed query into a reusable handle."""
    return CompiledQuery(query, options)


def compile_query_text(query: str, options: QueryOptions = DEFAULT_OPTIONS) -> CompiledQuery:
    """Parse and compile query text."""
    parsed = parse_query(query, options.max_expression_depth)
    logger.debug("Compiled query %s", query)
    return CompiledQuery(parsed, options, query)
