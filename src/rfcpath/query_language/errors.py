"""Errors for query language parsing and execution."""

from __future__ import annotations


class QueryLanguageError(Exception):
    """Base exception for query language failures."""

    def __init__(
        self,
        message: str,
        position: int | None = None,
        query: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.query = query

    def with_query(self, query: str) -> QueryLanguageError:
        """Attach the query text when it was not known at raise time."""
        if self.query is None:
            self.query = query
        return self


class QueryParseError(QueryLanguageError):
    """Raised when query text cannot be parsed."""


class QueryLexError(QueryParseError):
    """Raised when query text cannot be tokenized."""


class QueryTypeError(QueryParseError):
    """Raised when a parsed query is not well-typed."""


class QueryRuntimeError(QueryLanguageError):
    """Raised when query execution fails at runtime."""


class QueryLimitError(QueryRuntimeError):
    """Raised when evaluation exceeds a configured resource limit."""

    def __init__(self, message: str, limit: str) -> None:
        super().__init__(message)
        self.limit = limit


def format_query_error(error: QueryLanguageError) -> str:
    """Build error message with a pointer under the failing query offset."""
    if error.query is None or error.position is None:
        return error.message

    query_lines = error.query.splitlines() or [error.query]
    offset = error.position
    for line in query_lines:
        if offset <= len(line):
            pointer = " " * max(offset, 0) + "^"
            return f"{error.message}\n\n{line}\n{pointer}"
        offset -= len(line) + 1

    pointer = " " * len(query_lines[-1]) + "^"
    return f"{error.message}\n\n{query_lines[-1]}\n{pointer}"
