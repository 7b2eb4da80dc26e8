"""rfcpath - RFC 9535 JSONPath queries over decoded JSON documents."""

from rfcpath.query import (
    compile_query,
    format_normalized_path,
    is_valid_query,
    parse_query,
    query_nodes,
    query_values,
)
from rfcpath.query_language import (
    NOTHING,
    CompiledQuery,
    Node,
    NodeList,
    QueryLanguageError,
    QueryLexError,
    QueryLimitError,
    QueryOptions,
    QueryParseError,
    QueryRuntimeError,
    QueryTypeError,
)


__version__ = "0.1.0"

__all__ = [
    "NOTHING",
    "CompiledQuery",
    "Node",
    "NodeList",
    "QueryLanguageError",
    "QueryLexError",
    "QueryLimitError",
    "QueryOptions",
    "QueryParseError",
    "QueryRuntimeError",
    "QueryTypeError",
    "__version__",
    "compile_query",
    "format_normalized_path",
    "is_valid_query",
    "parse_query",
    "query_nodes",
    "query_values",
]
