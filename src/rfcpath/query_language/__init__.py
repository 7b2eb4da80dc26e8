"""Public API for query language lexer/parser/compiler/runtime."""

from rfcpath.query_language.builtins import BUILTIN_FUNCTIONS, NOTHING, FunctionSignature
from rfcpath.query_language.compiler import CompiledQuery, compile_expr, compile_query_text
from rfcpath.query_language.errors import (
    QueryLanguageError,
    QueryLexError,
    QueryLimitError,
    QueryParseError,
    QueryRuntimeError,
    QueryTypeError,
    format_query_error,
)
from rfcpath.query_language.lexer import tokenize
from rfcpath.query_language.options import DEFAULT_OPTIONS, QueryOptions
from rfcpath.query_language.parser import parse, parse_query
from rfcpath.query_language.paths import format_normalized_path
from rfcpath.query_language.runtime import EvalContext, Node, NodeList, evaluate_query


__all__ = [
    "BUILTIN_FUNCTIONS",
    "DEFAULT_OPTIONS",
    "NOTHING",
    "CompiledQuery",
    "EvalContext",
    "FunctionSignature",
    "Node",
    "NodeList",
    "QueryLanguageError",
    "QueryLexError",
    "QueryLimitError",
    "QueryOptions",
    "QueryParseError",
    "QueryRuntimeError",
    "QueryTypeError",
    "compile_expr",
    "compile_query_text",
    "evaluate_query",
    "format_normalized_path",
    "format_query_error",
    "parse",
    "parse_query",
    "tokenize",
]
