"""Evaluation limits and strictness options."""

from __future__ import annotations

from dataclasses import dataclass


DEFAULT_MAX_NODES_VISITED = 1_000_000
DEFAULT_MAX_DEPTH = 512
DEFAULT_MAX_EXPRESSION_DEPTH = 64
DEFAULT_MAX_REGEX_PATTERN_LENGTH = 1000
DEFAULT_MAX_REGEX_INPUT_LENGTH = 100_000
DEFAULT_REGEX_TIMEOUT = 1.0


@dataclass(frozen=True, slots=True)
class QueryOptions:
    """Options controlling parsing strictness and evaluation limits.

    Attributes:
        throw_on_error: Raise structured errors instead of returning None
        max_nodes_visited: Maximum number of nodes touched by one evaluation
        max_depth: Maximum document nesting depth traversed
        max_expression_depth: Maximum nesting of filter expressions and brackets
        max_regex_pattern_length: Longest accepted match/search pattern
        max_regex_input_length: Longest accepted match/search subject string
        reject_unsafe_regex: Reject patterns prone to catastrophic backtracking
        regex_timeout: Seconds allowed for one regex match, None for no limit
    """

    throw_on_error: bool = False
    max_nodes_visited: int = DEFAULT_MAX_NODES_VISITED
    max_depth: int = DEFAULT_MAX_DEPTH
    max_expression_depth: int = DEFAULT_MAX_EXPRESSION_DEPTH
    max_regex_pattern_length: int = DEFAULT_MAX_REGEX_PATTERN_LENGTH
    max_regex_input_length: int = DEFAULT_MAX_REGEX_INPUT_LENGTH
    reject_unsafe_regex: bool = True
    regex_timeout: float | None = DEFAULT_REGEX_TIMEOUT


DEFAULT_OPTIONS = QueryOptions()
