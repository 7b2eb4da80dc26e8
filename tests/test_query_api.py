"""Tests for the public query API."""

from __future__ import annotations

import logging

import pytest

import rfcpath
from rfcpath import (
    CompiledQuery,
    QueryLimitError,
    QueryOptions,
    QueryParseError,
    QueryTypeError,
    compile_query,
    is_valid_query,
    parse_query,
    query_nodes,
    query_values,
)
from rfcpath.query_language import format_query_error
from rfcpath.query_language.ast import Query


def test_query_values_and_nodes(bookstore: dict[str, object]) -> None:
    """query_values and query_nodes should agree on order."""
    values = query_values(bookstore, "$.store.book[?@.price < 10].title")
    nodes = query_nodes(bookstore, "$.store.book[?@.price < 10].title")

    assert values == ["Sayings of the Century", "Moby Dick"]
    assert nodes is not None
    assert nodes.values() == values
    assert nodes.paths() == [
        "$['store']['book'][0]['title']",
        "$['store']['book'][2]['title']",
    ]


def test_query_accepts_parsed_query(bookstore: dict[str, object]) -> None:
    """A pre-parsed query should be usable in place of text."""
    parsed = parse_query("$..isbn")

    assert isinstance(parsed, Query)
    assert query_values(bookstore, parsed) == ["0-553-21311-3", "0-395-19395-8"]


def test_empty_result_is_not_failure() -> None:
    """A query that selects nothing should return an empty list, not None."""
    assert query_values({"a": 1}, "$.b") == []


@pytest.mark.parametrize("text", ["$[", "$[?@.* == 1]", "", "$.a b"])
def test_tolerant_mode_returns_none(text: str) -> None:
    """Invalid queries should yield None by default."""
    assert parse_query(text) is None
    assert compile_query(text) is None
    assert query_values({}, text) is None
    assert query_nodes({}, text) is None
    assert not is_valid_query(text)


def test_strict_mode_raises_structured_errors() -> None:
    """throw_on_error should raise errors carrying position and query."""
    with pytest.raises(QueryParseError) as parse_error:
        query_values({}, "$[", throw_on_error=True)
    with pytest.raises(QueryTypeError):
        parse_query("$[?length(@.*) == 1]", throw_on_error=True)

    assert parse_error.value.query == "$["
    assert parse_error.value.position == 2


def test_throw_on_error_via_options() -> None:
    """throw_on_error should also be read from the options."""
    strict = QueryOptions(throw_on_error=True)

    with pytest.raises(QueryParseError):
        parse_query("$[", strict)
    assert parse_query("$[", strict, throw_on_error=False) is None


def test_limit_errors_in_both_modes() -> None:
    """Exceeded limits should give None or raise depending on the mode."""
    options = QueryOptions(max_nodes_visited=2)

    assert query_values([1, 2, 3], "$[*]", options) is None
    with pytest.raises(QueryLimitError) as exc_info:
        query_values([1, 2, 3], "$[*]", options, throw_on_error=True)

    assert exc_info.value.limit == "maxNodesVisited"
    assert exc_info.value.query == "$[*]"


def test_is_valid_query_never_raises() -> None:
    """is_valid_query should ignore throw_on_error in the options."""
    strict = QueryOptions(throw_on_error=True)

    assert is_valid_query("$.a", strict)
    assert not is_valid_query("$.a.", strict)


def test_compile_query_reuses_options() -> None:
    """Compiled queries should keep the resolved options."""
    compiled = compile_query("$.a", throw_on_error=True)

    assert isinstance(compiled, CompiledQuery)
    assert compiled.options.throw_on_error
    assert compiled.text == "$.a"
    assert compiled.values({"a": 1}) == [1]


def test_compile_query_from_parsed_query() -> None:
    """compile_query should accept an already parsed query."""
    parsed = parse_query("$[0]")

    assert parsed is not None
    compiled = compile_query(parsed)

    assert compiled is not None
    assert compiled.values(["x"]) == ["x"]


def test_format_query_error_points_at_offset() -> None:
    """Formatted errors should show a caret under the failing offset."""
    with pytest.raises(QueryParseError) as exc_info:
        parse_query("$.a[?@ = 1]", throw_on_error=True)

    formatted = format_query_error(exc_info.value)

    assert formatted.splitlines()[-2:] == ["$.a[?@ = 1]", "        ^"]


def test_tolerant_mode_logs_rejections(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Rejected queries should be logged at debug level."""
    monkeypatch.setattr(logging.getLogger("rfcpath"), "propagate", True)

    with caplog.at_level(logging.DEBUG, logger="rfcpath"):
        assert query_values({}, "$[") is None

    assert "Rejected query '$['" in caplog.text


def test_package_exports() -> None:
    """The package should expose its API and version."""
    assert rfcpath.__version__ == "0.1.0"
    assert set(rfcpath.__all__) >= {
        "compile_query",
        "format_normalized_path",
        "is_valid_query",
        "parse_query",
        "query_nodes",
        "query_values",
    }
