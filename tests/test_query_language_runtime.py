"""Tests for query evaluation semantics."""

from __future__ import annotations

import pytest

from rfcpath.query_language import NOTHING, evaluate_query, parse_query
from rfcpath.query_language.errors import QueryTypeError
from rfcpath.query_language.runtime import Node, NodeList, json_kind, slice_indices


def _values(query: str, document: object) -> list[object]:
    return evaluate_query(parse_query(query), document).values()


def _paths(query: str, document: object) -> list[str]:
    return evaluate_query(parse_query(query), document).paths()


@pytest.mark.parametrize(
    ("query", "document", "expected"),
    [
        ("$", {"a": 1}, [{"a": 1}]),
        ("$.*", {"a": 1, "b": 2, "c": 3}, [1, 2, 3]),
        ("$.*", {"c": 3, "a": 1, "b": 2}, [3, 1, 2]),
        ("$[*]", [1, [2], {"x": 3}], [1, [2], {"x": 3}]),
        ("$.*", "text", []),
        ("$..a", {"a": 1, "o": {"a": 2}}, [1, 2]),
        ("$[0]", [10, 20, 30], [10]),
        ("$[-1]", [10, 20, 30], [30]),
        ("$[5]", [10, 20, 30], []),
        ("$[-4]", [10, 20, 30], []),
        ("$[0]", {"0": 1}, []),
        ("$['0']", ["a"], []),
        ("$.a", {"A": 1}, []),
        ("$['a','a']", {"a": 1}, [1, 1]),
        ("$[0, 0, -1]", [1, 2], [1, 1, 2]),
        ("$[*]['a','b']", [{"a": 1, "b": 2}, {"a": 3, "b": 4}], [1, 2, 3, 4]),
        ("$.a.b.c", {"a": {"b": {"c": None}}}, [None]),
        ("$['']", {"": 5}, [5]),
        ("$['a b']", {"a b": 6}, [6]),
    ],
)
def test_child_selectors(query: str, document: object, expected: list[object]) -> None:
    """Name, wildcard and index selectors should follow document order."""
    assert _values(query, document) == expected


@pytest.mark.parametrize(
    ("query", "expected"),
    [
        ("$[1:3]", [1, 2]),
        ("$[::-1]", [4, 3, 2, 1, 0]),
        ("$[::2]", [0, 2, 4]),
        ("$[-2:]", [3, 4]),
        ("$[:-3]", [0, 1]),
        ("$[4:1:-2]", [4, 2]),
        ("$[::0]", []),
        ("$[10:]", []),
        ("$[:-10]", []),
        ("$[-10:10]", [0, 1, 2, 3, 4]),
        ("$[3:1]", []),
        ("$[1:3:-1]", []),
        ("$[-1:-6:-1]", [4, 3, 2, 1, 0]),
    ],
)
def test_slice_selector(query: str, expected: list[int]) -> None:
    """Slices should normalize bounds for both step directions."""
    assert _values(query, [0, 1, 2, 3, 4]) == expected


def test_slice_selector_rfc_example() -> None:
    """Negative step example from RFC 9535 should match."""
    document = ["a", "b", "c", "d", "e", "f", "g"]

    assert _values("$[5:1:-2]", document) == ["f", "d"]
    assert _values("$[1:5:2]", document) == ["b", "d"]


def test_slice_on_non_array_selects_nothing() -> None:
    """Slices should only apply to arrays."""
    assert _values("$[0:2]", {"0": 1, "1": 2}) == []


@pytest.mark.parametrize(
    ("length", "start", "end", "step", "expected"),
    [
        (5, None, None, None, [0, 1, 2, 3, 4]),
        (5, None, None, -1, [4, 3, 2, 1, 0]),
        (0, None, None, -1, []),
        (0, None, None, 1, []),
        (3, 0, 3, 0, []),
        (3, -100, 100, 1, [0, 1, 2]),
        (3, 100, -100, -1, [2, 1, 0]),
    ],
)
def test_slice_indices(
    length: int, start: int | None, end: int | None, step: int | None, expected: list[int]
) -> None:
    """slice_indices should clamp bounds to the array."""
    assert list(slice_indices(length, start, end, step)) == expected


def test_descendant_segment_is_preorder() -> None:
    """Descendants should be visited node before children, in document order."""
    document = {"o": {"j": 1, "k": 2}, "a": [5, 3, [{"j": 4}, {"k": 6}]]}

    assert _values("$..j", document) == [1, 4]
    assert _values("$..[0]", document) == [5, {"j": 4}]
    assert _paths("$..*", document) == [
        "$['o']",
        "$['a']",
        "$['o']['j']",
        "$['o']['k']",
        "$['a'][0]",
        "$['a'][1]",
        "$['a'][2]",
        "$['a'][2][0]",
        "$['a'][2][1]",
        "$['a'][2][0]['j']",
        "$['a'][2][1]['k']",
    ]


def test_descendant_segment_skips_cycles() -> None:
    """Self-referencing containers should not be traversed forever."""
    document: dict[str, object] = {"name": "root"}
    document["self"] = document

    assert _values("$..name", document) == ["root"]
    assert len(_values("$..*", document)) == 2


def test_bookstore_queries(bookstore: dict[str, object]) -> None:
    """RFC 9535 bookstore examples should select the expected nodes."""
    authors = ["Nigel Rees", "Evelyn Waugh", "Herman Melville", "J. R. R. Tolkien"]

    assert _values("$.store.book[*].author", bookstore) == authors
    assert _values("$..author", bookstore) == authors
    assert len(_values("$.store.*", bookstore)) == 2
    assert _values("$.store..price", bookstore) == [8.95, 12.99, 8.99, 22.99, 399]
    assert _values("$..book[2].title", bookstore) == ["Moby Dick"]
    assert _values("$..book[-1].title", bookstore) == ["The Lord of the Rings"]
    assert _values("$..book[0,1].title", bookstore) == [
        "Sayings of the Century",
        "Sword of Honour",
    ]
    assert _values("$..book[:2].title", bookstore) == [
        "Sayings of the Century",
        "Sword of Honour",
    ]
    assert _values("$..book[?@.isbn].title", bookstore) == [
        "Moby Dick",
        "The Lord of the Rings",
    ]
    assert _values("$..book[?@.price<10].title", bookstore) == [
        "Sayings of the Century",
        "Moby Dick",
    ]
    assert len(_values("$..*", bookstore)) == 27


@pytest.mark.parametrize(
    ("query", "expected"),
    [
        (
            "$.store.book[?@.category == 'fiction' && @.price > 10].title",
            ["Sword of Honour", "The Lord of the Rings"],
        ),
        ("$.store.book[?@.price > 20 || @.price < 9].title", [
            "Sayings of the Century",
            "Moby Dick",
            "The Lord of the Rings",
        ]),
        ("$.store.book[?!@.isbn].title", ["Sayings of the Century", "Sword of Honour"]),
        ("$.store.book[?search(@.author, 'Tolk')].title", ["The Lord of the Rings"]),
        ("$.store.book[?match(@.category, 'ref.*')].title", ["Sayings of the Century"]),
        (
            "$.store.book[?length(@.title) > 15].title",
            ["Sayings of the Century", "The Lord of the Rings"],
        ),
        ("$.store.book[?value(@.isbn) == '0-553-21311-3'].title", ["Moby Dick"]),
        ("$.store.book[?@.price == $.store.book[0].price].title", ["Sayings of the Century"]),
        ("$.store[?@.color == 'red'].price", [399]),
    ],
)
def test_bookstore_filters(
    bookstore: dict[str, object], query: str, expected: list[object]
) -> None:
    """Filters over the bookstore should combine comparisons and functions."""
    assert _values(query, bookstore) == expected


def test_count_function_in_filter(bookstore: dict[str, object]) -> None:
    """count() should measure the nodelist of its argument."""
    assert _values("$[?count(@.book[*]) == 4]", bookstore) == [bookstore["store"]]
    assert _values("$[?count(@.*) == 2]", [{"a": 1, "b": 2}, {"a": 1}]) == [{"a": 1, "b": 2}]


COMPARISON_DOCUMENT = {"obj": {"x": "y"}, "arr": [2, 3], "items": [0]}


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("$.absent1 == $.absent2", True),
        ("$.absent1 <= $.absent2", True),
        ("$.absent == 'g'", False),
        ("$.absent1 != $.absent2", False),
        ("$.absent != 'g'", True),
        ("1 <= 2", True),
        ("1 > 2", False),
        ("13 == '13'", False),
        ("'a' <= 'b'", True),
        ("'a' > 'b'", False),
        ("$.obj == $.arr", False),
        ("$.obj != $.arr", True),
        ("$.obj == $.obj", True),
        ("$.obj != $.obj", False),
        ("$.arr == $.arr", True),
        ("$.arr != $.arr", False),
        ("$.obj == 17", False),
        ("$.obj != 17", True),
        ("$.obj <= $.arr", False),
        ("$.obj < $.arr", False),
        ("$.obj <= $.obj", True),
        ("$.arr <= $.arr", True),
        ("1 <= $.arr", False),
        ("1 >= $.arr", False),
        ("1 > $.arr", False),
        ("1 < $.arr", False),
        ("true <= true", True),
        ("true > true", False),
        ("true == 1", False),
        ("false == 0", False),
        ("null == null", True),
        ("null == false", False),
        ("1 == 1.0", True),
        ("1e2 == 100", True),
        ("-0 == 0", True),
        ("'b' > 'a'", True),
        ("'ab' < 'b'", True),
        ("$.arr == $.arr[*]", None),
    ],
)
def test_comparison_semantics(expression: str, expected: bool | None) -> None:
    """Comparisons should follow RFC 9535 section 2.3.5.2.2."""
    query = f"$.items[?{expression}]"
    if expected is None:
        with pytest.raises(QueryTypeError):
            parse_query(query)
        return

    assert _values(query, COMPARISON_DOCUMENT) == ([0] if expected else [])


def test_deep_equality_of_structures() -> None:
    """Objects compare unordered, arrays ordered, recursively."""
    document = {
        "a": {"x": [1, {"y": 2}], "z": None},
        "b": {"z": None, "x": [1, {"y": 2}]},
        "c": {"x": [{"y": 2}, 1], "z": None},
        "items": [0],
    }

    assert _values("$.items[?$.a == $.b]", document) == [0]
    assert _values("$.items[?$.a == $.c]", document) == []


def test_deep_equality_terminates_on_cycles() -> None:
    """Equality over self-referencing values should terminate."""
    left: list[object] = []
    left.append(left)
    right: list[object] = []
    right.append(right)

    assert _values("$.items[?$.x == $.y]", {"x": left, "y": right, "items": [0]}) == [0]


def test_numbers_never_equal_booleans() -> None:
    """bool values should not compare as numbers."""
    assert _values("$[?@ == 1]", [True, 1, 1.0, "1"]) == [1, 1.0]
    assert _values("$[?@ == true]", [True, 1]) == [True]
    assert _values("$[?@ < 2]", [False, 1, 3]) == [1]


def test_filter_string_vs_number_ordering() -> None:
    """A string operand should never satisfy < against a number."""
    document = [{"price": 5}, {"price": "cheap"}, {"price": 20}]

    assert _values("$[?@.price<10]", document) == [{"price": 5}]


def test_filter_existence_test_vs_null() -> None:
    """Existence tests should be true for null members."""
    document = [{"a": None}, {"b": 1}, {"a": False}]

    assert _values("$[?@.a]", document) == [{"a": None}, {"a": False}]
    assert _values("$[?@.a == null]", document) == [{"a": None}]


def test_filter_on_object_members() -> None:
    """Filters should apply to object member values."""
    assert _values("$[?@ > 1]", {"a": 1, "b": 2, "c": 3}) == [2, 3]


def test_filter_root_reference() -> None:
    """$ inside a filter should refer to the document root."""
    document = {"limit": 2, "values": [1, 2, 3]}

    assert _values("$.values[?@ >= $.limit]", document) == [2, 3]


def test_nested_filters() -> None:
    """Filters nested in sub-queries should bind @ to their own candidates."""
    document = [{"tags": ["a", "b"]}, {"tags": ["c"]}, {"tags": []}]

    assert _values("$[?@.tags[?@ == 'b']]", document) == [{"tags": ["a", "b"]}]


@pytest.mark.parametrize(
    ("query", "document", "expected"),
    [
        ("$[?length(@) > 0]", [1, "ab", [1, 2]], ["ab", [1, 2]]),
        ("$[?length(@) == 2]", ["\U0001f600", "ab", "a", {"x": 1, "y": 2}], [
            "\U0001f600",
            "ab",
            {"x": 1, "y": 2},
        ]),
        ("$[?length(@) == 0]", ["", [], {}, None, 0], ["", [], {}]),
        ("$[?value(@..c) == 3]", [{"c": 3}, {"c": 3, "d": {"c": 3}}], [{"c": 3}]),
        ("$[?match(@, 'a.c')]", ["abc", "xabcx", "a\nc", "a\rc"], ["abc"]),
        ("$[?search(@, 'a.c')]", ["abc", "xabcx", "a\nc"], ["abc", "xabcx"]),
        ("$[?match(@, '[')]", ["[", "a"], []),
        ("$[?match(@, 'a')]", [1, "a", ["a"]], ["a"]),
        ("$[?match(@, '^a$')]", ["a", "^a$"], ["^a$"]),
        ("$[?match(@, '\\\\p{Lu}+')]", ["ABC", "AbC"], ["ABC"]),
        ("$[?search(@, '[0-9]{3}')]", ["ab123", "12"], ["ab123"]),
        ("$[?match(@.a, @.p)]", [{"a": "xy", "p": "x."}, {"a": "xy", "p": "y"}], [
            {"a": "xy", "p": "x."},
        ]),
        ("$[?!match(@, 'b')]", ["a", "b"], ["a"]),
    ],
)
def test_builtin_functions_in_filters(query: str, document: object, expected: list[object]) -> None:
    """Built-in functions should yield Nothing or false instead of failing."""
    assert _values(query, document) == expected


def test_node_paths_follow_locations() -> None:
    """Nodes should expose normalized paths for their locations."""
    nodes = evaluate_query(parse_query("$.a[1]"), {"a": [0, {"b": 1}]})

    assert isinstance(nodes, NodeList)
    assert nodes == [Node({"b": 1}, ("a", 1))]
    assert nodes.paths() == ["$['a'][1]"]
    assert nodes[0].path == "$['a'][1]"


def test_selected_values_are_references() -> None:
    """Selected values should be the document's own objects."""
    inner = {"b": 1}
    document = {"a": inner}

    nodes = evaluate_query(parse_query("$.a"), document)

    assert nodes[0].value is inner


def test_evaluation_does_not_mutate_document(bookstore: dict[str, object]) -> None:
    """Evaluation should leave the input untouched."""
    before = repr(bookstore)

    _values("$..[?@.price > 1]", bookstore)

    assert repr(bookstore) == before


def test_nothing_sentinel() -> None:
    """NOTHING should be a falsy singleton distinct from None."""
    assert NOTHING is not None
    assert not NOTHING
    assert repr(NOTHING) == "Nothing"


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        (None, "null"),
        (True, "boolean"),
        (1, "number"),
        (1.5, "number"),
        ("x", "string"),
        ([], "array"),
        ({}, "object"),
    ],
)
def test_json_kind(value: object, kind: str) -> None:
    """json_kind should classify decoded JSON values."""
    assert json_kind(value) == kind
