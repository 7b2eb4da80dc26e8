"""Registry of built-in filter functions and their type contracts."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias


if TYPE_CHECKING:
    from rfcpath.query_language.runtime import EvalContext, Node


class _Nothing:
    """Sentinel for the absence of a value."""

    _instance: _Nothing | None = None

    def __new__(cls) -> _Nothing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Nothing"

    def __bool__(self) -> bool:
        return False


NOTHING = _Nothing()


class FunctionType(StrEnum):
    """Declared parameter and result types of filter functions."""

    VALUE = "ValueType"
    LOGICAL = "LogicalType"
    NODES = "NodesType"


FunctionImplementation: TypeAlias = "Callable[[tuple[object, ...], EvalContext], object]"


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """Declared contract and implementation of one filter function."""

    name: str
    parameters: tuple[FunctionType, ...]
    result: FunctionType
    implementation: FunctionImplementation

    @property
    def arity(self) -> int:
        return len(self.parameters)


def utf16_length(text: str) -> int:
    """Count UTF-16 code units of text."""
    return len(text) + sum(1 for char in text if ord(char) > 0xFFFF)


def _func_length(arguments: tuple[object, ...], context: EvalContext) -> object:
    del context
    (value,) = arguments
    if isinstance(value, str):
        return utf16_length(value)
    if isinstance(value, list | dict):
        return len(value)
    return NOTHING


def _func_count(arguments: tuple[object, ...], context: EvalContext) -> object:
    del context
    (nodes,) = arguments
    return len(_as_nodes(nodes))


def _func_match(arguments: tuple[object, ...], context: EvalContext) -> object:
    value, pattern = arguments
    if not isinstance(value, str) or not isinstance(pattern, str):
        return False
    return context.regex.matches(pattern, value, anchored=True)


def _func_search(arguments: tuple[object, ...], context: EvalContext) -> object:
    value, pattern = arguments
    if not isinstance(value, str) or not isinstance(pattern, str):
        return False
    return context.regex.matches(pattern, value, anchored=False)


def _func_value(arguments: tuple[object, ...], context: EvalContext) -> object:
    del context
    nodes = _as_nodes(arguments[0])
    if len(nodes) == 1:
        return nodes[0].value
    return NOTHING


def _as_nodes(value: object) -> Sequence[Node]:
    if isinstance(value, list):
        return value
    return ()


BUILTIN_FUNCTIONS: dict[str, FunctionSignature] = {
    "length": FunctionSignature(
        "length", (FunctionType.VALUE,), FunctionType.VALUE, _func_length
    ),
    "count": FunctionSignature(
        "count", (FunctionType.NODES,), FunctionType.VALUE, _func_count
    ),
    "match": FunctionSignature(
        "match", (FunctionType.VALUE, FunctionType.VALUE), FunctionType.LOGICAL, _func_match
    ),
    "search": FunctionSignature(
        "search", (FunctionType.VALUE, FunctionType.VALUE), FunctionType.LOGICAL, _func_search
    ),
    "value": FunctionSignature(
        "value", (FunctionType.NODES,), FunctionType.VALUE, _func_value
    ),
}


def get_function(name: str) -> FunctionSignature | None:
    """Look up a built-in function by name."""
    return BUILTIN_FUNCTIONS.get(name)
