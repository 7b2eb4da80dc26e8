"""AST nodes for JSONPath queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal as TypingLiteral
from typing import TypeAlias


Selector: TypeAlias = (
    "NameSelector | WildcardSelector | IndexSelector | SliceSelector | FilterSelector"
)
Segment: TypeAlias = "ChildSegment | DescendantSegment"
LogicalExpr: TypeAlias = "OrExpr | AndExpr | NotExpr | ComparisonExpr | TestExpr | FunctionExpr"
Comparable: TypeAlias = "Literal | Query | FunctionExpr"
FunctionArgument: TypeAlias = "Literal | Query | FunctionExpr | LogicalExpr"
ComparisonOperator: TypeAlias = 'TypingLiteral["==", "!=", "<", "<=", ">", ">="]'


@dataclass(frozen=True, slots=True)
class NameSelector:
    """Select an object member by name."""

    name: str


@dataclass(frozen=True, slots=True)
class WildcardSelector:
    """Select all children of an object or array."""


@dataclass(frozen=True, slots=True)
class IndexSelector:
    """Select an array element by index."""

    index: int


@dataclass(frozen=True, slots=True)
class SliceSelector:
    """Select a range of array elements."""

    start: int | None = None
    end: int | None = None
    step: int | None = None


@dataclass(frozen=True, slots=True)
class FilterSelector:
    """Select children for which a logical expression holds."""

    expression: LogicalExpr


@dataclass(frozen=True, slots=True)
class ChildSegment:
    """Apply selectors to the current nodes."""

    selectors: tuple[Selector, ...]


@dataclass(frozen=True, slots=True)
class DescendantSegment:
    """Apply selectors to the current nodes and all their descendants."""

    selectors: tuple[Selector, ...]


@dataclass(frozen=True, slots=True)
class Query:
    """Root or relative query: identifier followed by segments."""

    root: TypingLiteral["$", "@"]
    segments: tuple[Segment, ...] = ()

    @property
    def is_singular(self) -> bool:
        """Whether the query can select at most one node."""
        return all(
            isinstance(segment, ChildSegment)
            and len(segment.selectors) == 1
            and isinstance(segment.selectors[0], NameSelector | IndexSelector)
            for segment in self.segments
        )


@dataclass(frozen=True, slots=True)
class Literal:
    """JSON literal: string, number, true, false or null."""

    value: str | int | float | bool | None


@dataclass(frozen=True, slots=True)
class OrExpr:
    """Logical disjunction."""

    operands: tuple[LogicalExpr, ...]


@dataclass(frozen=True, slots=True)
class AndExpr:
    """Logical conjunction."""

    operands: tuple[LogicalExpr, ...]


@dataclass(frozen=True, slots=True)
class NotExpr:
    """Logical negation."""

    operand: LogicalExpr


@dataclass(frozen=True, slots=True)
class ComparisonExpr:
    """Comparison of two comparables."""

    operator: ComparisonOperator
    left: Comparable
    right: Comparable


@dataclass(frozen=True, slots=True)
class TestExpr:
    """Existence test: true when the query selects at least one node."""

    __test__ = False

    query: Query


@dataclass(frozen=True, slots=True)
class FunctionExpr:
    """Function extension call."""

    name: str
    arguments: tuple[FunctionArgument, ...]
