"""Runtime evaluation of JSONPath queries."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from rfcpath.query_language.ast import (
    AndExpr,
    ChildSegment,
    Comparable,
    ComparisonExpr,
    DescendantSegment,
    FilterSelector,
    FunctionArgument,
    FunctionExpr,
    IndexSelector,
    Literal,
    LogicalExpr,
    NameSelector,
    NotExpr,
    OrExpr,
    Query,
    Selector,
    SliceSelector,
    TestExpr,
    WildcardSelector,
)
from rfcpath.query_language.builtins import BUILTIN_FUNCTIONS, NOTHING, FunctionType
from rfcpath.query_language.errors import QueryLimitError, QueryRuntimeError
from rfcpath.query_language.iregexp import RegexMatcher
from rfcpath.query_language.options import DEFAULT_OPTIONS, QueryOptions
from rfcpath.query_language.paths import format_normalized_path


@dataclass(frozen=True, slots=True)
class Node:
    """A selected value together with its location in the document."""

    value: object
    location: tuple[str | int, ...] = ()

    @property
    def path(self) -> str:
        """Normalized path of this node."""
        return format_normalized_path(self.location)

    def child(self, value: object, step: str | int) -> Node:
        return Node(value, (*self.location, step))


class NodeList(list[Node]):
    """Ordered result of evaluating a query."""

    def values(self) -> list[object]:
        """Return the values of all nodes in order."""
        return [node.value for node in self]

    def paths(self) -> list[str]:
        """Return the normalized paths of all nodes in order."""
        return [node.path for node in self]


@dataclass(slots=True)
class EvalContext:
    """Execution state of one query evaluation."""

    root: object
    options: QueryOptions = DEFAULT_OPTIONS
    regex: RegexMatcher = field(init=False)
    nodes_visited: int = 0

    def __post_init__(self) -> None:
        self.regex = RegexMatcher(self.options)

    def visit(self, count: int = 1) -> None:
        """Charge nodes against the visit budget."""
        self.nodes_visited += count
        limit = self.options.max_nodes_visited
        if self.nodes_visited > limit:
            raise QueryLimitError(
                f"Query evaluation exceeded maxNodesVisited ({limit})", "maxNodesVisited"
            )

    def check_depth(self, depth: int) -> None:
        """Fail when traversal goes deeper than the configured maximum."""
        limit = self.options.max_depth
        if depth > limit:
            raise QueryLimitError(
                f"Query evaluation exceeded maxDepth ({limit})", "maxDepth"
            )


def evaluate_query(
    query: Query,
    document: object,
    options: QueryOptions = DEFAULT_OPTIONS,
) -> NodeList:
    """Evaluate a root query against a decoded JSON document.

    Args:
        query: Parsed query
        document: Decoded JSON value (dict, list, str, int, float, bool or None)
        options: Evaluation limits

    Returns:
        Selected nodes in document selection order

    Raises:
        QueryLimitError: If evaluation exceeds a configured limit
    """
    context = EvalContext(document, options)
    return _run_query(query, Node(document), context)


def _run_query(query: Query, current: Node, context: EvalContext) -> NodeList:
    """Evaluate the segments of a query starting from $ or the current node."""
    start = Node(context.root) if query.root == "$" else current
    nodes: list[Node] = [start]
    for segment in query.segments:
        selected: list[Node] = []
        match segment:
            case ChildSegment(selectors=selectors):
                for node in nodes:
                    for selector in selectors:
                        selected.extend(_select(selector, node, context))
            case DescendantSegment(selectors=selectors):
                for node in nodes:
                    for descendant in _descendants(node, context):
                        for selector in selectors:
                            selected.extend(_select(selector, descendant, context))
            case _:
                raise QueryRuntimeError(f"Unsupported segment: {segment!r}")
        nodes = selected
    return NodeList(nodes)


def _children(node: Node) -> Iterator[Node]:
    """Yield the children of an object or array in document order."""
    value = node.value
    if isinstance(value, dict):
        for key, item in value.items():
            yield node.child(item, key)
    elif isinstance(value, list):
        for index, item in enumerate(value):
            yield node.child(item, index)


def _descendants(node: Node, context: EvalContext) -> Iterator[Node]:
    """Yield node and all its descendants in pre-order.

    Containers already on the current traversal path are skipped, so cyclic
    structures terminate.
    """
    active: set[int] = set()
    stack: list[tuple[Node, bool]] = [(node, False)]
    while stack:
        current, leaving = stack.pop()
        value = current.value
        if leaving:
            active.discard(id(value))
            continue

        context.check_depth(len(current.location))
        context.visit()
        yield current

        if not isinstance(value, dict | list):
            continue
        active.add(id(value))
        stack.append((current, True))
        children = [
            child
            for child in _children(current)
            if not (isinstance(child.value, dict | list) and id(child.value) in active)
        ]
        stack.extend((child, False) for child in reversed(children))


def _select(selector: Selector, node: Node, context: EvalContext) -> list[Node]:
    """Apply one selector to one node."""
    value = node.value
    result: list[Node] = []
    match selector:
        case NameSelector(name=name):
            if isinstance(value, dict) and name in value:
                result.append(node.child(value[name], name))
        case WildcardSelector():
            result.extend(_children(node))
        case IndexSelector(index=index):
            if isinstance(value, list):
                position = index if index >= 0 else len(value) + index
                if 0 <= position < len(value):
                    result.append(node.child(value[position], position))
        case SliceSelector(start=start, end=end, step=step):
            if isinstance(value, list):
                for position in slice_indices(len(value), start, end, step):
                    result.append(node.child(value[position], position))
        case FilterSelector(expression=expression):
            for child in _children(node):
                context.visit()
                if _test(expression, child, context):
                    result.append(child)
            return result
        case _:
            raise QueryRuntimeError(f"Unsupported selector: {selector!r}")
    context.visit(len(result))
    return result


def slice_indices(length: int, start: int | None, end: int | None, step: int | None) -> range:
    """Compute the array indices selected by a slice.

    Args:
        length: Array length
        start: Start bound or None for the direction default
        end: End bound or None for the direction default
        step: Step or None for 1

    Returns:
        Range of selected indices, empty when step is 0
    """
    step = 1 if step is None else step
    if step == 0:
        return range(0)

    def _normalize(index: int) -> int:
        return index if index >= 0 else length + index

    if step > 0:
        lower = min(max(_normalize(0 if start is None else start), 0), length)
        upper = min(max(_normalize(length if end is None else end), 0), length)
        return range(lower, upper, step)

    upper = min(max(_normalize(length - 1 if start is None else start), -1), length - 1)
    lower = min(max(_normalize(-length - 1 if end is None else end), -1), length - 1)
    return range(upper, lower, step)


def _test(expr: LogicalExpr, current: Node, context: EvalContext) -> bool:
    """Evaluate a logical expression with @ bound to current."""
    match expr:
        case OrExpr(operands=operands):
            return any(_test(operand, current, context) for operand in operands)
        case AndExpr(operands=operands):
            return all(_test(operand, current, context) for operand in operands)
        case NotExpr(operand=operand):
            return not _test(operand, current, context)
        case ComparisonExpr(operator=operator, left=left, right=right):
            left_value = _comparable_value(left, current, context)
            right_value = _comparable_value(right, current, context)
            return _apply_compare(operator, left_value, right_value, context)
        case TestExpr(query=query):
            return len(_run_query(query, current, context)) > 0
        case FunctionExpr():
            result = _call_function(expr, current, context)
            if isinstance(result, list):
                return len(result) > 0
            return result is True
        case _:
            raise QueryRuntimeError(f"Unsupported logical expression: {expr!r}")


def _comparable_value(value: Comparable, current: Node, context: EvalContext) -> object:
    """Resolve a comparison operand to a value or NOTHING."""
    match value:
        case Literal(value=literal):
            return literal
        case Query():
            nodes = _run_query(value, current, context)
            return nodes[0].value if len(nodes) == 1 else NOTHING
        case FunctionExpr():
            return _call_function(value, current, context)
        case _:
            raise QueryRuntimeError(f"Unsupported comparable: {value!r}")


def _call_function(expr: FunctionExpr, current: Node, context: EvalContext) -> object:
    """Evaluate arguments and dispatch to the registered implementation."""
    signature = BUILTIN_FUNCTIONS[expr.name]
    arguments = tuple(
        _argument_value(parameter, argument, current, context)
        for parameter, argument in zip(signature.parameters, expr.arguments, strict=True)
    )
    return signature.implementation(arguments, context)


def _argument_value(
    parameter: FunctionType,
    argument: FunctionArgument,
    current: Node,
    context: EvalContext,
) -> object:
    if parameter == FunctionType.LOGICAL:
        return _test(argument, current, context)  # type: ignore[arg-type]
    if isinstance(argument, Query):
        nodes = _run_query(argument, current, context)
        if parameter == FunctionType.NODES:
            return nodes
        return nodes[0].value if len(nodes) == 1 else NOTHING
    if isinstance(argument, Literal):
        return argument.value
    if isinstance(argument, FunctionExpr):
        return _call_function(argument, current, context)
    return _test(argument, current, context)


def json_kind(value: object) -> str:
    """Classify a decoded JSON value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "other"


def _apply_compare(operator: str, left: object, right: object, context: EvalContext) -> bool:
    """Apply a comparison operator following JSONPath comparison rules."""
    if operator == "==":
        return _apply_equality(left, right, context)
    if operator == "!=":
        return not _apply_equality(left, right, context)
    if operator == "<":
        return _apply_less(left, right)
    if operator == "<=":
        return _apply_less(left, right) or _apply_equality(left, right, context)
    if operator == ">":
        return _apply_less(right, left)
    if operator == ">=":
        return _apply_less(right, left) or _apply_equality(left, right, context)
    raise QueryRuntimeError(f"Unsupported comparison operator: {operator}")


def _apply_less(left: object, right: object) -> bool:
    """Order two numbers or two strings, anything else is never less."""
    left_kind = json_kind(left)
    if left_kind != json_kind(right) or left_kind not in {"number", "string"}:
        return False
    return left < right  # type: ignore[operator]


def _apply_equality(left: object, right: object, context: EvalContext) -> bool:
    """Deep equality of two values, NOTHING equals only NOTHING."""
    if left is NOTHING or right is NOTHING:
        return left is right

    compared: set[tuple[int, int]] = set()
    stack: list[tuple[object, object, int]] = [(left, right, 0)]
    while stack:
        left_value, right_value, depth = stack.pop()
        context.visit()
        context.check_depth(depth)
        kind = json_kind(left_value)
        if kind != json_kind(right_value):
            return False
        if kind not in {"array", "object"}:
            if left_value != right_value:
                return False
            continue
        if left_value is right_value:
            continue
        pair = (id(left_value), id(right_value))
        if pair in compared:
            continue
        compared.add(pair)

        if isinstance(left_value, list) and isinstance(right_value, list):
            if len(left_value) != len(right_value):
                return False
            stack.extend(
                (left_item, right_item, depth + 1)
                for left_item, right_item in zip(left_value, right_value, strict=True)
            )
        elif isinstance(left_value, dict) and isinstance(right_value, dict):
            if left_value.keys() != right_value.keys():
                return False
            stack.extend(
                (item, right_value[key], depth + 1) for key, item in left_value.items()
            )
    return True
