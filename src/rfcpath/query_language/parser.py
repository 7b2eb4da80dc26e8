"""Parser for JSONPath queries.

The grammar is an LALR grammar run by lark over the tokens produced by
``rfcpath.query_language.lexer``. An inline transformer builds the AST while
parsing and enforces the static typing rules for comparisons and function
calls.
"""

from __future__ import annotations

from collections.abc import Iterator

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput, UnexpectedToken
from lark.lexer import Lexer

from rfcpath.query_language.ast import (
    AndExpr,
    ChildSegment,
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
    Segment,
    Selector,
    SliceSelector,
    TestExpr,
    WildcardSelector,
)
from rfcpath.query_language.builtins import BUILTIN_FUNCTIONS, FunctionSignature, FunctionType
from rfcpath.query_language.errors import QueryLanguageError, QueryParseError, QueryTypeError
from rfcpath.query_language.lexer import tokenize
from rfcpath.query_language.options import DEFAULT_MAX_EXPRESSION_DEPTH
from rfcpath.query_language.tokens import TokenStream, TokenType


MAX_SAFE_INTEGER = 2**53 - 1

GRAMMAR = r"""
query: ROOT segment*

segment: DOT NAME                       -> child_name
       | DOT WILDCARD                   -> child_wildcard
       | bracketed_selection            -> child_bracketed
       | DOTDOT NAME                    -> descendant_name
       | DOTDOT WILDCARD                -> descendant_wildcard
       | DOTDOT bracketed_selection     -> descendant_bracketed

bracketed_selection: LBRACKET selector (COMMA selector)* RBRACKET

selector: STRING                        -> name_selector
        | WILDCARD                      -> wildcard_selector
        | INT                           -> index_selector
        | slice_selector
        | QUESTION logical_expr         -> filter_selector

slice_selector: INT? COLON INT? (COLON INT?)?

logical_expr: logical_and (OR logical_and)*
logical_and: basic_expr (AND basic_expr)*

basic_expr: paren_expr
          | NOT paren_expr              -> not_paren_expr
          | comparison
          | test_expr
          | NOT test_expr               -> not_test_expr

paren_expr: LPAREN logical_expr RPAREN
test_expr: filter_query | function_expr
comparison: comparable comparison_op comparable
comparison_op: EQ | NE | LT | LE | GT | GE
comparable: literal | filter_query | function_expr

filter_query: (ROOT | CURRENT) segment*

function_expr: NAME LPAREN (function_argument (COMMA function_argument)*)? RPAREN
function_argument: literal | logical_expr

literal: STRING | INT | NUMBER | TRUE | FALSE | NULL

%declare ROOT CURRENT DOT DOTDOT LBRACKET RBRACKET LPAREN RPAREN COLON COMMA
%declare WILDCARD QUESTION NOT AND OR EQ NE LT LE GT GE
%declare STRING INT NUMBER NAME TRUE FALSE NULL
"""

_TOKEN_DESCRIPTIONS: dict[str, str] = {
    "$END": "end of query",
    "INT": "integer",
    "NUMBER": "number",
    "STRING": "string literal",
    "NAME": "name",
}


class _TokenStreamLexer(Lexer):
    """Feed tokens from ``tokenize`` into lark."""

    def __init__(self, lexer_conf: object) -> None:
        del lexer_conf

    def lex(self, data: TokenStream) -> Iterator[Token]:  # type: ignore[override]
        for token in data:
            if token.type == TokenType.EOF:
                return
            terminal = token.type.value
            if token.type == TokenType.NUMBER and token.is_integer:
                terminal = "INT"
            yield Token(
                terminal,
                token.value,
                start_pos=token.position,
                end_pos=token.position + len(token.raw_text),
            )


def _is_token(value: object) -> bool:
    return isinstance(value, Token)


def _checked_int(token: Token) -> int:
    """Return an index or slice bound, enforcing the I-JSON integer range."""
    value = token.value
    if not isinstance(value, int) or isinstance(value, bool) or abs(value) > MAX_SAFE_INTEGER:
        raise QueryParseError(
            f"Invalid JSONPath query: integer {token} is out of range at offset {token.start_pos}",
            position=token.start_pos,
        )
    return value


def _argument_type(argument: FunctionArgument) -> FunctionType:
    """Infer the declared type of a function argument."""
    match argument:
        case Literal():
            return FunctionType.VALUE
        case TestExpr(query=query):
            return FunctionType.VALUE if query.is_singular else FunctionType.NODES
        case Query(segments=_):
            return FunctionType.VALUE if argument.is_singular else FunctionType.NODES
        case FunctionExpr(name=name):
            return BUILTIN_FUNCTIONS[name].result
        case _:
            return FunctionType.LOGICAL


def _check_argument(
    signature: FunctionSignature,
    index: int,
    argument: FunctionArgument,
    position: int,
) -> FunctionArgument:
    """Check one argument against the declared parameter type."""
    parameter = signature.parameters[index]
    query = argument.query if isinstance(argument, TestExpr) else None
    argument_type = _argument_type(argument)

    def _mismatch(found: str) -> QueryTypeError:
        return QueryTypeError(
            f"Invalid JSONPath query: argument {index + 1} of {signature.name}() "
            f"must be {parameter.value}, got {found} at offset {position}",
            position=position,
        )

    if parameter == FunctionType.VALUE:
        if query is not None:
            if not query.is_singular:
                raise _mismatch("non-singular query")
            return query
        if argument_type != FunctionType.VALUE:
            raise _mismatch(argument_type.value)
        return argument

    if parameter == FunctionType.NODES:
        if query is not None:
            return query
        if isinstance(argument, FunctionExpr) and argument_type == FunctionType.NODES:
            return argument
        raise _mismatch(argument_type.value)

    if isinstance(argument, Literal):
        raise _mismatch("literal")
    if isinstance(argument, FunctionExpr) and argument_type == FunctionType.VALUE:
        raise _mismatch(FunctionType.VALUE.value)
    return argument


def _require_logical(expr: LogicalExpr) -> LogicalExpr:
    """Reject value-typed function calls used where a logical value is required."""
    if isinstance(expr, FunctionExpr) and BUILTIN_FUNCTIONS[expr.name].result == FunctionType.VALUE:
        raise QueryTypeError(
            f"Invalid JSONPath query: result of {expr.name}() must be compared, "
            "it cannot be used as a test"
        )
    return expr


def _require_comparable(value: object, position: int) -> Literal | Query | FunctionExpr:
    """Ensure a comparison operand is a literal, singular query or value function."""
    if isinstance(value, Literal):
        return value
    if isinstance(value, Query):
        if not value.is_singular:
            raise QueryTypeError(
                "Invalid JSONPath query: non-singular query used in comparison "
                f"at offset {position}",
                position=position,
            )
        return value
    if isinstance(value, FunctionExpr):
        result = BUILTIN_FUNCTIONS[value.name].result
        if result != FunctionType.VALUE:
            raise QueryTypeError(
                f"Invalid JSONPath query: {value.name}() returns {result.value} and "
                f"cannot be compared at offset {position}",
                position=position,
            )
        return value
    raise QueryParseError(
        f"Invalid JSONPath query: invalid comparison operand at offset {position}",
        position=position,
    )


@v_args(inline=True)
class _QueryBuilder(Transformer):
    """Build AST nodes from grammar reductions."""

    def query(self, root: Token, *segments: Segment) -> Query:
        del root
        return Query("$", tuple(segments))

    def child_name(self, dot: Token, name: Token) -> Segment:
        del dot
        return ChildSegment((NameSelector(name.value),))

    def child_wildcard(self, dot: Token, star: Token) -> Segment:
        del dot, star
        return ChildSegment((WildcardSelector(),))

    def child_bracketed(self, selectors: tuple[Selector, ...]) -> Segment:
        return ChildSegment(selectors)

    def descendant_name(self, dotdot: Token, name: Token) -> Segment:
        del dotdot
        return DescendantSegment((NameSelector(name.value),))

    def descendant_wildcard(self, dotdot: Token, star: Token) -> Segment:
        del dotdot, star
        return DescendantSegment((WildcardSelector(),))

    def descendant_bracketed(self, dotdot: Token, selectors: tuple[Selector, ...]) -> Segment:
        del dotdot
        return DescendantSegment(selectors)

    def bracketed_selection(self, *children: object) -> tuple[Selector, ...]:
        return tuple(child for child in children if not _is_token(child))  # type: ignore[misc]

    def selector(self, selector: Selector) -> Selector:
        return selector

    def name_selector(self, token: Token) -> Selector:
        return NameSelector(token.value)

    def wildcard_selector(self, token: Token) -> Selector:
        del token
        return WildcardSelector()

    def index_selector(self, token: Token) -> Selector:
        return IndexSelector(_checked_int(token))

    def slice_selector(self, *children: Token) -> Selector:
        bounds: list[int | None] = [None, None, None]
        part = 0
        for child in children:
            if child.type == "COLON":
                part += 1
            else:
                bounds[part] = _checked_int(child)
        return SliceSelector(*bounds)

    def filter_selector(self, question: Token, expression: LogicalExpr) -> Selector:
        del question
        return FilterSelector(_require_logical(expression))

    def logical_expr(self, *children: object) -> LogicalExpr:
        operands = [child for child in children if not _is_token(child)]
        if len(operands) == 1:
            return operands[0]  # type: ignore[return-value]
        return OrExpr(
            tuple(_require_logical(operand) for operand in operands)  # type: ignore[arg-type]
        )

    def logical_and(self, *children: object) -> LogicalExpr:
        operands = [child for child in children if not _is_token(child)]
        if len(operands) == 1:
            return operands[0]  # type: ignore[return-value]
        return AndExpr(
            tuple(_require_logical(operand) for operand in operands)  # type: ignore[arg-type]
        )

    def basic_expr(self, expr: LogicalExpr) -> LogicalExpr:
        return expr

    def not_paren_expr(self, bang: Token, expr: LogicalExpr) -> LogicalExpr:
        del bang
        return NotExpr(expr)

    def not_test_expr(self, bang: Token, expr: LogicalExpr) -> LogicalExpr:
        del bang
        return NotExpr(_require_logical(expr))

    def paren_expr(self, lparen: Token, expr: LogicalExpr, rparen: Token) -> LogicalExpr:
        del lparen, rparen
        return _require_logical(expr)

    def test_expr(self, operand: Query | FunctionExpr) -> LogicalExpr:
        if isinstance(operand, Query):
            return TestExpr(operand)
        return operand

    def comparison(self, left: object, operator: Token, right: object) -> LogicalExpr:
        position = operator.start_pos or 0
        return ComparisonExpr(
            operator.value,
            _require_comparable(left, position),
            _require_comparable(right, position),
        )

    def comparison_op(self, token: Token) -> Token:
        return token

    def comparable(self, value: object) -> object:
        return value

    def filter_query(self, root: Token, *segments: Segment) -> Query:
        return Query(root.value, tuple(segments))

    def function_expr(self, name: Token, lparen: Token, *rest: object) -> FunctionExpr:
        position = name.start_pos or 0
        if lparen.start_pos != name.end_pos:
            raise QueryParseError(
                f"Invalid JSONPath query: function name {name.value} must be followed "
                f"directly by '(' at offset {name.end_pos}",
                position=name.end_pos,
            )

        signature = BUILTIN_FUNCTIONS.get(name.value)
        if signature is None:
            raise QueryTypeError(
                f"Invalid JSONPath query: unknown function {name.value}() at offset {position}",
                position=position,
            )

        arguments = [item for item in rest if not _is_token(item)]
        if len(arguments) != signature.arity:
            raise QueryTypeError(
                f"Invalid JSONPath query: {signature.name}() takes {signature.arity} "
                f"argument(s), got {len(arguments)} at offset {position}",
                position=position,
            )

        checked = tuple(
            _check_argument(signature, index, argument, position)  # type: ignore[arg-type]
            for index, argument in enumerate(arguments)
        )
        return FunctionExpr(signature.name, checked)

    def function_argument(self, value: FunctionArgument) -> FunctionArgument:
        return value

    def literal(self, token: Token) -> Literal:
        return Literal(token.value)


QUERY_PARSER = Lark(
    GRAMMAR,
    start="query",
    parser="lalr",
    lexer=_TokenStreamLexer,
    transformer=_QueryBuilder(),
    maybe_placeholders=False,
)


def _describe_unexpected(stream: TokenStream, exc: UnexpectedToken) -> tuple[str, int]:
    """Describe the offending token and return it with its offset."""
    token = exc.token
    if token.type == "$END":
        return (_TOKEN_DESCRIPTIONS["$END"], stream[-1].position)

    position = token.start_pos if token.start_pos is not None else 0
    for candidate in stream:
        if candidate.position == position:
            return (repr(candidate.raw_text), position)
    return (_TOKEN_DESCRIPTIONS.get(token.type, token.type), position)


def _check_nesting(stream: TokenStream, max_depth: int) -> None:
    """Reject queries whose brackets and parentheses nest deeper than max_depth."""
    depth = 0
    for token in stream:
        if token.type in (TokenType.LPAREN, TokenType.LBRACKET):
            depth += 1
            if depth > max_depth:
                raise QueryParseError(
                    "Invalid JSONPath query: maximum expression depth "
                    f"({max_depth}) exceeded at offset {token.position}",
                    position=token.position,
                    query=stream.text,
                )
        elif token.type in (TokenType.RPAREN, TokenType.RBRACKET):
            depth -= 1


def parse(stream: TokenStream, max_expression_depth: int = DEFAULT_MAX_EXPRESSION_DEPTH) -> Query:
    """Parse a token stream into a query AST.

    Args:
        stream: Tokens produced by ``tokenize``
        max_expression_depth: Maximum nesting of brackets, parentheses and calls

    Returns:
        Root query AST

    Raises:
        QueryParseError: If the tokens do not form a valid query
        QueryTypeError: If the query is syntactically valid but not well-typed
    """
    _check_nesting(stream, max_expression_depth)
    try:
        result = QUERY_PARSER.parse(stream)  # type: ignore[arg-type]
    except UnexpectedToken as exc:
        description, position = _describe_unexpected(stream, exc)
        raise QueryParseError(
            f"Invalid JSONPath query: unexpected {description} at offset {position}",
            position=position,
            query=stream.text,
        ) from exc
    except UnexpectedInput as exc:
        raise QueryParseError(
            f"Invalid JSONPath query: {exc}", position=None, query=stream.text
        ) from exc
    except QueryLanguageError as exc:
        raise exc.with_query(stream.text)

    if isinstance(result, Query):
        return result
    raise QueryParseError("Parser did not produce a query", query=stream.text)


def parse_query(query: str, max_expression_depth: int = DEFAULT_MAX_EXPRESSION_DEPTH) -> Query:
    """Tokenize and parse query text into a query AST."""
    try:
        stream = tokenize(query)
    except QueryLanguageError as exc:
        raise exc.with_query(query)
    return parse(stream, max_expression_depth)
