"""Token types produced by the query lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class TokenType(StrEnum):
    """Closed set of lexical token kinds."""

    ROOT = "ROOT"
    CURRENT = "CURRENT"
    DOT = "DOT"
    DOTDOT = "DOTDOT"
    LBRACKET = "LBRACKET"
    RBRACKET = "RBRACKET"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COLON = "COLON"
    COMMA = "COMMA"
    WILDCARD = "WILDCARD"
    QUESTION = "QUESTION"
    NOT = "NOT"
    AND = "AND"
    OR = "OR"
    EQ = "EQ"
    NE = "NE"
    LT = "LT"
    LE = "LE"
    GT = "GT"
    GE = "GE"
    STRING = "STRING"
    NUMBER = "NUMBER"
    NAME = "NAME"
    TRUE = "TRUE"
    FALSE = "FALSE"
    NULL = "NULL"
    EOF = "EOF"


KEYWORD_VALUES: dict[str, bool | None] = {
    "true": True,
    "false": False,
    "null": None,
}

KEYWORD_TOKENS: dict[str, TokenType] = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
}


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical token with its decoded value and source offset."""

    type: TokenType
    value: object
    position: int
    raw_text: str

    @property
    def is_integer(self) -> bool:
        """Return whether a NUMBER token is written in integer form."""
        if self.type != TokenType.NUMBER:
            return False
        text = self.raw_text
        if text == "-0":
            return False
        return not any(char in text for char in ".eE")


@dataclass(frozen=True, slots=True)
class TokenStream:
    """Tokens of one query plus the text they were scanned from."""

    text: str
    tokens: tuple[Token, ...]

    def __iter__(self):
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __getitem__(self, index: int) -> Token:
        return self.tokens[index]
