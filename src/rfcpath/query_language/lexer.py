"""Lexer turning query text into a flat token stream."""

from __future__ import annotations

from rfcpath.query_language.errors import QueryLexError
from rfcpath.query_language.tokens import (
    KEYWORD_TOKENS,
    KEYWORD_VALUES,
    Token,
    TokenStream,
    TokenType,
)


WHITESPACE = frozenset(" \t\n\r")
DIGITS = frozenset("0123456789")
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

SIMPLE_ESCAPES: dict[str, str] = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "/": "/",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "$": TokenType.ROOT,
    "@": TokenType.CURRENT,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "*": TokenType.WILDCARD,
    "?": TokenType.QUESTION,
}


def is_name_first(char: str) -> bool:
    """Check whether char may start a member name or function name."""
    if char.isascii():
        return char.isalpha() or char == "_"
    code_point = ord(char)
    return 0x80 <= code_point <= 0xD7FF or 0xE000 <= code_point <= 0x10FFFF


def is_name_char(char: str) -> bool:
    """Check whether char may continue a member name or function name."""
    return char in DIGITS or is_name_first(char)


class _Scanner:
    """Single forward cursor over query text."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.tokens: list[Token] = []

    def _error(self, message: str, position: int) -> QueryLexError:
        return QueryLexError(
            f"Invalid JSONPath query: {message} at offset {position}",
            position=position,
            query=self.text,
        )

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.text):
            return self.text[index]
        return ""

    def _emit(self, token_type: TokenType, value: object, start: int) -> None:
        self.tokens.append(Token(token_type, value, start, self.text[start : self.pos]))

    def scan(self) -> list[Token]:
        """Scan the whole input and return all tokens, EOF included."""
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.text):
                self.tokens.append(Token(TokenType.EOF, None, self.pos, ""))
                return self.tokens
            self._scan_token()

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def _scan_token(self) -> None:
        start = self.pos
        char = self.text[start]

        if char in SINGLE_CHAR_TOKENS:
            self.pos += 1
            self._emit(SINGLE_CHAR_TOKENS[char], char, start)
            return

        if char == ".":
            if self._peek(1) == ".":
                self.pos += 2
                self._emit(TokenType.DOTDOT, "..", start)
                self._scan_shorthand(allow_bracket=True)
            else:
                self.pos += 1
                self._emit(TokenType.DOT, ".", start)
                self._scan_shorthand(allow_bracket=False)
            return

        if char in "'\"":
            self._scan_string(char)
            return

        if char == "-" or char in DIGITS:
            self._scan_number()
            return

        if is_name_first(char):
            name = self._scan_name()
            if name in KEYWORD_TOKENS:
                self._emit(KEYWORD_TOKENS[name], KEYWORD_VALUES[name], start)
            else:
                self._emit(TokenType.NAME, name, start)
            return

        self._scan_operator(char)

    def _scan_operator(self, char: str) -> None:
        start = self.pos
        following = self._peek(1)
        two_char: dict[str, TokenType] = {
            "==": TokenType.EQ,
            "!=": TokenType.NE,
            "<=": TokenType.LE,
            ">=": TokenType.GE,
            "&&": TokenType.AND,
            "||": TokenType.OR,
        }
        pair = char + following
        if pair in two_char:
            self.pos += 2
            self._emit(two_char[pair], pair, start)
            return

        one_char: dict[str, TokenType] = {
            "!": TokenType.NOT,
            "<": TokenType.LT,
            ">": TokenType.GT,
        }
        if char in one_char:
            self.pos += 1
            self._emit(one_char[char], char, start)
            return

        if char in "=&|":
            raise self._error(f"expected '{char}{char}'", start + 1)
        raise self._error(f"unexpected character {char!r}", start)

    def _scan_shorthand(self, allow_bracket: bool) -> None:
        """Scan the member name or wildcard directly after '.' or '..'."""
        start = self.pos
        char = self._peek()
        if char == "*":
            self.pos += 1
            self._emit(TokenType.WILDCARD, "*", start)
            return
        if char == "[" and allow_bracket:
            return
        if char and is_name_first(char):
            name = self._scan_name()
            self._emit(TokenType.NAME, name, start)
            return

        expected = "member name, '*' or '['" if allow_bracket else "member name or '*'"
        if char in WHITESPACE and char:
            raise self._error(f"whitespace is not allowed here, expected {expected}", start)
        if not char:
            raise self._error(f"unexpected end of query, expected {expected}", start)
        raise self._error(f"expected {expected}", start)

    def _scan_name(self) -> str:
        start = self.pos
        self.pos += 1
        while self.pos < len(self.text) and is_name_char(self.text[self.pos]):
            self.pos += 1
        return self.text[start : self.pos]

    def _scan_string(self, quote: str) -> None:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while True:
            if self.pos >= len(self.text):
                raise self._error("unterminated string literal", self.pos)
            char = self.text[self.pos]
            if char == quote:
                self.pos += 1
                break
            if char == "\\":
                chars.append(self._scan_escape(quote))
                continue
            if ord(char) <= 0x1F:
                raise self._error("control character in string literal", self.pos)
            chars.append(char)
            self.pos += 1
        self._emit(TokenType.STRING, "".join(chars), start)

    def _scan_escape(self, quote: str) -> str:
        escape_start = self.pos
        self.pos += 1
        if self.pos >= len(self.text):
            raise self._error("unterminated escape sequence", self.pos)
        char = self.text[self.pos]
        if char in "'\"" and char != quote:
            raise self._error(f"invalid escape sequence '\\{char}'", escape_start)
        if char in SIMPLE_ESCAPES:
            self.pos += 1
            return SIMPLE_ESCAPES[char]
        if char != "u":
            raise self._error(f"invalid escape sequence '\\{char}'", escape_start)

        self.pos += 1
        code_point = self._scan_hex4()
        if 0xDC00 <= code_point <= 0xDFFF:
            raise self._error("unpaired low surrogate in unicode escape", escape_start)
        if 0xD800 <= code_point <= 0xDBFF:
            if self.text[self.pos : self.pos + 2] != "\\u":
                raise self._error("high surrogate must be followed by a low surrogate", self.pos)
            self.pos += 2
            low_start = self.pos
            low = self._scan_hex4()
            if not 0xDC00 <= low <= 0xDFFF:
                raise self._error("invalid low surrogate in unicode escape", low_start)
            code_point = 0x10000 + ((code_point - 0xD800) << 10) + (low - 0xDC00)
        return chr(code_point)

    def _scan_hex4(self) -> int:
        digits = self.text[self.pos : self.pos + 4]
        for offset, digit in enumerate(digits):
            if digit not in HEX_DIGITS:
                raise self._error("invalid unicode escape", self.pos + offset)
        if len(digits) < 4:
            raise self._error("invalid unicode escape", self.pos + len(digits))
        self.pos += 4
        return int(digits, 16)

    def _scan_digits(self) -> int:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in DIGITS:
            self.pos += 1
        return self.pos - start

    def _scan_number(self) -> None:
        start = self.pos
        if self._peek() == "-":
            self.pos += 1

        first = self._peek()
        if first not in DIGITS or not first:
            raise self._error("expected digit", self.pos)
        if first == "0":
            self.pos += 1
            if self._peek() in DIGITS and self._peek():
                raise self._error("leading zeros are not allowed", self.pos)
        else:
            self._scan_digits()

        is_integer = True
        if self._peek() == ".":
            self.pos += 1
            if self._scan_digits() == 0:
                raise self._error("expected digit after decimal point", self.pos)
            is_integer = False

        if self._peek() and self._peek() in "eE":
            self.pos += 1
            if self._peek() and self._peek() in "+-":
                self.pos += 1
            if self._scan_digits() == 0:
                raise self._error("expected digit in exponent", self.pos)
            is_integer = False

        raw = self.text[start : self.pos]
        value: int | float = int(raw) if is_integer and raw != "-0" else float(raw)
        self._emit(TokenType.NUMBER, value, start)


def tokenize(text: str) -> TokenStream:
    """Tokenize query text.

    Args:
        text: JSONPath query text

    Returns:
        Token stream ending with an EOF token

    Raises:
        QueryLexError: If the text contains a malformed token
    """
    return TokenStream(text, tuple(_Scanner(text).scan()))
