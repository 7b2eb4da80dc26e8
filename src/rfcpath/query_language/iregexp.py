"""I-Regexp (RFC 9485) validation and translation for match() and search().

Patterns are checked against the I-Regexp grammar and rewritten into the
syntax of the ``regex`` module. The translation keeps the I-Regexp meaning:
``.`` never matches a line break and ``^``/``$`` are literal characters.
While translating, patterns prone to catastrophic backtracking are flagged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import regex

from rfcpath.query_language.errors import QueryLimitError
from rfcpath.query_language.options import QueryOptions


logger = logging.getLogger("rfcpath")

SINGLE_CHAR_ESCAPES = frozenset("()*+-.?[\\]^nrt{|}")
CONTROL_ESCAPES = {"n": "\\n", "r": "\\r", "t": "\\t"}
CATEGORIES = frozenset(
    {
        "L", "Ll", "Lm", "Lo", "Lt", "Lu",
        "M", "Mc", "Me", "Mn",
        "N", "Nd", "Nl", "No",
        "P", "Pc", "Pd", "Pe", "Pf", "Pi", "Po", "Ps",
        "Z", "Zl", "Zp", "Zs",
        "S", "Sc", "Sk", "Sm", "So",
        "C", "Cc", "Cf", "Cn", "Co",
    }
)  # fmt: skip
NOT_NORMAL_CHARS = frozenset(".\\?*+{}()[]|")
DOT_TRANSLATION = "[^\\n\\r]"


class IRegexpError(ValueError):
    """Raised when a pattern is not a valid I-Regexp."""


@dataclass(frozen=True, slots=True)
class TranslatedPattern:
    """Result of translating one I-Regexp."""

    source: str
    pattern: str
    unsafe: bool


@dataclass(slots=True)
class _Fragment:
    text: str
    has_quantifier: bool = False
    is_group: bool = False
    overlapping_alternation: bool = False
    first_literal: str | None = None
    branch_keys: list[str | None] = field(default_factory=list)


def _branches_overlap(keys: list[str | None]) -> bool:
    """Check whether two alternation branches may start with the same text."""
    if len(keys) < 2:
        return False
    if "" in keys:
        return True
    literals = [key for key in keys if key is not None]
    return len(literals) != len(set(literals))


class _Translator:
    """Recursive-descent reader over one I-Regexp pattern."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.unsafe = False

    def _peek(self) -> str:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return ""

    def _error(self, message: str) -> IRegexpError:
        return IRegexpError(f"{message} at position {self.pos} in {self.source!r}")

    def translate(self) -> TranslatedPattern:
        fragment = self._regexp()
        if self.pos < len(self.source):
            raise self._error(f"unexpected {self._peek()!r}")
        return TranslatedPattern(self.source, fragment.text, self.unsafe)

    def _regexp(self) -> _Fragment:
        branches = [self._branch()]
        while self._peek() == "|":
            self.pos += 1
            branches.append(self._branch())
        return _Fragment(
            text="|".join(branch.text for branch in branches),
            has_quantifier=any(branch.has_quantifier for branch in branches),
            branch_keys=[branch.first_literal for branch in branches],
        )

    def _branch(self) -> _Fragment:
        pieces: list[_Fragment] = []
        while self._peek() and self._peek() not in "|)":
            pieces.append(self._piece())
        if not pieces:
            return _Fragment(text="", first_literal="")
        return _Fragment(
            text="".join(piece.text for piece in pieces),
            has_quantifier=any(piece.has_quantifier for piece in pieces),
            first_literal=pieces[0].first_literal,
        )

    def _piece(self) -> _Fragment:
        atom = self._atom()
        quantifier, repeats = self._quantifier()
        if not quantifier:
            return atom
        if repeats and atom.is_group and (atom.has_quantifier or atom.overlapping_alternation):
            self.unsafe = True
        return _Fragment(
            text=atom.text + quantifier,
            has_quantifier=True,
            first_literal=None,
        )

    def _quantifier(self) -> tuple[str, bool]:
        char = self._peek()
        if char and char in "*+?":
            self.pos += 1
            return (char, char != "?")
        if char != "{":
            return ("", False)

        self.pos += 1
        minimum = self._digits()
        if minimum is None:
            raise self._error("expected digits in range quantifier")
        maximum: int | None = minimum
        text = f"{{{minimum}"
        if self._peek() == ",":
            self.pos += 1
            maximum = self._digits()
            text += "," if maximum is None else f",{maximum}"
        if self._peek() != "}":
            raise self._error("unterminated range quantifier")
        self.pos += 1
        if maximum is not None and maximum < minimum:
            raise self._error("range quantifier bounds out of order")
        return (text + "}", maximum is None or maximum > 1)

    def _digits(self) -> int | None:
        start = self.pos
        while self._peek() and self._peek() in "0123456789":
            self.pos += 1
        if self.pos == start:
            return None
        return int(self.source[start : self.pos])

    def _atom(self) -> _Fragment:
        char = self._peek()
        if char == "(":
            self.pos += 1
            inner = self._regexp()
            if self._peek() != ")":
                raise self._error("missing ')'")
            self.pos += 1
            return _Fragment(
                text=f"(?:{inner.text})",
                has_quantifier=inner.has_quantifier,
                is_group=True,
                overlapping_alternation=_branches_overlap(inner.branch_keys),
                first_literal=inner.branch_keys[0] if len(inner.branch_keys) == 1 else None,
            )
        if char == ".":
            self.pos += 1
            return _Fragment(text=DOT_TRANSLATION)
        if char == "[":
            return _Fragment(text=self._char_class())
        if char == "\\":
            text, literal = self._escape()
            return _Fragment(text=text, first_literal=literal)
        if char in NOT_NORMAL_CHARS:
            raise self._error(f"unexpected {char!r}")
        if 0xD800 <= ord(char) <= 0xDFFF:
            raise self._error("surrogate code point")
        self.pos += 1
        text = f"\\{char}" if char in "^$" else char
        return _Fragment(text=text, first_literal=char)

    def _escape(self) -> tuple[str, str | None]:
        """Read an escape and return (translation, literal char or None)."""
        self.pos += 1
        char = self._peek()
        if not char:
            raise self._error("dangling backslash")
        self.pos += 1
        if char in CONTROL_ESCAPES:
            return (CONTROL_ESCAPES[char], {"n": "\n", "r": "\r", "t": "\t"}[char])
        if char in SINGLE_CHAR_ESCAPES:
            return (f"\\{char}", char)
        if char in "pP":
            if self._peek() != "{":
                raise self._error("expected '{' after category escape")
            end = self.source.find("}", self.pos)
            if end < 0:
                raise self._error("unterminated category escape")
            category = self.source[self.pos + 1 : end]
            if category not in CATEGORIES:
                raise self._error(f"unknown category {category!r}")
            self.pos = end + 1
            return (f"\\{char}{{{category}}}", None)
        raise self._error(f"invalid escape '\\{char}'")

    def _class_char(self) -> tuple[str, str | None]:
        char = self._peek()
        if char == "\\":
            return self._escape()
        if char in "[]-" or not char:
            raise self._error("invalid character in class")
        if 0xD800 <= ord(char) <= 0xDFFF:
            raise self._error("surrogate code point")
        self.pos += 1
        return (f"\\{char}" if char in "^" else char, char)

    def _char_class(self) -> str:
        self.pos += 1
        parts = ["["]
        if self._peek() == "^":
            self.pos += 1
            parts.append("^")
        items = 0
        if self._peek() == "-":
            self.pos += 1
            parts.append("\\-")
            items += 1

        while self._peek() != "]":
            if not self._peek():
                raise self._error("unterminated character class")
            if self._peek() == "-":
                self.pos += 1
                if self._peek() != "]":
                    raise self._error("'-' must start or end a character class")
                parts.append("\\-")
                items += 1
                continue
            text, literal = self._class_char()
            if self._peek() == "-" and self.source[self.pos + 1 : self.pos + 2] not in ("]", ""):
                self.pos += 1
                end_text, end_literal = self._class_char()
                if literal is None or end_literal is None:
                    raise self._error("category escape cannot bound a range")
                if ord(end_literal) < ord(literal):
                    raise self._error("character range out of order")
                text = f"{text}-{end_text}"
            parts.append(text)
            items += 1

        if items == 0:
            raise self._error("empty character class")
        self.pos += 1
        parts.append("]")
        return "".join(parts)


def translate(pattern: str) -> TranslatedPattern:
    """Validate an I-Regexp and translate it for the regex module.

    Raises:
        IRegexpError: If pattern is not a valid I-Regexp
    """
    return _Translator(pattern).translate()


class RegexMatcher:
    """Per-evaluation cache of compiled match()/search() patterns."""

    def __init__(self, options: QueryOptions) -> None:
        self._options = options
        self._cache: dict[str, regex.Pattern[str] | None] = {}

    def compile(self, pattern: str) -> regex.Pattern[str] | None:
        """Compile an I-Regexp, returning None when it is invalid.

        Raises:
            QueryLimitError: If the pattern is too long or considered unsafe
        """
        if pattern in self._cache:
            return self._cache[pattern]

        limit = self._options.max_regex_pattern_length
        if len(pattern) > limit:
            raise QueryLimitError(
                f"Regular expression pattern length {len(pattern)} exceeds "
                f"maxRegexPatternLength ({limit})",
                "maxRegexPatternLength",
            )

        compiled: regex.Pattern[str] | None
        try:
            translated = translate(pattern)
        except IRegexpError as exc:
            logger.debug("Invalid I-Regexp: %s", exc)
            compiled = None
        else:
            if translated.unsafe and self._options.reject_unsafe_regex:
                raise QueryLimitError(
                    f"Rejected unsafe regular expression pattern: {pattern!r}",
                    "rejectUnsafeRegex",
                )
            try:
                compiled = regex.compile(translated.pattern)
            except regex.error as exc:
                logger.debug("Regex compilation failed for %r: %s", pattern, exc)
                compiled = None

        self._cache[pattern] = compiled
        return compiled

    def matches(self, pattern: str, value: str, anchored: bool) -> bool:
        """Check value against pattern, anchored for match() and not for search()."""
        compiled = self.compile(pattern)
        if compiled is None:
            return False

        limit = self._options.max_regex_input_length
        if len(value) > limit:
            raise QueryLimitError(
                f"Regular expression input length {len(value)} exceeds "
                f"maxRegexInputLength ({limit})",
                "maxRegexInputLength",
            )

        timeout = self._options.regex_timeout
        try:
            if anchored:
                found = compiled.fullmatch(value, timeout=timeout)
            else:
                found = compiled.search(value, timeout=timeout)
        except TimeoutError as exc:
            raise QueryLimitError(
                f"Regular expression {pattern!r} timed out after {timeout}s",
                "regexTimeout",
            ) from exc
        return found is not None
