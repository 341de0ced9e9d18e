"""Recursive-descent parser for literal tokens."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Final

from .errors import MalformedLiteralError
from .lexer import STRING_QUOTE
from .values import Matrix, Vector, first_out_of_range, is_quoted

_MAX_ARRAY_DEPTH: Final[int] = 2

_NUMBER_RE: Final = re.compile(
    r"""
    [+-]?
    [0-9]+(?:_[0-9]+)*                    # integer part
    (?P<fraction>\.[0-9]+(?:_[0-9]+)*)?   # optional fraction
    (?P<exponent>[eE][+-]?[0-9]+)?        # optional exponent
    """,
    re.VERBOSE,
)
_WORD_RE: Final = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BOOLEANS: Final[dict[str, bool]] = {"true": True, "false": False}
_NON_FINITE: Final[dict[str, float]] = {"Infinity": math.inf, "NaN": math.nan}


@dataclass
class _LiteralParser:
    text: str
    index: int = 0

    def parse(self):
        self._skip_spaces()
        value = self._parse_literal(depth=0)
        self._skip_spaces()
        if self.index != len(self.text):
            self._error("Unexpected trailing text")
        return value

    def _peek(self) -> str:
        return self.text[self.index] if self.index < len(self.text) else ""

    def _skip_spaces(self) -> None:
        while self.index < len(self.text) and self.text[self.index].isspace():
            self.index += 1

    def _error(self, message: str) -> None:
        raise MalformedLiteralError(message, text=self.text, pos=self.index)

    def _parse_literal(self, *, depth: int):
        ch = self._peek()
        if ch == "[":
            return self._parse_array(depth=depth + 1)
        if ch == STRING_QUOTE:
            return self._parse_string()
        if ch in ("+", "-") and _WORD_RE.match(self.text, self.index + 1):
            return self._parse_word()
        if ch and (ch.isdigit() or ch in "+-"):
            return self._parse_number()
        if ch and (ch.isalpha() or ch == "_"):
            return self._parse_word()
        self._error("Expected a literal")
        raise AssertionError("unreachable")

    def _parse_number(self) -> int | float:
        m = _NUMBER_RE.match(self.text, self.index)
        if not m:
            self._error("Invalid numeric literal")
        self.index = m.end()
        cleaned = m.group(0).replace("_", "")
        if m.group("fraction") or m.group("exponent"):
            return float(cleaned)
        return int(cleaned)

    def _parse_word(self) -> bool | float:
        start = self.index
        sign = ""
        if self._peek() in ("+", "-"):
            sign = self._peek()
            self.index += 1
        m = _WORD_RE.match(self.text, self.index)
        if m is None:
            self._error("Expected a word")
        word = m.group(0)
        if word in _NON_FINITE:
            self.index = m.end()
            return -_NON_FINITE[word] if sign == "-" else _NON_FINITE[word]
        if word not in _BOOLEANS or sign:
            self.index = start
            self._error(f"Unknown word {sign + word!r}")
        self.index = m.end()
        return _BOOLEANS[word]

    def _parse_string(self) -> str:
        start = self.index
        end = self.text.find(STRING_QUOTE, start + 1)
        if end < 0:
            self._error("Unterminated string literal")
        self.index = end + 1
        return self.text[start : end + 1]

    def _parse_array(self, *, depth: int):
        if depth > _MAX_ARRAY_DEPTH:
            self._error(f"Array nesting deeper than {_MAX_ARRAY_DEPTH}")
        start = self.index
        self.index += 1
        items: list[object] = []
        self._skip_spaces()
        if self._peek() == "]":
            self.index += 1
            return self._pack_array(items, start=start)

        while True:
            self._skip_spaces()
            items.append(self._parse_literal(depth=depth))
            self._skip_spaces()
            ch = self._peek()
            if ch == ",":
                self.index += 1
                continue
            if ch == "]":
                self.index += 1
                return self._pack_array(items, start=start)
            self._error("Expected ',' or ']' in array literal")

    def _pack_array(self, items: list[object], *, start: int):
        if any(isinstance(item, list) for item in items):
            if not all(isinstance(item, list) for item in items):
                self.index = start
                self._error("Matrix literal mixes rows and scalars")
            return _RowList(items)
        for item in items:
            if isinstance(item, bool) or not isinstance(item, (int, float)):
                self.index = start
                self._error("Array elements must be numbers")
        if any(isinstance(item, float) for item in items):
            try:
                return _RowList(float(item) for item in items)
            except OverflowError:
                self.index = start
                self._error("Array element is too large for a float")
        bad = first_out_of_range(items)
        if bad is not None:
            self.index = start
            self._error(f"Integer {bad} does not fit in array storage")
        return _RowList(items)


class _RowList(list):
    """Intermediate array node: a flat row of numbers or a list of such rows."""


def _materialize(node):
    if not isinstance(node, _RowList):
        return node
    if any(isinstance(item, list) for item in node):
        rows = [list(row) for row in node]
        if any(isinstance(item, float) for row in rows for item in row):
            rows = [[float(item) for item in row] for row in rows]
        return Matrix.of(rows)
    return Vector.of(list(node))


def parse_literal(text: str):
    """Parse ``text`` into an Integer, Float, Boolean, String, Vector or Matrix.

    Text that starts and ends with a double quote is returned unchanged, quotes
    included. A flat array of numbers becomes a Vector; an array of arrays
    becomes a Matrix whose rows are the inner arrays.
    """
    if is_quoted(text):
        return text
    if not text:
        raise MalformedLiteralError("Empty literal", text=text, pos=0)
    return _materialize(_LiteralParser(text).parse())
