"""Tokenization of program lines into whitespace-separated words."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Final

STRING_QUOTE: Final[str] = '"'
DEFER_MARKER: Final[str] = "'"

_SEPARATOR: Final[str] = " "
_TOKEN_CACHE_MAX: Final[int] = max(1, int(os.environ.get("STACKO_TOKEN_CACHE_MAX", "256")))


@dataclass(frozen=True)
class Token:
    text: str
    pos: int
    end: int


def tokenize(line: str) -> list[Token]:
    """Split ``line`` on spaces outside of ``[...]``, ``{...}`` and ``"..."`` spans.

    Square and curly nesting are tracked by independent depth counters. Every
    quote character flips the in-string state; quotes are not depth counted.
    Unbalanced brackets are left for the dispatcher to reject.
    """
    tokens: list[Token] = []
    square = 0
    curly = 0
    in_string = False
    start = 0
    current: list[str] = []

    for i, ch in enumerate(line):
        if ch == "[":
            square += 1
        elif ch == "]":
            square -= 1
        elif ch == "{":
            curly += 1
        elif ch == "}":
            curly -= 1
        elif ch == STRING_QUOTE:
            in_string = not in_string

        if ch == _SEPARATOR and square <= 0 and curly <= 0 and not in_string:
            if current:
                tokens.append(Token("".join(current), start, i))
            current = []
            continue

        if not current:
            start = i
        current.append(ch)

    if current:
        tokens.append(Token("".join(current), start, len(line)))
    return tokens


@lru_cache(maxsize=_TOKEN_CACHE_MAX)
def _split_cached(line: str) -> tuple[str, ...]:
    return tuple(tok.text for tok in tokenize(line))


def split_tokens(line: str) -> list[str]:
    """Token texts for ``line``; the split is memoized per distinct line."""
    return list(_split_cached(line))
