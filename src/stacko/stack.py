"""Operand stack with explicit, bounds-checked rearrangement primitives."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .errors import StackCorruptionError
from .values import validate_value


class OperandStack:
    """LIFO sequence of values; index 0 is the bottom."""

    def __init__(self, items: Iterable[object] = ()) -> None:
        self._items: list[object] = []
        self.extend(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[object]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"OperandStack({self._items!r})"

    def snapshot(self) -> list[object]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def _require(self, depth: int, *, where: str) -> None:
        if depth > len(self._items):
            raise StackCorruptionError(
                f"{where} needs {depth} values but the stack holds {len(self._items)}",
                token=where,
            )

    def push(self, value: object) -> None:
        validate_value(value, where="stack push")
        self._items.append(value)

    def extend(self, values: Iterable[object]) -> None:
        for value in values:
            self.push(value)

    def pop(self, *, where: str = "pop") -> object:
        self._require(1, where=where)
        return self._items.pop()

    def pop_many(self, count: int, *, where: str = "pop") -> list[object]:
        """Pop ``count`` values, returned in pop order (former top first)."""
        if count < 0:
            raise StackCorruptionError(f"{where} cannot pop a negative count {count}", token=where)
        self._require(count, where=where)
        popped = self._items[len(self._items) - count :]
        del self._items[len(self._items) - count :]
        popped.reverse()
        return popped

    def peek(self, *, where: str = "peek") -> object:
        self._require(1, where=where)
        return self._items[-1]

    def drop(self) -> None:
        self.pop(where="DROP")

    def dup(self) -> None:
        self.push(self.peek(where="DUP"))

    def swap(self) -> None:
        self._require(2, where="SWAP")
        self._items[-1], self._items[-2] = self._items[-2], self._items[-1]

    def rotate_window(self, size: int, *, toward_top: bool, where: str) -> None:
        """Cyclically shift the top ``size`` values by one position.

        With ``toward_top`` the deepest value of the window moves to the top
        (``a b c -> b c a``); otherwise the top value moves to the bottom of
        the window (``a b c -> c a b``).
        """
        if size < 1:
            raise StackCorruptionError(f"{where} window must be at least 1, got {size}", token=where)
        self._require(size, where=where)
        start = len(self._items) - size
        window = self._items[start:]
        if toward_top:
            window = window[1:] + window[:1]
        else:
            window = window[-1:] + window[:-1]
        self._items[start:] = window

    def rot(self) -> None:
        self.rotate_window(3, toward_top=True, where="ROT")
