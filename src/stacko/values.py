"""Runtime value model and validators for the stack interpreter."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Final, Union

import jax
import jax.numpy as jnp

from .errors import ArithmeticFaultError, DimensionMismatchError
from .lexer import STRING_QUOTE

_ENABLE_X64: Final[bool] = os.environ.get("STACKO_DISABLE_X64", "0") != "1"

if _ENABLE_X64:
    jax.config.update("jax_enable_x64", True)


class DeferredToken(str):
    """Operator name or block literal pushed as data instead of executed."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"DeferredToken({str.__repr__(self)})"


def _array_equal(left: jnp.ndarray, right: jnp.ndarray) -> bool:
    if left.shape != right.shape:
        return False
    return bool(jnp.all(left == right))


def _as_array(items) -> jnp.ndarray:
    try:
        return jnp.asarray(items)
    except OverflowError as exc:
        raise ArithmeticFaultError(f"array element out of range: {exc}") from exc


@dataclass(frozen=True, eq=False)
class Vector:
    """Ordered sequence of numbers backed by a rank-1 jax array."""

    data: jnp.ndarray

    def __post_init__(self) -> None:
        if self.data.ndim != 1:
            raise DimensionMismatchError(f"Vector requires rank 1 data, got rank {self.data.ndim}")

    @classmethod
    def of(cls, items) -> "Vector":
        if len(items) == 0:
            return cls(jnp.zeros((0,), dtype=jnp.int_))
        return cls(_as_array(items))

    def __len__(self) -> int:
        return int(self.data.shape[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return _array_equal(self.data, other.data)

    __hash__ = None  # type: ignore[assignment]

    def tolist(self) -> list:
        return self.data.tolist()


@dataclass(frozen=True, eq=False)
class Matrix:
    """Equal-length rows of numbers backed by a rank-2 jax array."""

    data: jnp.ndarray

    def __post_init__(self) -> None:
        if self.data.ndim != 2:
            raise DimensionMismatchError(f"Matrix requires rank 2 data, got rank {self.data.ndim}")

    @classmethod
    def of(cls, rows) -> "Matrix":
        widths = {len(row) for row in rows}
        if len(widths) > 1:
            raise DimensionMismatchError(f"Matrix rows must have equal length, got lengths {sorted(widths)}")
        if not widths or widths == {0}:
            return cls(jnp.zeros((len(rows), 0), dtype=jnp.int_))
        return cls(_as_array(rows))

    @property
    def shape(self) -> tuple[int, int]:
        rows, cols = self.data.shape
        return int(rows), int(cols)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return _array_equal(self.data, other.data)

    __hash__ = None  # type: ignore[assignment]

    def tolist(self) -> list:
        return self.data.tolist()


Value = Union[int, float, bool, str, Vector, Matrix]


class ValueKind(str, Enum):
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    VECTOR = "vector"
    MATRIX = "matrix"


NUMERIC_KINDS: Final[frozenset[ValueKind]] = frozenset({ValueKind.INTEGER, ValueKind.FLOAT})

_ARRAY_INT_INFO: Final = jnp.iinfo(jnp.asarray(0).dtype)
ARRAY_INT_MIN: Final[int] = int(_ARRAY_INT_INFO.min)
ARRAY_INT_MAX: Final[int] = int(_ARRAY_INT_INFO.max)


def first_out_of_range(items):
    """First integer in a possibly nested list that array storage cannot hold, else None."""
    for item in items:
        if isinstance(item, list):
            bad = first_out_of_range(item)
            if bad is not None:
                return bad
        elif isinstance(item, int) and not isinstance(item, bool):
            if not ARRAY_INT_MIN <= item <= ARRAY_INT_MAX:
                return item
    return None


def kind_of(value: object) -> ValueKind:
    # bool first: it is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Vector):
        return ValueKind.VECTOR
    if isinstance(value, Matrix):
        return ValueKind.MATRIX
    raise TypeError(f"unsupported runtime type {type(value).__name__}")


def is_quoted(text: str) -> bool:
    return len(text) >= 2 and text.startswith(STRING_QUOTE) and text.endswith(STRING_QUOTE)


def toggle_quotes(value):
    """Flip the quote state of a string by one layer; other values pass through."""
    if not isinstance(value, str):
        return value
    text = str(value)
    if is_quoted(text):
        return text[1:-1]
    return f"{STRING_QUOTE}{text}{STRING_QUOTE}"


def scalar_from_array(value: jnp.ndarray) -> int | float | bool:
    """Convert a rank-0 jax result into the matching Python scalar."""
    return value.item()


def validate_value(value: object, *, where: str = "value") -> None:
    try:
        kind_of(value)
    except TypeError as exc:
        raise TypeError(f"{where} has unsupported runtime type {type(value).__name__}") from exc
