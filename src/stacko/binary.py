"""Binary operator semantics as an explicit (operator, kind, kind) table."""

from __future__ import annotations

import math
import operator
from collections.abc import Iterable
from typing import Callable, Final

import jax.numpy as jnp

from .errors import (
    ArithmeticFaultError,
    DimensionMismatchError,
    StackoRuntimeError,
    TypeMismatchError,
    classify_runtime_exception,
)
from .values import (
    NUMERIC_KINDS,
    Matrix,
    ValueKind,
    Vector,
    first_out_of_range,
    kind_of,
    scalar_from_array,
    toggle_quotes,
)

BinaryFn = Callable[[object, object], object]

_INT: Final = ValueKind.INTEGER
_FLOAT: Final = ValueKind.FLOAT
_BOOL: Final = ValueKind.BOOLEAN
_STR: Final = ValueKind.STRING
_VEC: Final = ValueKind.VECTOR
_MAT: Final = ValueKind.MATRIX
_NUM: Final[tuple[ValueKind, ...]] = (_INT, _FLOAT)
_ALL_KINDS: Final[tuple[ValueKind, ...]] = tuple(ValueKind)

_TABLE: dict[tuple[str, ValueKind, ValueKind], BinaryFn] = {}


def _register(ops: Iterable[str], lefts: Iterable[ValueKind], rights: Iterable[ValueKind], fn: BinaryFn) -> None:
    rights = tuple(rights)
    for op in ops:
        for left in lefts:
            for right in rights:
                _TABLE[(op, left, right)] = fn


# Scalars


def _divide(a, b):
    if isinstance(a, int) and isinstance(b, int):
        if b == 0:
            raise ArithmeticFaultError("divided by 0", token="/")
        return a // b
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _modulo(a, b):
    if isinstance(a, int) and isinstance(b, int):
        if b == 0:
            raise ArithmeticFaultError("divided by 0", token="%")
        return a % b
    if b == 0:
        return math.nan
    return a % b


def _power(a, b):
    if isinstance(a, int) and isinstance(b, int) and b < 0:
        if a == 0:
            raise ArithmeticFaultError("divided by 0", token="**")
        return float(a) ** b
    result = a**b
    if isinstance(result, complex):
        raise ArithmeticFaultError(f"{a} ** {b} has no real result", token="**")
    return result


def _spaceship(a, b) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    if a == b:
        return 0
    raise ArithmeticFaultError(f"{a!r} and {b!r} are not comparable", token="<=>")


def _shift_left(a: int, b: int) -> int:
    return a << b if b >= 0 else a >> -b


def _shift_right(a: int, b: int) -> int:
    return a >> b if b >= 0 else a << -b


def _repeat(text: str, count: int) -> str:
    if count < 0:
        raise ArithmeticFaultError(f"negative repetition count {count}", token="*")
    return text * count


def _equals(a, b) -> bool:
    ka = kind_of(a)
    kb = kind_of(b)
    if ka in NUMERIC_KINDS and kb in NUMERIC_KINDS:
        return a == b
    if ka is not kb:
        return False
    return bool(a == b)


_register(["+"], _NUM, _NUM, operator.add)
_register(["-"], _NUM, _NUM, operator.sub)
_register(["*"], _NUM, _NUM, operator.mul)
_register(["/"], _NUM, _NUM, _divide)
_register(["%"], _NUM, _NUM, _modulo)
_register(["**"], _NUM, _NUM, _power)

for _kinds in (_NUM, (_STR,)):
    _register([">"], _kinds, _kinds, operator.gt)
    _register(["<"], _kinds, _kinds, operator.lt)
    _register([">="], _kinds, _kinds, operator.ge)
    _register(["<="], _kinds, _kinds, operator.le)
    _register(["<=>"], _kinds, _kinds, _spaceship)

_register(["+"], [_STR], [_STR], operator.add)
_register(["*"], [_STR], [_INT], _repeat)

_register(["=="], _ALL_KINDS, _ALL_KINDS, _equals)
_register(["!="], _ALL_KINDS, _ALL_KINDS, lambda a, b: not _equals(a, b))

_register(["&"], [_INT], [_INT], operator.and_)
_register(["|"], [_INT], [_INT], operator.or_)
_register(["^"], [_INT], [_INT], operator.xor)
_register(["<<"], [_INT], [_INT], _shift_left)
_register([">>"], [_INT], [_INT], _shift_right)
_register(["&"], [_BOOL], [_BOOL], lambda a, b: a and b)
_register(["|"], [_BOOL], [_BOOL], lambda a, b: a or b)
_register(["^"], [_BOOL], [_BOOL], lambda a, b: a != b)


# Vectors and matrices
#
# jax integer arrays wrap on overflow; integer results must fit array storage
# when recomputed on Python ints.


def _is_integer_array(arr: jnp.ndarray) -> bool:
    return bool(jnp.issubdtype(arr.dtype, jnp.integer))


def _all_integer(*operands) -> bool:
    for operand in operands:
        if isinstance(operand, (Vector, Matrix)):
            if not _is_integer_array(operand.data):
                return False
        elif not isinstance(operand, int):
            return False
    return True


def _require_exact(op: str, exact) -> None:
    items = exact if isinstance(exact, list) else [exact]
    bad = first_out_of_range(items)
    if bad is not None:
        raise ArithmeticFaultError(f"integer result {bad} overflows array storage", token=op)


def _map_nested(fn, items):
    if isinstance(items, list):
        return [_map_nested(fn, item) for item in items]
    return fn(items)


def _zip_nested(fn, left, right):
    if isinstance(left, list):
        return [_zip_nested(fn, a, b) for a, b in zip(left, right)]
    return fn(left, right)


def _list_matmul(left: list, right: list) -> list:
    columns = list(zip(*right))
    return [[sum(a * b for a, b in zip(row, column)) for column in columns] for row in left]


def _require_same_length(a: Vector, b: Vector, *, op: str) -> None:
    if len(a) != len(b):
        raise DimensionMismatchError(f"{op} needs vectors of equal length, got {len(a)} and {len(b)}", token=op)


def _vector_add(a: Vector, b: Vector) -> Vector:
    _require_same_length(a, b, op="+")
    if _all_integer(a, b):
        _require_exact("+", _zip_nested(operator.add, a.tolist(), b.tolist()))
    return Vector(a.data + b.data)


def _vector_sub(a: Vector, b: Vector) -> Vector:
    _require_same_length(a, b, op="-")
    if _all_integer(a, b):
        _require_exact("-", _zip_nested(operator.sub, a.tolist(), b.tolist()))
    return Vector(a.data - b.data)


def _vector_dot(a: Vector, b: Vector):
    _require_same_length(a, b, op="*")
    if _all_integer(a, b):
        _require_exact("*", sum(x * y for x, y in zip(a.tolist(), b.tolist())))
    return scalar_from_array(jnp.dot(a.data, b.data))


def _vector_cross(a: Vector, b: Vector) -> Vector:
    if len(a) != 3 or len(b) != 3:
        raise DimensionMismatchError(f"cross product needs 3-dimensional vectors, got {len(a)} and {len(b)}", token="x")
    if _all_integer(a, b):
        (a1, a2, a3), (b1, b2, b3) = a.tolist(), b.tolist()
        _require_exact("x", [a2 * b3 - a3 * b2, a3 * b1 - a1 * b3, a1 * b2 - a2 * b1])
    return Vector(jnp.cross(a.data, b.data))


def _scale(value, factor):
    if _all_integer(value, factor):
        _require_exact("*", _map_nested(lambda item: item * factor, value.tolist()))
    return type(value)(value.data * factor)


def _scale_divide(value, divisor):
    if _all_integer(value, divisor):
        if divisor == 0:
            raise ArithmeticFaultError("divided by 0", token="/")
        _require_exact("/", _map_nested(lambda item: item // divisor, value.tolist()))
        return type(value)(jnp.floor_divide(value.data, divisor))
    return type(value)(value.data / divisor)


_register(["+"], [_VEC], [_VEC], _vector_add)
_register(["-"], [_VEC], [_VEC], _vector_sub)
_register(["*"], [_VEC], [_VEC], _vector_dot)
_register(["x"], [_VEC], [_VEC], _vector_cross)
_register(["*"], [_VEC], _NUM, _scale)
_register(["*"], _NUM, [_VEC], lambda a, b: _scale(b, a))
_register(["/"], [_VEC], _NUM, _scale_divide)


def _matrix_elementwise(op: str, fn: Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray], exact_fn: BinaryFn) -> BinaryFn:
    def apply(a: Matrix, b: Matrix) -> Matrix:
        if a.shape != b.shape:
            raise DimensionMismatchError(f"{op} needs matrices of equal shape, got {a.shape} and {b.shape}", token=op)
        if _all_integer(a, b):
            _require_exact(op, _zip_nested(exact_fn, a.tolist(), b.tolist()))
        return Matrix(fn(a.data, b.data))

    return apply


def _matrix_product(a: Matrix, b: Matrix) -> Matrix:
    if a.shape[1] != b.shape[0]:
        raise DimensionMismatchError(f"cannot multiply {a.shape} by {b.shape}", token="*")
    if _all_integer(a, b):
        _require_exact("*", _list_matmul(a.tolist(), b.tolist()))
    return Matrix(jnp.matmul(a.data, b.data))


def _matrix_vector_product(a: Matrix, b: Vector) -> Vector:
    if a.shape[1] != len(b):
        raise DimensionMismatchError(f"cannot multiply {a.shape} matrix by vector of length {len(b)}", token="*")
    if _all_integer(a, b):
        _require_exact("*", _list_matmul(a.tolist(), [[item] for item in b.tolist()]))
    return Vector(jnp.matmul(a.data, b.data))


def _require_exact_power(rows: list, exponent: int) -> None:
    # square-and-multiply on Python ints; every intermediate must also fit
    size = len(rows)
    result = [[int(i == j) for j in range(size)] for i in range(size)]
    base = rows
    while exponent:
        if exponent & 1:
            result = _list_matmul(result, base)
            _require_exact("**", result)
        exponent >>= 1
        if exponent:
            base = _list_matmul(base, base)
            _require_exact("**", base)


def _matrix_power(a: Matrix, exponent: int) -> Matrix:
    rows, cols = a.shape
    if rows != cols:
        raise DimensionMismatchError(f"matrix power needs a square matrix, got {a.shape}", token="**")
    if exponent >= 0:
        if _all_integer(a):
            _require_exact_power(a.tolist(), exponent)
        return Matrix(jnp.linalg.matrix_power(a.data, exponent))
    data = a.data.astype(jnp.result_type(float))
    if float(jnp.linalg.det(data)) == 0.0:
        raise ArithmeticFaultError("singular matrix has no inverse", token="**")
    return Matrix(jnp.linalg.matrix_power(data, exponent))


_register(["+"], [_MAT], [_MAT], _matrix_elementwise("+", jnp.add, operator.add))
_register(["-"], [_MAT], [_MAT], _matrix_elementwise("-", jnp.subtract, operator.sub))
_register(["*"], [_MAT], [_MAT], _matrix_product)
_register(["*"], [_MAT], [_VEC], _matrix_vector_product)
_register(["*"], [_MAT], _NUM, _scale)
_register(["*"], _NUM, [_MAT], lambda a, b: _scale(b, a))
_register(["/"], [_MAT], _NUM, _scale_divide)
_register(["**"], [_MAT], [_INT], _matrix_power)


def supports(op: str, left: object, right: object) -> bool:
    return (op, kind_of(left), kind_of(right)) in _TABLE


def apply_binary(op: str, left: object, right: object):
    """Evaluate ``left op right`` with one quote flip on each operand and on the result.

    String operands lose (or gain) one layer of double quotes before the
    native operation and the result is flipped back, so ``"a" "b" +`` gives
    ``"ab"``. Non-string values pass through the flips unchanged.
    """
    a = toggle_quotes(left)
    b = toggle_quotes(right)
    fn = _TABLE.get((op, kind_of(a), kind_of(b)))
    if fn is None:
        raise TypeMismatchError(
            f"operator {op!r} is not defined for {kind_of(a).value} and {kind_of(b).value}",
            token=op,
        )
    try:
        result = fn(a, b)
    except StackoRuntimeError:
        raise
    except (ArithmeticError, TypeError, ValueError) as err:
        raise classify_runtime_exception(err, token=op) from err
    return toggle_quotes(result)
