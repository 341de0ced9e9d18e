"""Structured error types for the stack interpreter."""

from __future__ import annotations


class StackoError(Exception):
    """Base class for structured stacko errors."""


class StackoRuntimeError(StackoError):
    """Generic failure while evaluating a token."""

    def __init__(self, message: str, *, token: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.token = token

    def __str__(self) -> str:
        if self.token is None:
            return self.message
        return f"{self.message} (at token {self.token!r})"


class MalformedLiteralError(StackoRuntimeError):
    """Text is neither an operator, a quote/lambda form, nor a parseable literal."""

    def __init__(self, message: str, *, text: str, pos: int | None = None) -> None:
        super().__init__(message, token=text)
        self.text = text
        self.pos = pos

    def __str__(self) -> str:
        where = "" if self.pos is None else f" at index {self.pos}"
        return f"{self.message}{where} in {self.text!r}"


class DimensionMismatchError(StackoRuntimeError):
    """Vector/matrix shapes are incompatible for the operator."""


class TypeMismatchError(StackoRuntimeError):
    """Operand kind is not valid for the operator."""


class StackCorruptionError(StackoRuntimeError):
    """Requested stack depth exceeds the actual stack size."""


class ArithmeticFaultError(StackoRuntimeError):
    """Arithmetic has no representable result (division by zero, complex results)."""


class RecursionDepthError(StackoRuntimeError):
    """Host recursion capacity exhausted by self-referential EVAL or SELF chains."""


def classify_runtime_exception(err: Exception, *, token: str | None = None) -> StackoRuntimeError:
    """Map a stray host exception onto the structured hierarchy."""
    if isinstance(err, StackoRuntimeError):
        return err
    message = str(err) or type(err).__name__
    if isinstance(err, RecursionError):
        return RecursionDepthError(message, token=token)
    if isinstance(err, (ZeroDivisionError, OverflowError, ArithmeticError)):
        return ArithmeticFaultError(message, token=token)

    lowered = message.lower()
    shape_markers = (
        "shape",
        "dimension",
        "incompatible",
        "size",
        "length",
        "must be square",
    )
    if any(marker in lowered for marker in shape_markers):
        return DimensionMismatchError(message, token=token)
    if isinstance(err, (TypeError, ValueError)):
        return TypeMismatchError(message, token=token)
    return StackoRuntimeError(message, token=token)
