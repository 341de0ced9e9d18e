"""stacko public API."""

from .errors import (
    ArithmeticFaultError,
    DimensionMismatchError,
    MalformedLiteralError,
    RecursionDepthError,
    StackCorruptionError,
    StackoError,
    StackoRuntimeError,
    TypeMismatchError,
)
from .evaluator import Interpreter, LambdaBlock, dispatch, interpret
from .lexer import Token, split_tokens, tokenize
from .parser import parse_literal
from .printer import render_stack, render_value
from .registry import OperationFamily, OperationSpec, classify, min_arity
from .stack import OperandStack
from .values import DeferredToken, Matrix, ValueKind, Vector

__all__ = [
    "interpret",
    "Interpreter",
    "dispatch",
    "OperandStack",
    "LambdaBlock",
    "tokenize",
    "split_tokens",
    "Token",
    "parse_literal",
    "render_value",
    "render_stack",
    "classify",
    "min_arity",
    "OperationFamily",
    "OperationSpec",
    "DeferredToken",
    "Vector",
    "Matrix",
    "ValueKind",
    "StackoError",
    "StackoRuntimeError",
    "MalformedLiteralError",
    "DimensionMismatchError",
    "TypeMismatchError",
    "StackCorruptionError",
    "ArithmeticFaultError",
    "RecursionDepthError",
]
