"""Token dispatcher and evaluator for the stack language."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable, Final

import jax.numpy as jnp

from .binary import apply_binary
from .errors import MalformedLiteralError, RecursionDepthError, TypeMismatchError
from .lexer import DEFER_MARKER, split_tokens
from .parser import parse_literal
from .printer import render_value
from .registry import OperationFamily, is_operator, lookup
from .stack import OperandStack
from .values import DeferredToken, Matrix, ValueKind, kind_of

_log = logging.getLogger(__name__)

_BLOCK_OPEN: Final[str] = "{"
_BLOCK_CLOSE: Final[str] = "}"
_BLOCK_SEPARATOR: Final[str] = "|"
_SELF_MARKER: Final[str] = "SELF"
_PLACEHOLDER_RE: Final = re.compile(r"x([0-9]+)")
_COUNT_RE: Final = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class LambdaBlock:
    source: str
    arity: int
    body: str

    @classmethod
    def parse(cls, source: str) -> "LambdaBlock":
        if not (source.startswith(_BLOCK_OPEN) and source.endswith(_BLOCK_CLOSE)) or len(source) < 2:
            raise MalformedLiteralError("Block literal must be enclosed in braces", text=source)
        count_spec, sep, body = source[1:-1].partition(_BLOCK_SEPARATOR)
        if not sep:
            raise MalformedLiteralError("Block literal is missing its '|' separator", text=source)
        count_spec = count_spec.strip()
        if not _COUNT_RE.fullmatch(count_spec):
            raise MalformedLiteralError(f"Block parameter count {count_spec!r} is not an integer", text=source)
        return cls(source=source, arity=int(count_spec), body=body.strip())

    def substitute(self, args: list[object]) -> str:
        """Body text with ``x<i>`` replaced by rendered arguments and ``SELF`` by a quoted copy of the block."""

        def replace(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index >= len(args):
                raise MalformedLiteralError(
                    f"Placeholder x{index} exceeds the block's {len(args)} parameter(s)",
                    text=self.source,
                )
            return render_value(args[index])

        body = _PLACEHOLDER_RE.sub(replace, self.body)
        return body.replace(_SELF_MARKER, DEFER_MARKER + self.source)


def _eval_unary(op: str, stack: OperandStack) -> None:
    value = stack.pop(where=op)
    if op == "EVAL":
        token = str(value) if isinstance(value, str) else render_value(value)
        _log.debug("EVAL re-dispatching %r", token)
        dispatch(token, stack)
        return
    kind = kind_of(value)
    if op == "!":
        if kind is not ValueKind.BOOLEAN:
            raise TypeMismatchError(f"! needs a boolean, got {kind.value}", token=op)
        stack.push(not value)
        return
    if op == "~":
        if kind is not ValueKind.INTEGER:
            raise TypeMismatchError(f"~ needs an integer, got {kind.value}", token=op)
        stack.push(~value)
        return
    if op == "TRANSP":
        if kind is not ValueKind.MATRIX:
            raise TypeMismatchError(f"TRANSP needs a matrix, got {kind.value}", token=op)
        stack.push(Matrix(jnp.transpose(value.data)))
        return
    raise AssertionError(f"unhandled unary operator {op!r}")


def _eval_binary(op: str, stack: OperandStack) -> None:
    right = stack.pop(where=op)
    left = stack.pop(where=op)
    stack.push(apply_binary(op, left, right))


def _eval_stack(op: str, stack: OperandStack) -> None:
    if op == "DROP":
        stack.drop()
    elif op == "DUP":
        stack.dup()
    elif op == "SWAP":
        stack.swap()
    elif op == "ROT":
        stack.rot()
    elif op in {"ROLL", "ROLLD"}:
        count = stack.pop(where=op)
        if kind_of(count) is not ValueKind.INTEGER:
            raise TypeMismatchError(f"{op} needs an integer window size, got {kind_of(count).value}", token=op)
        stack.rotate_window(count, toward_top=op == "ROLL", where=op)
    else:
        raise AssertionError(f"unhandled stack operator {op!r}")


def _eval_conditional(op: str, stack: OperandStack) -> None:
    condition = stack.pop(where=op)
    false_value = stack.pop(where=op)
    true_value = stack.pop(where=op)
    if kind_of(condition) is not ValueKind.BOOLEAN:
        raise TypeMismatchError(f"{op} condition must be a boolean, got {kind_of(condition).value}", token=op)
    stack.push(true_value if condition else false_value)


_FAMILY_HANDLERS: Final[dict[OperationFamily, Callable[[str, OperandStack], None]]] = {
    OperationFamily.UNARY: _eval_unary,
    OperationFamily.BINARY: _eval_binary,
    OperationFamily.STACK: _eval_stack,
    OperationFamily.CONDITIONAL: _eval_conditional,
}


def evaluate_lambda(source: str, stack: OperandStack) -> None:
    """Apply a ``{N|body}`` block: bind N popped values, run the body on a fresh stack, append its results."""
    block = LambdaBlock.parse(source)
    args = stack.pop_many(block.arity, where=source)
    body = block.substitute(args)
    _log.debug("lambda %r applied as %r", source, body)
    scope = OperandStack()
    _run_line(body, scope)
    stack.extend(scope)


def dispatch(token: str, stack: OperandStack) -> None:
    """Route one token: operator, quoted/deferred text, block literal, or plain literal."""
    spec = lookup(token)
    if spec is not None:
        if len(stack) < spec.min_arity:
            stack.push(DeferredToken(token))
            return
        _FAMILY_HANDLERS[spec.family](token, stack)
        return

    if token.startswith(DEFER_MARKER):
        rest = token[len(DEFER_MARKER) :]
        if is_operator(rest) or rest.startswith(_BLOCK_OPEN):
            stack.push(DeferredToken(rest))
        else:
            stack.push(parse_literal(rest))
        return

    if token.startswith(_BLOCK_OPEN):
        evaluate_lambda(token, stack)
        return

    stack.push(parse_literal(token))


def _run_line(line: str, stack: OperandStack) -> None:
    for token in split_tokens(line):
        dispatch(token, stack)


def _run_program(lines: str | Iterable[str], stack: OperandStack) -> None:
    if isinstance(lines, str):
        lines = [lines]
    try:
        for line in lines:
            _run_line(line.rstrip("\r\n"), stack)
    except RecursionError as err:
        raise RecursionDepthError("recursion limit exceeded while evaluating program") from err


class Interpreter:
    """Stateful session: programs run against one persistent operand stack."""

    def __init__(self) -> None:
        self._stack = OperandStack()

    @property
    def stack(self) -> list[object]:
        return self._stack.snapshot()

    def interpret(self, lines: str | Iterable[str]) -> list[object]:
        _run_program(lines, self._stack)
        return self._stack.snapshot()

    def reset(self) -> None:
        self._stack.clear()


def interpret(lines: str | Iterable[str]) -> list[object]:
    """Run ``lines`` on a fresh stack and return the final stack, bottom to top."""
    return Interpreter().interpret(lines)
