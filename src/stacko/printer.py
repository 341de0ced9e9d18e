"""Text rendering of stack values."""

from __future__ import annotations

import math

from .values import Matrix, Vector


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e", 1)
        if "." not in mantissa:
            mantissa += ".0"
        if not exponent.startswith(("-", "+")):
            exponent = "+" + exponent
        return f"{mantissa}e{exponent}"
    return text


def _format_scalar(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value)
    return str(value)


def _format_nested(items) -> str:
    if isinstance(items, list):
        return "[" + ", ".join(_format_nested(item) for item in items) + "]"
    return _format_scalar(items)


def render_value(value) -> str:
    """Render one value the way the output file and lambda substitution expect."""
    if isinstance(value, (Vector, Matrix)):
        return _format_nested(value.tolist())
    if isinstance(value, str):
        return str(value)
    return _format_scalar(value)


def render_stack(values) -> list[str]:
    return [render_value(value) for value in values]
