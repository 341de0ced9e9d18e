"""Static operator registry: families and minimum stack depth per operator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final


class OperationFamily(str, Enum):
    UNARY = "unary"
    BINARY = "binary"
    STACK = "stack"
    CONDITIONAL = "conditional"


@dataclass(frozen=True)
class OperationSpec:
    name: str
    family: OperationFamily
    min_arity: int


_FAMILY_MEMBERS: Final[dict[OperationFamily, tuple[str, ...]]] = {
    OperationFamily.UNARY: ("!", "~", "TRANSP", "EVAL"),
    OperationFamily.BINARY: (
        "+",
        "-",
        "*",
        "/",
        "**",
        "%",
        "==",
        "!=",
        ">",
        "<",
        ">=",
        "<=",
        "<=>",
        "&",
        "|",
        "^",
        "<<",
        ">>",
        "x",
    ),
    OperationFamily.STACK: ("DROP", "DUP", "SWAP", "ROT", "ROLL", "ROLLD"),
    OperationFamily.CONDITIONAL: ("IFELSE",),
}

_FAMILY_ARITY: Final[dict[OperationFamily, int]] = {
    OperationFamily.UNARY: 1,
    OperationFamily.BINARY: 2,
    OperationFamily.CONDITIONAL: 3,
}

_STACK_ARITY: Final[dict[str, int]] = {
    "DROP": 1,
    "DUP": 1,
    "SWAP": 2,
    "ROT": 3,
    "ROLL": 2,
    "ROLLD": 2,
}


def min_arity(family: OperationFamily, token: str) -> int:
    """Minimum stack depth required before ``token`` may execute."""
    if family is OperationFamily.STACK:
        try:
            return _STACK_ARITY[token]
        except KeyError:
            raise KeyError(f"{token!r} is not a stack operator") from None
    return _FAMILY_ARITY[family]


def _build_registry() -> dict[str, OperationSpec]:
    registry: dict[str, OperationSpec] = {}
    for family, names in _FAMILY_MEMBERS.items():
        for name in names:
            if name in registry:
                raise AssertionError(f"operator {name!r} registered in two families")
            registry[name] = OperationSpec(name=name, family=family, min_arity=min_arity(family, name))
    return registry


REGISTRY: Final[dict[str, OperationSpec]] = _build_registry()
OPERATOR_NAMES: Final[frozenset[str]] = frozenset(REGISTRY)


def lookup(token: str) -> OperationSpec | None:
    return REGISTRY.get(token)


def classify(token: str) -> OperationFamily | None:
    spec = REGISTRY.get(token)
    return None if spec is None else spec.family


def is_operator(token: str) -> bool:
    return token in REGISTRY
