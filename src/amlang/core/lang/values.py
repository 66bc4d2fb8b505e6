"""
Runtime values and their text/structured forms.

    Value = Numeric | Str | Bool | Algorithm | Builtin

Values are immutable once produced. Algorithms compare by identity.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from amlang.core.ir.program import Expr
from amlang.core.lang.numeric import (
    Float,
    Integer,
    Rational,
    Special,
    render_numeric,
    to_float,
)

if TYPE_CHECKING:
    from amlang.core.lang.environment import Environment


@dataclass(frozen=True)
class Str:
    """Text value."""

    value: str


@dataclass(frozen=True)
class Bool:
    """Truth value produced by comparisons and logical operators."""

    value: bool


@dataclass(frozen=True, eq=False)
class Algorithm:
    """
    Closure created by ``@Name(params) = body``.

    ``env`` is the environment captured at definition time; it already
    contains the binding of ``name`` so the body can call itself.
    """

    name: str
    params: tuple[str, ...]
    body: Expr
    env: Environment = field(repr=False)

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True, eq=False)
class Builtin:
    """Algorithm implemented in Python, bound in the prelude."""

    name: str
    params: tuple[str, ...]
    func: Callable[..., Value] = field(repr=False)

    @property
    def arity(self) -> int:
        return len(self.params)


Value = Integer | Rational | Float | Special | Str | Bool | Algorithm | Builtin

TRUE = Bool(True)
FALSE = Bool(False)

NUMERIC_TYPES = (Integer, Rational, Float, Special)
CALLABLE_TYPES = (Algorithm, Builtin)


def is_numeric(value: Value) -> bool:
    return isinstance(value, NUMERIC_TYPES)


def type_name(value: Value) -> str:
    """Short name of a value's variant, used in error messages and JSON."""
    if isinstance(value, Integer):
        return "integer"
    if isinstance(value, Rational):
        return "rational"
    if isinstance(value, Float):
        return "float"
    if isinstance(value, Special):
        return "special"
    if isinstance(value, Str):
        return "string"
    if isinstance(value, Bool):
        return "bool"
    if isinstance(value, Algorithm):
        return "algorithm"
    return "builtin"


def render(value: Value) -> str:
    """
    Canonical text of a value.

    This is what string interpolation inserts and what ``amlang run`` prints.
    """
    if isinstance(value, NUMERIC_TYPES):
        return render_numeric(value)
    if isinstance(value, Str):
        return value.value
    if isinstance(value, Bool):
        return "true" if value.value else "false"
    return f"@{value.name}({', '.join(value.params)})"


def render_pretty(value: Value) -> str:
    """Human-oriented text: quoted strings, rationals with a decimal approximation."""
    if isinstance(value, Rational):
        return f"{render_numeric(value)} ≈ {to_float(value):.6g}"
    if isinstance(value, Str):
        escaped = value.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, Builtin):
        return f"<builtin {render(value)}>"
    if isinstance(value, Algorithm):
        return f"<algorithm {render(value)}>"
    return render(value)


def to_json(value: Value) -> dict[str, Any]:
    """Tree-shaped serialization of a value (``amlang run --json``)."""
    kind = type_name(value)
    if isinstance(value, Integer):
        return {"type": kind, "value": value.value}
    if isinstance(value, Rational):
        return {
            "type": kind,
            "numerator": value.numerator,
            "denominator": value.denominator,
        }
    if isinstance(value, Float):
        return {"type": kind, "value": value.value}
    if isinstance(value, Special):
        return {"type": kind, "value": value.kind.name.lower(), "text": value.kind.value}
    if isinstance(value, (Str, Bool)):
        return {"type": kind, "value": value.value}
    return {"type": kind, "name": value.name, "params": list(value.params)}
