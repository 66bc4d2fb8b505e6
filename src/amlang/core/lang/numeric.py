"""
Numeric model for AM.

Four closed variants, ordered by promotion rank:

    Integer < Rational < Float < Special

Integer and Rational arithmetic is exact (``fractions.Fraction``). A Float
operand turns the whole operation into IEEE double arithmetic, as does a
Special constant (π, e, ∞, -∞, NaN). Double results that are infinite or
NaN come back as Special values, so a Float is always finite.

Operations raise ``EvaluationError`` without a source position; the
evaluator attaches the position of the node being evaluated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from fractions import Fraction

from amlang.core.errors import RuntimeErrorKind, make_runtime_error
from amlang.core.ir.program import LiteralKind


class SpecialKind(StrEnum):
    """Named constants outside the exact tower; values are their renderings."""

    PI = "π"
    E = "e"
    INFINITY = "∞"
    NEG_INFINITY = "-∞"
    NAN = "NaN"


class NumericRank(IntEnum):
    """Promotion order: the result of a binary operation uses the higher rank."""

    INTEGER = 0
    RATIONAL = 1
    FLOAT = 2
    SPECIAL = 3


@dataclass(frozen=True)
class Integer:
    """Arbitrary-precision signed integer."""

    value: int

    rank = NumericRank.INTEGER


@dataclass(frozen=True)
class Rational:
    """Reduced fraction with denominator > 1."""

    value: Fraction

    rank = NumericRank.RATIONAL

    def __post_init__(self) -> None:
        # Fraction already keeps itself reduced with a positive denominator
        if self.value.denominator == 1:
            raise ValueError(f"{self.value} is integral; use Integer")

    @property
    def numerator(self) -> int:
        return self.value.numerator

    @property
    def denominator(self) -> int:
        return self.value.denominator


@dataclass(frozen=True)
class Float:
    """Finite IEEE double."""

    value: float

    rank = NumericRank.FLOAT

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise ValueError(f"{self.value} is not finite; use Special")


@dataclass(frozen=True)
class Special:
    """One of the named special constants."""

    kind: SpecialKind

    rank = NumericRank.SPECIAL


Numeric = Integer | Rational | Float | Special

PI = Special(SpecialKind.PI)
E = Special(SpecialKind.E)
INFINITY = Special(SpecialKind.INFINITY)
NEG_INFINITY = Special(SpecialKind.NEG_INFINITY)
NAN = Special(SpecialKind.NAN)

# Canonical constant glyphs as produced by the lexer
CONSTANT_GLYPHS: dict[str, Special] = {
    "π": PI,
    "ℯ": E,
    "∞": INFINITY,
    "NaN": NAN,
}

_SPECIAL_FLOATS: dict[SpecialKind, float] = {
    SpecialKind.PI: math.pi,
    SpecialKind.E: math.e,
    SpecialKind.INFINITY: math.inf,
    SpecialKind.NEG_INFINITY: -math.inf,
    SpecialKind.NAN: math.nan,
}


# ---------------------------------------------------------------------------
# Construction and conversion
# ---------------------------------------------------------------------------


def normalize(value: int | Fraction) -> Integer | Rational:
    """Build the canonical exact value: integral fractions become Integer."""
    if isinstance(value, Fraction):
        if value.denominator == 1:
            return Integer(value.numerator)
        return Rational(value)
    return Integer(value)


def from_float(value: float) -> Float | Special:
    """Classify a double: finite values are Float, the rest Special."""
    if math.isnan(value):
        return NAN
    if math.isinf(value):
        return INFINITY if value > 0 else NEG_INFINITY
    return Float(value)


def from_literal(kind: LiteralKind, text: str) -> Numeric:
    """Convert normalized literal text from the AST into a numeric value."""
    if kind == LiteralKind.INTEGER:
        return Integer(int(text))
    if kind == LiteralKind.RATIONAL:
        return normalize(Fraction(text))
    if kind == LiteralKind.FLOAT:
        return from_float(float(text))
    if kind == LiteralKind.CONSTANT:
        return CONSTANT_GLYPHS[text]
    raise ValueError(f"Not a numeric literal kind: {kind}")


def to_float(n: Numeric) -> float:
    """Approximate any numeric value as a double (huge exact values saturate)."""
    if isinstance(n, Special):
        return _SPECIAL_FLOATS[n.kind]
    if isinstance(n, Float):
        return n.value
    try:
        return float(n.value)
    except OverflowError:
        return math.inf if n.value > 0 else -math.inf


def _exact(n: Integer | Rational) -> int | Fraction:
    return n.value


def _is_exact(n: Numeric) -> bool:
    return isinstance(n, (Integer, Rational))


def _rank(a: Numeric, b: Numeric) -> NumericRank:
    return max(a.rank, b.rank)


def is_zero(n: Numeric) -> bool:
    if isinstance(n, (Integer, Float)):
        return n.value == 0
    # Rational is never zero; Special constants are never zero
    return False


def is_nan(n: Numeric) -> bool:
    return isinstance(n, Special) and n.kind == SpecialKind.NAN


def sign(n: Numeric) -> int:
    """-1, 0 or 1; NaN reports 0."""
    if is_nan(n):
        return 0
    x = _ordering_key(n)
    return (x > 0) - (x < 0)


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


def add(a: Numeric, b: Numeric) -> Numeric:
    if _rank(a, b) <= NumericRank.RATIONAL:
        return normalize(_exact(a) + _exact(b))  # type: ignore[arg-type]
    return from_float(to_float(a) + to_float(b))


def subtract(a: Numeric, b: Numeric) -> Numeric:
    if _rank(a, b) <= NumericRank.RATIONAL:
        return normalize(_exact(a) - _exact(b))  # type: ignore[arg-type]
    return from_float(to_float(a) - to_float(b))


def multiply(a: Numeric, b: Numeric) -> Numeric:
    if _rank(a, b) <= NumericRank.RATIONAL:
        return normalize(_exact(a) * _exact(b))  # type: ignore[arg-type]
    return from_float(to_float(a) * to_float(b))


def divide(a: Numeric, b: Numeric) -> Numeric:
    """
    Exact division where possible.

    ``1 / 2`` is the Rational 1/2, not 0.5. Dividing a non-Special value by
    zero is an error; ∞ and NaN never appear as a side effect of ``/``.
    """
    if is_zero(b):
        return _special_over_zero(a, "Division by zero")
    if _rank(a, b) <= NumericRank.RATIONAL:
        return normalize(Fraction(_exact(a)) / Fraction(_exact(b)))  # type: ignore[arg-type]
    return from_float(to_float(a) / to_float(b))


def modulo(a: Numeric, b: Numeric) -> Numeric:
    """Floored remainder; exact for Integer/Rational operands."""
    if is_zero(b):
        if isinstance(a, Special):
            return NAN
        raise make_runtime_error(RuntimeErrorKind.DIVISION_BY_ZERO, "Modulo by zero")
    if _rank(a, b) <= NumericRank.RATIONAL:
        return normalize(_exact(a) % _exact(b))  # type: ignore[arg-type,operator]
    return from_float(to_float(a) % to_float(b))


def power(base: Numeric, exponent: Numeric) -> Numeric:
    """
    Exponentiation.

    Exact only for an Integer/Rational base raised to a non-negative
    Integer; every other combination is computed in double precision.
    """
    if _is_exact(base) and isinstance(exponent, Integer) and exponent.value >= 0:
        return normalize(_exact(base) ** exponent.value)  # type: ignore[arg-type]

    x, y = to_float(base), to_float(exponent)
    if x == 0 and y < 0:
        raise make_runtime_error(
            RuntimeErrorKind.DIVISION_BY_ZERO, "Zero raised to a negative power"
        )
    try:
        return from_float(math.pow(x, y))
    except OverflowError:
        negative = x < 0 and y.is_integer() and int(y) % 2 == 1
        return NEG_INFINITY if negative else INFINITY
    except ValueError:
        # Negative base with a non-integral exponent
        return NAN


def negate(n: Numeric) -> Numeric:
    if isinstance(n, Integer):
        return Integer(-n.value)
    if isinstance(n, Rational):
        return Rational(-n.value)
    if isinstance(n, Float):
        return Float(-n.value)
    if n.kind == SpecialKind.INFINITY:
        return NEG_INFINITY
    if n.kind == SpecialKind.NEG_INFINITY:
        return INFINITY
    if n.kind == SpecialKind.NAN:
        return NAN
    # -π and -e have no constant of their own
    return Float(-_SPECIAL_FLOATS[n.kind])


def absolute(n: Numeric) -> Numeric:
    if sign(n) < 0:
        return negate(n)
    return n


def _special_over_zero(a: Numeric, message: str) -> Numeric:
    if not isinstance(a, Special):
        raise make_runtime_error(RuntimeErrorKind.DIVISION_BY_ZERO, message)
    if a.kind == SpecialKind.NAN:
        return NAN
    return NEG_INFINITY if a.kind == SpecialKind.NEG_INFINITY else INFINITY


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def _ordering_key(n: Numeric) -> int | Fraction | float:
    """Value used for comparisons; int/Fraction/float compare exactly in Python."""
    if isinstance(n, (Integer, Rational)):
        return n.value
    return to_float(n)


def equal(a: Numeric, b: Numeric) -> bool:
    """Mathematical equality. NaN is unequal to everything, itself included."""
    if is_nan(a) or is_nan(b):
        return False
    return _ordering_key(a) == _ordering_key(b)


def less(a: Numeric, b: Numeric) -> bool:
    if is_nan(a) or is_nan(b):
        return False
    return _ordering_key(a) < _ordering_key(b)


def less_equal(a: Numeric, b: Numeric) -> bool:
    if is_nan(a) or is_nan(b):
        return False
    return _ordering_key(a) <= _ordering_key(b)


def greater(a: Numeric, b: Numeric) -> bool:
    return less(b, a)


def greater_equal(a: Numeric, b: Numeric) -> bool:
    return less_equal(b, a)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_numeric(n: Numeric) -> str:
    """Canonical text form: ``5``, ``-3/4``, ``0.5``, ``π``, ``-∞``, ``NaN``."""
    if isinstance(n, Integer):
        return str(n.value)
    if isinstance(n, Rational):
        return f"{n.numerator}/{n.denominator}"
    if isinstance(n, Float):
        return repr(n.value)
    return n.kind.value
