"""
Builtin algorithms bound in the root environment.

    abs(x)    absolute value, same numeric kind as x
    sqrt(x)   exact for perfect squares, Float otherwise
    e         Euler's number as a Special constant

Builtins are ordinary values: they can be passed around, piped into and
shadowed by user bindings.
"""

from __future__ import annotations

import math
from fractions import Fraction
from types import MappingProxyType

from amlang.core.errors import RuntimeErrorKind, make_runtime_error
from amlang.core.lang import numeric
from amlang.core.lang.numeric import (
    E,
    INFINITY,
    NAN,
    Float,
    Integer,
    Numeric,
    Rational,
    Special,
    SpecialKind,
)
from amlang.core.lang.values import Builtin, Value, is_numeric, type_name


def _require_numeric(name: str, value: Value) -> Numeric:
    if not is_numeric(value):
        raise make_runtime_error(
            RuntimeErrorKind.TYPE_MISMATCH,
            f"{name}() requires a number, got {type_name(value)}",
        )
    return value  # type: ignore[return-value]


def _exact_root(n: int) -> int | None:
    root = math.isqrt(n)
    return root if root * root == n else None


def builtin_abs(x: Value) -> Value:
    return numeric.absolute(_require_numeric("abs", x))


def builtin_sqrt(x: Value) -> Value:
    n = _require_numeric("sqrt", x)

    if isinstance(n, Special):
        if n.kind == SpecialKind.INFINITY:
            return INFINITY
        if n.kind in (SpecialKind.NEG_INFINITY, SpecialKind.NAN):
            return NAN
        return Float(math.sqrt(numeric.to_float(n)))

    if numeric.sign(n) < 0:
        return NAN

    if isinstance(n, Integer):
        root = _exact_root(n.value)
        if root is not None:
            return Integer(root)
    elif isinstance(n, Rational):
        num, den = _exact_root(n.numerator), _exact_root(n.denominator)
        if num is not None and den is not None:
            return numeric.normalize(Fraction(num, den))

    return numeric.from_float(math.sqrt(numeric.to_float(n)))


PRELUDE: MappingProxyType[str, Value] = MappingProxyType(
    {
        "abs": Builtin("abs", ("x",), builtin_abs),
        "sqrt": Builtin("sqrt", ("x",), builtin_sqrt),
        "e": E,
    }
)
