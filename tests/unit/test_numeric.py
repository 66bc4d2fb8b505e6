"""Tests for the numeric tower: normalization, promotion, comparison, rendering."""

from __future__ import annotations

import math
from fractions import Fraction

import pytest

from amlang.core.errors import EvaluationError, RuntimeErrorKind
from amlang.core.ir.program import LiteralKind
from amlang.core.lang import numeric
from amlang.core.lang.numeric import (
    E,
    INFINITY,
    NAN,
    NEG_INFINITY,
    PI,
    Float,
    Integer,
    Rational,
)


def half() -> Rational:
    return Rational(Fraction(1, 2))


class TestConstruction:
    """Values are always built in canonical form."""

    def test_integral_fraction_becomes_integer(self) -> None:
        assert numeric.normalize(Fraction(4, 2)) == Integer(2)

    def test_fraction_is_reduced(self) -> None:
        assert numeric.normalize(Fraction(-2, 4)) == Rational(Fraction(-1, 2))

    def test_rational_rejects_integral_value(self) -> None:
        with pytest.raises(ValueError):
            Rational(Fraction(2, 1))

    def test_float_rejects_non_finite(self) -> None:
        with pytest.raises(ValueError):
            Float(math.inf)

    def test_from_float(self) -> None:
        assert numeric.from_float(math.inf) == INFINITY
        assert numeric.from_float(-math.inf) == NEG_INFINITY
        assert numeric.from_float(math.nan) == NAN
        assert numeric.from_float(0.25) == Float(0.25)

    def test_from_literal(self) -> None:
        assert numeric.from_literal(LiteralKind.INTEGER, "7") == Integer(7)
        assert numeric.from_literal(LiteralKind.RATIONAL, "1/2") == half()
        assert numeric.from_literal(LiteralKind.FLOAT, "0.5") == Float(0.5)
        assert numeric.from_literal(LiteralKind.CONSTANT, "ℯ") == E

    def test_to_float_saturates(self) -> None:
        assert numeric.to_float(Integer(10**400)) == math.inf
        assert numeric.to_float(Integer(-(10**400))) == -math.inf


class TestArithmetic:
    """Promotion: Integer < Rational < Float < Special."""

    def test_integer_addition_stays_exact(self) -> None:
        assert numeric.add(Integer(2), Integer(3)) == Integer(5)

    def test_integer_plus_rational(self) -> None:
        assert numeric.add(Integer(2), half()) == Rational(Fraction(5, 2))

    def test_rationals_can_sum_to_integer(self) -> None:
        assert numeric.add(half(), half()) == Integer(1)

    def test_float_promotes(self) -> None:
        assert numeric.add(Integer(1), Float(0.5)) == Float(1.5)
        assert numeric.multiply(half(), Float(3.0)) == Float(1.5)

    def test_special_arithmetic(self) -> None:
        assert numeric.add(INFINITY, Integer(1)) == INFINITY
        assert numeric.add(INFINITY, NEG_INFINITY) == NAN
        assert numeric.add(PI, Integer(0)) == Float(math.pi)
        assert numeric.multiply(NAN, Integer(0)) == NAN

    def test_uneven_integer_division_is_rational(self) -> None:
        assert numeric.divide(Integer(1), Integer(2)) == half()

    def test_even_integer_division_is_integer(self) -> None:
        assert numeric.divide(Integer(6), Integer(3)) == Integer(2)

    @pytest.mark.parametrize(
        ("dividend", "divisor"),
        [
            (Integer(1), Integer(0)),
            (half(), Integer(0)),
            (Float(1.0), Integer(0)),
            (Integer(1), Float(0.0)),
        ],
    )
    def test_division_by_zero(self, dividend: numeric.Numeric, divisor: numeric.Numeric) -> None:
        with pytest.raises(EvaluationError) as exc:
            numeric.divide(dividend, divisor)
        assert exc.value.kind == RuntimeErrorKind.DIVISION_BY_ZERO

    def test_special_over_zero(self) -> None:
        assert numeric.divide(INFINITY, Integer(0)) == INFINITY
        assert numeric.divide(NEG_INFINITY, Integer(0)) == NEG_INFINITY
        assert numeric.divide(NAN, Integer(0)) == NAN

    def test_divide_by_infinity(self) -> None:
        assert numeric.divide(Integer(1), INFINITY) == Float(0.0)

    def test_modulo(self) -> None:
        assert numeric.modulo(Integer(7), Integer(3)) == Integer(1)
        assert numeric.modulo(Integer(-7), Integer(3)) == Integer(2)
        assert numeric.modulo(Rational(Fraction(7, 2)), Integer(1)) == half()
        assert numeric.modulo(Float(5.5), Integer(2)) == Float(1.5)

    def test_modulo_by_zero(self) -> None:
        with pytest.raises(EvaluationError) as exc:
            numeric.modulo(Integer(7), Integer(0))
        assert exc.value.kind == RuntimeErrorKind.DIVISION_BY_ZERO
        assert numeric.modulo(INFINITY, Integer(0)) == NAN

    def test_exact_powers(self) -> None:
        assert numeric.power(Integer(2), Integer(10)) == Integer(1024)
        assert numeric.power(half(), Integer(2)) == Rational(Fraction(1, 4))
        assert numeric.power(Integer(0), Integer(0)) == Integer(1)
        assert numeric.power(Integer(2), Integer(100)) == Integer(2**100)

    def test_inexact_powers(self) -> None:
        assert numeric.power(Integer(2), Integer(-1)) == Float(0.5)
        assert numeric.power(Integer(4), half()) == Float(2.0)

    def test_power_domain_error_is_nan(self) -> None:
        assert numeric.power(Integer(-8), Rational(Fraction(1, 3))) == NAN

    def test_power_overflow(self) -> None:
        assert numeric.power(Float(10.0), Integer(400)) == INFINITY
        assert numeric.power(Float(-10.0), Integer(401)) == NEG_INFINITY

    def test_zero_to_negative_power(self) -> None:
        with pytest.raises(EvaluationError) as exc:
            numeric.power(Integer(0), Integer(-1))
        assert exc.value.kind == RuntimeErrorKind.DIVISION_BY_ZERO

    def test_negate(self) -> None:
        assert numeric.negate(Integer(3)) == Integer(-3)
        assert numeric.negate(half()) == Rational(Fraction(-1, 2))
        assert numeric.negate(INFINITY) == NEG_INFINITY
        assert numeric.negate(NEG_INFINITY) == INFINITY
        assert numeric.negate(NAN) == NAN
        assert numeric.negate(PI) == Float(-math.pi)

    def test_absolute(self) -> None:
        assert numeric.absolute(Integer(-3)) == Integer(3)
        assert numeric.absolute(NEG_INFINITY) == INFINITY
        assert numeric.absolute(NAN) == NAN


class TestComparison:
    """Comparison by mathematical value; NaN is unordered."""

    def test_equality_across_kinds(self) -> None:
        assert numeric.equal(Integer(1), Float(1.0))
        assert numeric.equal(half(), Float(0.5))
        assert not numeric.equal(Rational(Fraction(1, 3)), Float(1 / 3))

    def test_nan_is_never_equal(self) -> None:
        assert not numeric.equal(NAN, NAN)
        assert not numeric.equal(NAN, Integer(0))

    def test_nan_relations_are_false(self) -> None:
        for relation in (numeric.less, numeric.less_equal, numeric.greater, numeric.greater_equal):
            assert not relation(NAN, Integer(1))
            assert not relation(Integer(1), NAN)

    def test_huge_integers_below_infinity(self) -> None:
        assert numeric.less(Integer(10**400), INFINITY)
        assert numeric.greater(Integer(-(10**400)), NEG_INFINITY)

    def test_mixed_ordering(self) -> None:
        assert numeric.less(Rational(Fraction(1, 3)), Float(0.34))
        assert numeric.less_equal(PI, Float(3.2))
        assert numeric.greater_equal(E, half())

    def test_sign(self) -> None:
        assert numeric.sign(Integer(-2)) == -1
        assert numeric.sign(Integer(0)) == 0
        assert numeric.sign(INFINITY) == 1
        assert numeric.sign(NAN) == 0


class TestRender:
    """Canonical text forms."""

    @pytest.mark.parametrize(
        ("value", "text"),
        [
            (Integer(-5), "-5"),
            (Rational(Fraction(-3, 4)), "-3/4"),
            (Float(0.5), "0.5"),
            (PI, "π"),
            (E, "e"),
            (INFINITY, "∞"),
            (NEG_INFINITY, "-∞"),
            (NAN, "NaN"),
        ],
    )
    def test_render(self, value: numeric.Numeric, text: str) -> None:
        assert numeric.render_numeric(value) == text
