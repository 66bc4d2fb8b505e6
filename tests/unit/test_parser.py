"""Tests for the AM parser.

Covers:
- Operator precedence and associativity
- Statements: let, algorithm definitions, expression statements
- Case blocks, interpolation, pipelines
- Parse errors with kinds and positions
"""

from __future__ import annotations

import sys

import pytest

from amlang.core.errors import ParseError, ParseErrorKind
from amlang.core.ir.program import (
    AlgorithmDef,
    AlgorithmRef,
    BinaryExpr,
    BinaryOp,
    Call,
    Case,
    Expr,
    ExprStmt,
    Interpolated,
    Let,
    Literal,
    LiteralKind,
    Pipe,
    Span,
    UnaryExpr,
    UnaryOp,
    Var,
)
from amlang.core.lang.parser import parse, parse_expression, parse_source
from amlang.core.lang.tokenizer import tokenize

SAFEDIV = """\
@SafeDiv(a,b) = case
  b ≠ 0 => a / b
  b = 0 ∧ a > 0 => ∞
  b = 0 ∧ a < 0 => -∞
  _ => NaN
end
"""


def parse_expr(source: str) -> Expr:
    program = parse_source(source)
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExprStmt)
    return stmt.expr


# ============================================================================
# Precedence
# ============================================================================


class TestPrecedence:
    """Operators bind according to the precedence table."""

    def test_multiplication_over_addition(self) -> None:
        expr = parse_expr("1 + 2 * 3")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.ADD
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == BinaryOp.MUL

    def test_power_over_multiplication(self) -> None:
        assert str(parse_expr("1 + 2 * 3 ^ 2")) == "(1 + (2 * (3 ^ 2)))"

    def test_power_is_right_associative(self) -> None:
        assert str(parse_expr("2 ^ 3 ^ 2")) == "(2 ^ (3 ^ 2))"

    def test_power_binds_tighter_than_unary_minus(self) -> None:
        expr = parse_expr("-2 ^ 2")
        assert isinstance(expr, UnaryExpr)
        assert expr.op == UnaryOp.NEG
        assert isinstance(expr.operand, BinaryExpr)
        assert expr.operand.op == BinaryOp.POW

    def test_negative_exponent(self) -> None:
        expr = parse_expr("2 ^ -1")
        assert isinstance(expr, BinaryExpr)
        assert isinstance(expr.right, UnaryExpr)

    def test_subtraction_is_left_associative(self) -> None:
        assert str(parse_expr("10 - 3 - 2")) == "((10 - 3) - 2)"

    def test_modulo_is_multiplicative(self) -> None:
        assert str(parse_expr("1 + 7 % 3")) == "(1 + (7 % 3))"

    def test_comparison_is_left_associative(self) -> None:
        expr = parse_expr("a < b < c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.LT
        assert isinstance(expr.left, BinaryExpr)
        assert expr.left.op == BinaryOp.LT

    def test_not_binds_looser_than_comparison(self) -> None:
        expr = parse_expr("¬ a = b")
        assert isinstance(expr, UnaryExpr)
        assert expr.op == UnaryOp.NOT
        assert isinstance(expr.operand, BinaryExpr)
        assert expr.operand.op == BinaryOp.EQ

    def test_and_over_or(self) -> None:
        assert str(parse_expr("a ∨ b ∧ c")) == "(a ∨ (b ∧ c))"

    def test_pipe_is_lowest(self) -> None:
        expr = parse_expr("x + 1 >> f")
        assert isinstance(expr, Pipe)
        assert isinstance(expr.head, BinaryExpr)

    def test_ascii_and_unicode_parse_alike(self) -> None:
        ascii_form = parse_expr("a and not b or c <= d")
        unicode_form = parse_expr("a ∧ ¬ b ∨ c ≤ d")
        assert str(ascii_form) == str(unicode_form)


# ============================================================================
# Statements
# ============================================================================


class TestStatements:
    """Top-level statement forms."""

    def test_let(self) -> None:
        program = parse_source("let x = 2\nx")
        let, stmt = program.statements
        assert isinstance(let, Let)
        assert let.name == "x"
        assert let.value == Literal(kind=LiteralKind.INTEGER, text="2", span=let.value.span)
        assert isinstance(stmt, ExprStmt)
        assert isinstance(stmt.expr, Var)

    def test_definition(self) -> None:
        stmt = parse_source("@Add(a, b) = a + b").statements[0]
        assert isinstance(stmt, AlgorithmDef)
        assert stmt.name == "Add"
        assert stmt.params == ["a", "b"]
        assert isinstance(stmt.body, BinaryExpr)

    def test_definition_without_parameters(self) -> None:
        stmt = parse_source("@Zero() = 0").statements[0]
        assert isinstance(stmt, AlgorithmDef)
        assert stmt.params == []

    def test_definitions_property(self) -> None:
        program = parse_source("@F(a) = a\nlet x = 1\n@G(b) = b")
        assert [d.name for d in program.definitions] == ["F", "G"]

    def test_algorithm_reference(self) -> None:
        let = parse_source("let f = @Add").statements[0]
        assert isinstance(let, Let)
        assert isinstance(let.value, AlgorithmRef)
        assert let.value.name == "Add"

    def test_call_with_expression_arguments_is_not_a_definition(self) -> None:
        expr = parse_expr("@F(1) = 1")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.EQ
        assert isinstance(expr.left, Call)
        assert isinstance(expr.left.callee, AlgorithmRef)

    def test_continuation_after_operator(self) -> None:
        program = parse_source("let y = 1 +\n  2")
        assert len(program.statements) == 1
        assert str(program.statements[0]) == "let y = (1 + 2)"

    def test_continuation_after_equals(self) -> None:
        program = parse_source("@F(x) =\n  x * 2")
        assert len(program.statements) == 1

    def test_blank_lines_and_comments(self) -> None:
        program = parse_source("\n# note\nlet x = 1\n\n\nx\n")
        assert len(program.statements) == 2

    def test_empty_program(self) -> None:
        assert parse_source("# nothing here\n").statements == []

    def test_curried_calls(self) -> None:
        expr = parse_expr("f(1)(2)")
        assert isinstance(expr, Call)
        assert isinstance(expr.callee, Call)

    def test_duplicate_parameter(self) -> None:
        with pytest.raises(ParseError, match="Duplicate parameter") as exc:
            parse_source("@F(a, a) = a")
        assert exc.value.kind == ParseErrorKind.UNEXPECTED_TOKEN

    def test_parse_accepts_tokens(self) -> None:
        assert str(parse(tokenize("1 + 2"))) == str(parse_source("1 + 2"))


class TestLiterals:
    """Literal nodes keep normalized text."""

    @pytest.mark.parametrize(
        ("source", "kind", "text"),
        [
            ("42", LiteralKind.INTEGER, "42"),
            ("2/4", LiteralKind.RATIONAL, "1/2"),
            ("4/2", LiteralKind.INTEGER, "2"),
            ("0.50", LiteralKind.FLOAT, "0.5"),
            ("inf", LiteralKind.CONSTANT, "∞"),
            ("pi", LiteralKind.CONSTANT, "π"),
            ("true", LiteralKind.BOOL, "true"),
            ('"hi"', LiteralKind.STRING, "hi"),
        ],
    )
    def test_literal(self, source: str, kind: LiteralKind, text: str) -> None:
        expr = parse_expr(source)
        assert isinstance(expr, Literal)
        assert expr.kind == kind
        assert expr.text == text

    def test_operator_span(self) -> None:
        let = parse_source("let x =\n  1 + 2").statements[0]
        assert isinstance(let, Let)
        assert let.value.span == Span(line=2, column=5, offset=12)


# ============================================================================
# Case blocks
# ============================================================================


class TestCase:
    """case ... end parsing."""

    def test_sample_block(self) -> None:
        stmt = parse_source(SAFEDIV).statements[0]
        assert isinstance(stmt, AlgorithmDef)
        case = stmt.body
        assert isinstance(case, Case)
        assert case.subject is None
        assert len(case.arms) == 4
        assert case.arms[-1].is_wildcard
        assert isinstance(case.arms[0].guard, BinaryExpr)
        assert case.arms[0].guard.op == BinaryOp.NE

    def test_subject_form(self) -> None:
        case = parse_expr('case n of\n  0 => "zero"\n  _ => "many"\nend')
        assert isinstance(case, Case)
        assert isinstance(case.subject, Var)
        assert len(case.arms) == 2

    @pytest.mark.parametrize("arrow", ["=>", "⇒", "->", "→"])
    def test_arm_arrows(self, arrow: str) -> None:
        case = parse_expr(f"case\n  x > 0 {arrow} 1\nend")
        assert isinstance(case, Case)
        assert len(case.arms) == 1

    def test_single_line(self) -> None:
        case = parse_expr("case x > 0 ⇒ 1 end")
        assert isinstance(case, Case)

    def test_nested_case(self) -> None:
        case = parse_expr("case\n  a ⇒ case\n    b ⇒ 1\n    _ ⇒ 2\n  end\n  _ ⇒ 3\nend")
        assert isinstance(case, Case)
        assert isinstance(case.arms[0].result, Case)

    def test_multi_line_case_as_argument(self) -> None:
        call = parse_expr("Id(case\n  n > 0 => 1\n  _ => 2\nend)")
        assert isinstance(call, Call)
        (arg,) = call.args
        assert isinstance(arg, Case)
        assert len(arg.arms) == 2
        assert arg.arms[-1].is_wildcard

    def test_multi_line_case_in_parentheses(self) -> None:
        case = parse_expr("(case\n  n > 0 => 10\n  -1 > 0 => 20\nend)")
        assert isinstance(case, Case)
        assert len(case.arms) == 2
        guard = case.arms[1].guard
        assert isinstance(guard, BinaryExpr)
        assert isinstance(guard.left, UnaryExpr)

    def test_case_argument_followed_by_more_arguments(self) -> None:
        call = parse_expr("Add(case\n  a => 1\n  _ => 2\nend,\n  3)")
        assert isinstance(call, Call)
        assert isinstance(call.args[0], Case)
        assert len(call.args) == 2

    def test_empty_case(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("case\nend")
        assert exc.value.kind == ParseErrorKind.EMPTY_CASE_BLOCK

    def test_empty_case_with_subject(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("case x of end")
        assert exc.value.kind == ParseErrorKind.EMPTY_CASE_BLOCK

    def test_wildcard_not_last(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("case\n  _ => 1\n  x => 2\nend")
        assert exc.value.kind == ParseErrorKind.WILDCARD_NOT_LAST
        assert exc.value.line == 3

    def test_missing_end(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("case\n  x => 1\n")
        assert exc.value.kind == ParseErrorKind.UNBALANCED_DELIMITER

    def test_missing_arrow(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("case\n  x 1\nend")
        assert exc.value.kind == ParseErrorKind.UNEXPECTED_TOKEN
        assert exc.value.expected == "'⇒'"


# ============================================================================
# Interpolation and pipelines
# ============================================================================


class TestInterpolation:
    """String holes become sub-expressions in source order."""

    def test_parts(self) -> None:
        expr = parse_expr('"Hello {name}, the result is {2+3}"')
        assert isinstance(expr, Interpolated)
        text1, name, text2, total = expr.parts
        assert text1 == "Hello "
        assert isinstance(name, Var)
        assert text2 == ", the result is "
        assert isinstance(total, BinaryExpr)

    def test_plain_string_is_literal(self) -> None:
        assert isinstance(parse_expr('"plain"'), Literal)

    def test_empty_hole(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source('"{}"')
        assert exc.value.kind == ParseErrorKind.UNEXPECTED_TOKEN

    def test_extra_tokens_in_hole(self) -> None:
        with pytest.raises(ParseError, match="interpolation"):
            parse_source('"{1 2}"')


class TestPipe:
    """x >> f >> g(y) chains."""

    def test_steps(self) -> None:
        expr = parse_expr("3 >> Double >> Add(1)")
        assert isinstance(expr, Pipe)
        assert isinstance(expr.steps[0], Var)
        assert isinstance(expr.steps[1], Call)

    def test_algorithm_ref_step(self) -> None:
        expr = parse_expr("3 >> @Double")
        assert isinstance(expr, Pipe)
        assert isinstance(expr.steps[0], AlgorithmRef)

    def test_literal_step_rejected(self) -> None:
        with pytest.raises(ParseError, match="Pipeline step"):
            parse_source("3 >> 4")


# ============================================================================
# Errors
# ============================================================================


class TestParseErrors:
    """Single error, first offending token."""

    def test_unclosed_paren(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("(1 + 2")
        assert exc.value.kind == ParseErrorKind.UNBALANCED_DELIMITER

    def test_unmatched_close_paren(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("1 + 2)")
        assert exc.value.kind == ParseErrorKind.UNBALANCED_DELIMITER

    def test_unclosed_call(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("f(1, 2")
        assert exc.value.kind == ParseErrorKind.UNBALANCED_DELIMITER

    def test_two_expressions_on_one_line(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("1 2")
        assert exc.value.kind == ParseErrorKind.UNEXPECTED_TOKEN
        assert exc.value.found == "'2'"
        assert (exc.value.line, exc.value.column) == (1, 3)

    def test_let_without_name(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("let = 3")
        assert exc.value.kind == ParseErrorKind.UNEXPECTED_TOKEN

    def test_dangling_operator(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse_source("1 +")
        assert exc.value.found == "end of input"

    def test_stray_end(self) -> None:
        with pytest.raises(ParseError):
            parse_source("end")

    @pytest.mark.parametrize(
        "source",
        ["(" * 3000 + "1" + ")" * 3000, "-" * 20000 + "1", "f(" * 3000 + ")" * 3000],
        ids=["parentheses", "negation", "calls"],
    )
    def test_nesting_too_deep(self, source: str) -> None:
        limit = sys.getrecursionlimit()
        with pytest.raises(ParseError, match="nested too deeply") as exc:
            parse_source(source)
        assert exc.value.kind == ParseErrorKind.UNEXPECTED_TOKEN
        assert exc.value.line == 1
        assert sys.getrecursionlimit() == limit

    def test_deep_nesting_within_limit(self) -> None:
        expr = parse_expr("(" * 100 + "1" + ")" * 100)
        assert isinstance(expr, Literal)
        assert parse_expr("-" * 1200 + "1").span == Span(line=1, column=1)


class TestParseExpression:
    """Single-expression entry point used by --call."""

    def test_call(self) -> None:
        expr = parse_expression("Add(1, 4)")
        assert isinstance(expr, Call)

    def test_rejects_statements(self) -> None:
        with pytest.raises(ParseError):
            parse_expression("1\n2")

    def test_nesting_too_deep(self) -> None:
        with pytest.raises(ParseError, match="nested too deeply"):
            parse_expression("(" * 3000 + "1" + ")" * 3000)
