"""
Tree-walking evaluator for AM programs.

Statements run in source order against one running environment. Each
``let`` and each algorithm definition layers a new scope over it, so a
closure always sees the bindings that existed when it was defined, plus
its own name for direct recursion.

Evaluation is eager except for ``∧``/``∨`` and case arms, which only
evaluate what they need. The first runtime error aborts the program and
carries the results produced before it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass

from amlang.core.config import InterpreterConfig
from amlang.core.errors import (
    ErrorContext,
    EvaluationError,
    RuntimeErrorKind,
    make_runtime_error,
)
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
    Program,
    Statement,
    UnaryExpr,
    UnaryOp,
    Var,
)
from amlang.core.lang import numeric
from amlang.core.lang.environment import Environment, root_environment
from amlang.core.lang.numeric import Numeric
from amlang.core.lang.parser import parse_source
from amlang.core.lang.recursion import recursion_headroom
from amlang.core.lang.values import (
    CALLABLE_TYPES,
    FALSE,
    TRUE,
    Algorithm,
    Bool,
    Builtin,
    Str,
    Value,
    is_numeric,
    render,
    type_name,
)

logger = logging.getLogger(__name__)

TraceHook = Callable[[Statement, Value], None]

# Python frames consumed per nested AM call, with room to spare
_FRAMES_PER_CALL = 40

_ARITHMETIC: dict[BinaryOp, Callable[[Numeric, Numeric], Numeric]] = {
    BinaryOp.ADD: numeric.add,
    BinaryOp.SUB: numeric.subtract,
    BinaryOp.MUL: numeric.multiply,
    BinaryOp.DIV: numeric.divide,
    BinaryOp.MOD: numeric.modulo,
    BinaryOp.POW: numeric.power,
}

_RELATIONS: dict[BinaryOp, Callable[[Numeric, Numeric], bool]] = {
    BinaryOp.LT: numeric.less,
    BinaryOp.LE: numeric.less_equal,
    BinaryOp.GT: numeric.greater,
    BinaryOp.GE: numeric.greater_equal,
}


@dataclass(frozen=True)
class StatementResult:
    """A statement paired with the value it produced."""

    statement: Statement
    value: Value

    @property
    def is_expression(self) -> bool:
        """True for expression statements, whose values are program output."""
        return isinstance(self.statement, ExprStmt)


def values_equal(left: Value, right: Value) -> bool:
    """``=`` semantics: numbers by value, NaN never equal, algorithms by identity."""
    if is_numeric(left) and is_numeric(right):
        return numeric.equal(left, right)  # type: ignore[arg-type]
    if isinstance(left, Str) and isinstance(right, Str):
        return left.value == right.value
    if isinstance(left, Bool) and isinstance(right, Bool):
        return left.value == right.value
    if isinstance(left, CALLABLE_TYPES) and isinstance(right, CALLABLE_TYPES):
        return left is right
    return False


def _truth(value: Value, what: str) -> bool:
    if not isinstance(value, Bool):
        raise make_runtime_error(
            RuntimeErrorKind.TYPE_MISMATCH,
            f"{what} requires a boolean, got {type_name(value)} {render(value)}",
        )
    return value.value


def _number(value: Value, what: str) -> Numeric:
    if not is_numeric(value):
        raise make_runtime_error(
            RuntimeErrorKind.TYPE_MISMATCH,
            f"{what} requires a number, got {type_name(value)} {render(value)}",
        )
    return value  # type: ignore[return-value]


def _recursion_headroom(max_call_depth: int) -> AbstractContextManager[None]:
    """Recursion limit large enough for ``max_call_depth`` nested calls."""
    return recursion_headroom(max_call_depth * _FRAMES_PER_CALL + 2000)


class Interpreter:
    """
    Evaluates statements against a running environment.

    The environment grows as statements run; ``env`` always holds the
    bindings visible to the next statement.
    """

    def __init__(
        self,
        env: Environment | None = None,
        config: InterpreterConfig | None = None,
        trace: TraceHook | None = None,
    ) -> None:
        self.config = config or InterpreterConfig()
        self.env = env if env is not None else root_environment(self.config.prelude)
        self.trace = trace
        self.depth = 0

    def execute(self, program: Program) -> list[StatementResult]:
        """
        Run every statement of a program in order.

        Raises:
            EvaluationError: On the first runtime error, with
                ``partial_results`` holding the results produced so far
        """
        results: list[StatementResult] = []
        with _recursion_headroom(self.config.max_call_depth):
            for statement in program.statements:
                try:
                    value = self._execute_statement(statement)
                except EvaluationError as e:
                    e.partial_results = list(results)
                    raise
                results.append(StatementResult(statement, value))
                if self.trace is not None:
                    self.trace(statement, value)
        return results

    def evaluate_expr(self, expr: Expr) -> Value:
        """Evaluate one expression against the current environment."""
        with _recursion_headroom(self.config.max_call_depth):
            return self._guarded(expr, self.env)

    def _guarded(self, expr: Expr, env: Environment) -> Value:
        try:
            return self.interpret(expr, env)
        except RecursionError:
            raise make_runtime_error(
                RuntimeErrorKind.STACK_OVERFLOW,
                "Maximum recursion depth exceeded",
                expr.span.line if expr.span else None,
                expr.span.column if expr.span else None,
            ) from None

    def _execute_statement(self, statement: Statement) -> Value:
        if isinstance(statement, Let):
            value = self._guarded(statement.value, self.env)
            self.env = self.env.extend(statement.name, value)
            logger.debug("let %s = %s", statement.name, render(value))
            return value

        if isinstance(statement, AlgorithmDef):
            # The closure's scope binds its own name so the body can recurse
            scope = Environment(parent=self.env)
            closure = Algorithm(
                name=statement.name,
                params=tuple(statement.params),
                body=statement.body,
                env=scope,
            )
            scope.bindings[statement.name] = closure
            self.env = scope
            logger.debug("Defined %s", render(closure))
            return closure

        return self._guarded(statement.expr, self.env)

    # -- Expressions --

    def interpret(self, expr: Expr, env: Environment) -> Value:
        """Evaluate an expression, tagging runtime errors with its position."""
        try:
            return self._dispatch(expr, env)
        except EvaluationError as e:
            self._locate(e, expr)
            raise

    def _locate(self, error: EvaluationError, node: Expr) -> None:
        """Give a position-less error the position of ``node``."""
        if error.context is None and node.span is not None:
            error.context = ErrorContext(line=node.span.line, column=node.span.column)
            error.call_depth = self.depth
            error.refresh()

    def _dispatch(self, expr: Expr, env: Environment) -> Value:
        """Dispatch evaluation to the appropriate handler."""
        if isinstance(expr, Literal):
            return _interpret_literal(expr)

        if isinstance(expr, Var):
            return env.lookup(expr.name)

        if isinstance(expr, AlgorithmRef):
            return self._interpret_algorithm_ref(expr, env)

        if isinstance(expr, BinaryExpr):
            return self._interpret_binary(expr, env)

        if isinstance(expr, UnaryExpr):
            return self._interpret_unary(expr, env)

        if isinstance(expr, Call):
            callee = self.interpret(expr.callee, env)
            args = [self.interpret(a, env) for a in expr.args]
            return self.apply(callee, args)

        if isinstance(expr, Case):
            return self._interpret_case(expr, env)

        if isinstance(expr, Interpolated):
            return self._interpret_interpolated(expr, env)

        if isinstance(expr, Pipe):
            return self._interpret_pipe(expr, env)

        raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _interpret_algorithm_ref(self, expr: AlgorithmRef, env: Environment) -> Value:
        value = env.lookup(expr.name)
        if not isinstance(value, CALLABLE_TYPES):
            raise make_runtime_error(
                RuntimeErrorKind.NOT_CALLABLE,
                f"@{expr.name} is not an algorithm ({type_name(value)})",
            )
        return value

    def _interpret_binary(self, expr: BinaryExpr, env: Environment) -> Value:
        """Evaluate a binary expression."""
        # Short-circuit for logical operators
        if expr.op == BinaryOp.AND:
            if not _truth(self.interpret(expr.left, env), "'∧'"):
                return FALSE
            return TRUE if _truth(self.interpret(expr.right, env), "'∧'") else FALSE

        if expr.op == BinaryOp.OR:
            if _truth(self.interpret(expr.left, env), "'∨'"):
                return TRUE
            return TRUE if _truth(self.interpret(expr.right, env), "'∨'") else FALSE

        left = self.interpret(expr.left, env)
        right = self.interpret(expr.right, env)

        if expr.op == BinaryOp.EQ:
            return TRUE if values_equal(left, right) else FALSE
        if expr.op == BinaryOp.NE:
            return FALSE if values_equal(left, right) else TRUE

        if expr.op == BinaryOp.ADD and isinstance(left, Str) and isinstance(right, Str):
            return Str(left.value + right.value)

        what = f"'{expr.op.value}'"
        a, b = _number(left, what), _number(right, what)

        if expr.op in _RELATIONS:
            return TRUE if _RELATIONS[expr.op](a, b) else FALSE
        return _ARITHMETIC[expr.op](a, b)

    def _interpret_unary(self, expr: UnaryExpr, env: Environment) -> Value:
        """Evaluate a unary expression."""
        val = self.interpret(expr.operand, env)
        if expr.op == UnaryOp.NOT:
            return FALSE if _truth(val, "'¬'") else TRUE
        return numeric.negate(_number(val, "unary '-'"))

    def _interpret_case(self, expr: Case, env: Environment) -> Value:
        """First arm whose guard holds (or the wildcard) wins."""
        subject = self.interpret(expr.subject, env) if expr.subject is not None else None

        for arm in expr.arms:
            if arm.guard is None:
                return self.interpret(arm.result, env)

            guard = self.interpret(arm.guard, env)
            if subject is not None:
                matched = values_equal(subject, guard)
            else:
                matched = _truth(guard, "case guard")
            if matched:
                return self.interpret(arm.result, env)

        described = f" for {render(subject)}" if subject is not None else ""
        raise make_runtime_error(
            RuntimeErrorKind.NO_MATCHING_ARM, f"No case arm matched{described}"
        )

    def _interpret_interpolated(self, expr: Interpolated, env: Environment) -> Str:
        chunks = []
        for part in expr.parts:
            if isinstance(part, str):
                chunks.append(part)
            else:
                chunks.append(render(self.interpret(part, env)))
        return Str("".join(chunks))

    def _interpret_pipe(self, expr: Pipe, env: Environment) -> Value:
        """Feed the running value as first argument through each step."""
        value = self.interpret(expr.head, env)
        for step in expr.steps:
            if isinstance(step, Call):
                callee = self.interpret(step.callee, env)
                args = [value, *(self.interpret(a, env) for a in step.args)]
            else:
                callee = self.interpret(step, env)
                args = [value]
            try:
                value = self.apply(callee, args)
            except EvaluationError as e:
                self._locate(e, step)
                raise
        return value

    # -- Calls --

    def apply(self, callee: Value, args: list[Value]) -> Value:
        """Call an algorithm or builtin with already-evaluated arguments."""
        if not isinstance(callee, CALLABLE_TYPES):
            raise make_runtime_error(
                RuntimeErrorKind.NOT_CALLABLE,
                f"{type_name(callee).capitalize()} {render(callee)} is not callable",
            )
        if len(args) != callee.arity:
            raise make_runtime_error(
                RuntimeErrorKind.ARITY_MISMATCH,
                f"{render(callee)} expects {callee.arity} argument(s), got {len(args)}",
            )

        if isinstance(callee, Builtin):
            return callee.func(*args)

        if self.depth >= self.config.max_call_depth:
            raise make_runtime_error(
                RuntimeErrorKind.STACK_OVERFLOW,
                f"Call depth exceeded {self.config.max_call_depth} in @{callee.name}",
            )

        scope = callee.env.child(dict(zip(callee.params, args, strict=True)))
        logger.debug(
            "Call @%s(%s) depth=%d",
            callee.name,
            ", ".join(render(a) for a in args),
            self.depth + 1,
        )
        self.depth += 1
        try:
            return self.interpret(callee.body, scope)
        finally:
            self.depth -= 1


def _interpret_literal(expr: Literal) -> Value:
    if expr.kind == LiteralKind.STRING:
        return Str(expr.text)
    if expr.kind == LiteralKind.BOOL:
        return TRUE if expr.text == "true" else FALSE
    return numeric.from_literal(expr.kind, expr.text)


def evaluate(
    program: Program,
    env: Environment | None = None,
    *,
    config: InterpreterConfig | None = None,
    trace: TraceHook | None = None,
) -> list[StatementResult]:
    """Evaluate a parsed program.

    Args:
        program: Parsed program AST.
        env: Root environment; a fresh one (with the prelude unless the
            config disables it) is built when omitted.
        config: Interpreter settings such as the call depth limit.
        trace: Called with each statement and its value after it runs.

    Returns:
        One result per statement, in source order.

    Raises:
        EvaluationError: If evaluation fails.
    """
    return Interpreter(env, config, trace).execute(program)


def run(
    source: str,
    *,
    config: InterpreterConfig | None = None,
    trace: TraceHook | None = None,
) -> list[StatementResult]:
    """Tokenize, parse and evaluate AM source text."""
    return evaluate(parse_source(source), config=config, trace=trace)
