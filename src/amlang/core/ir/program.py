"""
AST types for AM programs.

A program is an ordered list of statements:

- ``let x = expr``                         → Let
- ``@Name(a, b) = body``                   → AlgorithmDef
- any other expression                     → ExprStmt

Expressions cover literals, variables, unary/binary operators, calls,
algorithm references (``@Name``), ``case … end`` blocks, interpolated
strings and ``>>`` pipelines. Operators are stored in their canonical
(Unicode) spelling regardless of how the source wrote them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Source positions
# ---------------------------------------------------------------------------


class Span(BaseModel):
    """Where a node starts in the source text."""

    line: int = Field(description="Line number (1-indexed)")
    column: int = Field(description="Column number (1-indexed)")
    offset: int = Field(default=0, description="Character offset (0-indexed)")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary operators, in canonical spelling."""

    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"
    # Comparison
    EQ = "="
    NE = "≠"
    LT = "<"
    LE = "≤"
    GT = ">"
    GE = "≥"
    # Logical
    AND = "∧"
    OR = "∨"


class UnaryOp(StrEnum):
    """Unary operators, in canonical spelling."""

    NEG = "-"
    NOT = "¬"


class LiteralKind(StrEnum):
    """What a literal's text denotes."""

    INTEGER = "integer"
    RATIONAL = "rational"
    FLOAT = "float"
    CONSTANT = "constant"  # π, ℯ, ∞, NaN
    STRING = "string"
    BOOL = "bool"


# ---------------------------------------------------------------------------
# Expression nodes
# ---------------------------------------------------------------------------


class Literal(BaseModel):
    """
    A literal value, kept as normalized source text.

    Examples:
        - Literal(kind=INTEGER, text="42")
        - Literal(kind=RATIONAL, text="1/2")   (``2/4`` in the source)
        - Literal(kind=CONSTANT, text="∞")     (``inf`` in the source)
    """

    kind: LiteralKind
    text: str = Field(description="Normalized literal text")
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.kind == LiteralKind.STRING:
            return f'"{self.text}"'
        return self.text


class Var(BaseModel):
    """Reference to a bound name."""

    name: str
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class AlgorithmRef(BaseModel):
    """``@Name`` used as a value rather than defined."""

    name: str
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"@{self.name}"


class UnaryExpr(BaseModel):
    """Unary operation: op operand."""

    op: UnaryOp
    operand: Expr
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.op == UnaryOp.NOT:
            return f"¬{self.operand}"
        return f"-{self.operand}"


class BinaryExpr(BaseModel):
    """Binary operation: left op right."""

    op: BinaryOp
    left: Expr
    right: Expr
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class Call(BaseModel):
    """Call of any expression that evaluates to an algorithm."""

    callee: Expr
    args: list[Expr] = Field(default_factory=list)
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.callee}({args_str})"


class CaseArm(BaseModel):
    """One ``guard ⇒ result`` clause; ``guard`` is None for the ``_`` arm."""

    guard: Expr | None = Field(default=None, description="None for the wildcard arm")
    result: Expr
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_wildcard(self) -> bool:
        return self.guard is None

    def __str__(self) -> str:
        guard = "_" if self.guard is None else str(self.guard)
        return f"{guard} ⇒ {self.result}"


class Case(BaseModel):
    """
    Multi-branch case analysis.

    Without a subject each guard is a boolean expression. With a subject
    (``case x of …``) each guard is a value compared with the subject.
    """

    subject: Expr | None = None
    arms: list[CaseArm]
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        head = "case" if self.subject is None else f"case {self.subject} of"
        arms = "; ".join(str(arm) for arm in self.arms)
        return f"{head} {arms} end"


class Interpolated(BaseModel):
    """String literal with ``{expr}`` holes, parts kept in source order."""

    parts: list[str | Expr]
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        out = []
        for part in self.parts:
            out.append(part if isinstance(part, str) else "{" + str(part) + "}")
        return '"' + "".join(out) + '"'


class Pipe(BaseModel):
    """``head >> step >> step``; each step receives the running value first."""

    head: Expr
    steps: list[Expr]
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return " >> ".join(str(e) for e in [self.head, *self.steps])


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


class Let(BaseModel):
    """``let name = value``."""

    name: str
    value: Expr
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"let {self.name} = {self.value}"


class AlgorithmDef(BaseModel):
    """``@Name(p1, …, pn) = body``."""

    name: str
    params: list[str] = Field(default_factory=list)
    body: Expr
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"@{self.name}({', '.join(self.params)}) = {self.body}"


class ExprStmt(BaseModel):
    """A top-level expression whose value is a program result."""

    expr: Expr
    span: Span | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return str(self.expr)


class Program(BaseModel):
    """A parsed AM source file."""

    statements: list[Statement] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self.statements)

    @property
    def definitions(self) -> list[AlgorithmDef]:
        return [s for s in self.statements if isinstance(s, AlgorithmDef)]


# ---------------------------------------------------------------------------
# Union types
# ---------------------------------------------------------------------------

Expr = (
    Literal
    | Var
    | AlgorithmRef
    | UnaryExpr
    | BinaryExpr
    | Call
    | Case
    | Interpolated
    | Pipe
)

Statement = Let | AlgorithmDef | ExprStmt

# Rebuild models for recursive forward references
UnaryExpr.model_rebuild()
BinaryExpr.model_rebuild()
Call.model_rebuild()
CaseArm.model_rebuild()
Case.model_rebuild()
Interpolated.model_rebuild()
Pipe.model_rebuild()
Let.model_rebuild()
AlgorithmDef.model_rebuild()
ExprStmt.model_rebuild()
Program.model_rebuild()
