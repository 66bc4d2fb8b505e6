"""Intermediate representation (AST) for AM programs."""

from amlang.core.ir.program import (
    AlgorithmDef,
    AlgorithmRef,
    BinaryExpr,
    BinaryOp,
    Call,
    Case,
    CaseArm,
    Expr,
    ExprStmt,
    Interpolated,
    Let,
    Literal,
    LiteralKind,
    Pipe,
    Program,
    Span,
    Statement,
    UnaryExpr,
    UnaryOp,
    Var,
)

__all__ = [
    "AlgorithmDef",
    "AlgorithmRef",
    "BinaryExpr",
    "BinaryOp",
    "Call",
    "Case",
    "CaseArm",
    "Expr",
    "ExprStmt",
    "Interpolated",
    "Let",
    "Literal",
    "LiteralKind",
    "Pipe",
    "Program",
    "Span",
    "Statement",
    "UnaryExpr",
    "UnaryOp",
    "Var",
]
