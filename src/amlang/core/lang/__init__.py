"""
AM language pipeline.

Tokenizer, parser and evaluator for AM programs, plus the numeric model
and runtime values they share.

Usage:
    from amlang.core.lang import run, render

    results = run("@Add(a, b) = a + b\\nAdd(2, 3)")
    render(results[-1].value)
    # "5"
"""

from amlang.core.lang.environment import Environment, root_environment
from amlang.core.lang.evaluator import Interpreter, StatementResult, evaluate, run
from amlang.core.lang.parser import parse, parse_expression, parse_source
from amlang.core.lang.tokenizer import Token, TokenKind, tokenize
from amlang.core.lang.values import render, render_pretty, to_json

__all__ = [
    "Environment",
    "Interpreter",
    "StatementResult",
    "Token",
    "TokenKind",
    "evaluate",
    "parse",
    "parse_expression",
    "parse_source",
    "render",
    "render_pretty",
    "root_environment",
    "run",
    "to_json",
    "tokenize",
]
