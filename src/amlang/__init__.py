"""
amlang - an interpreter for AM, a small language of first-class
algorithms, case analysis and exact arithmetic.
"""

from __future__ import annotations

from ._version import get_version
from .core import ir
from .core.config import InterpreterConfig, load_config
from .core.errors import AmError, ConfigError, EvaluationError, LexError, ParseError
from .core.lang import (
    evaluate,
    parse,
    parse_source,
    render,
    render_pretty,
    run,
    to_json,
    tokenize,
)

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "AmError",
    "ConfigError",
    "EvaluationError",
    "LexError",
    "ParseError",
    "InterpreterConfig",
    "load_config",
    "tokenize",
    "parse",
    "parse_source",
    "evaluate",
    "run",
    "render",
    "render_pretty",
    "to_json",
]
