"""
Error types for AM lexing, parsing, and evaluation.

Every stage fails fast with a single error carrying its kind and, where
known, the source position it originated from.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from amlang.core.lang.evaluator import StatementResult


class LexErrorKind(StrEnum):
    """Reasons the lexer rejects source text."""

    UNTERMINATED_STRING = "UnterminatedString"
    UNTERMINATED_INTERPOLATION = "UnterminatedInterpolation"
    UNRECOGNIZED_CHARACTER = "UnrecognizedCharacter"
    MALFORMED_NUMERIC_LITERAL = "MalformedNumericLiteral"


class ParseErrorKind(StrEnum):
    """Reasons the parser rejects a token stream."""

    UNEXPECTED_TOKEN = "UnexpectedToken"
    UNBALANCED_DELIMITER = "UnbalancedDelimiter"
    EMPTY_CASE_BLOCK = "EmptyCaseBlock"
    WILDCARD_NOT_LAST = "WildcardNotLast"


class RuntimeErrorKind(StrEnum):
    """Reasons evaluation aborts."""

    UNBOUND_VARIABLE = "UnboundVariable"
    NOT_CALLABLE = "NotCallable"
    ARITY_MISMATCH = "ArityMismatch"
    TYPE_MISMATCH = "TypeMismatch"
    DIVISION_BY_ZERO = "DivisionByZero"
    NO_MATCHING_ARM = "NoMatchingArm"
    STACK_OVERFLOW = "StackOverflow"


@dataclass
class ErrorContext:
    """
    Source location of an error.

    Attributes:
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        file: Optional path of the source file
        snippet: Optional source text around the error line
    """

    line: int
    column: int
    file: Path | None = None
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "add.am:3:7" (or "line 3, column 7"
            when no file is known), followed by the snippet if present.
        """
        if self.file is not None:
            location = f"{self.file}:{self.line}:{self.column}"
        else:
            location = f"line {self.line}, column {self.column}"

        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        lines = self.snippet.split("\n")
        formatted = []

        # Snippet shows up to 2 lines before the error line
        start_line = max(1, self.line - 2)

        for i, line in enumerate(lines):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)

            if line_num == self.line:
                marker_pos = len(prefix) + self.column - 1
                formatted.append(" " * marker_pos + "^")

        return "\n".join(formatted)


class AmError(Exception):
    """Base exception for all AM errors."""

    label = "AM"

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message

    def refresh(self) -> None:
        """Rebuild ``args`` after the context has been changed."""
        self.args = (self._format_message(),)

    @property
    def line(self) -> int | None:
        return self.context.line if self.context else None

    @property
    def column(self) -> int | None:
        return self.context.column if self.context else None

    def to_dict(self) -> dict[str, Any]:
        """Structured form used by ``amlang run --json``."""
        data: dict[str, Any] = {
            "error": self.label,
            "kind": str(getattr(self, "kind", "")),
            "message": self.message,
        }
        if self.context:
            data["line"] = self.context.line
            data["column"] = self.context.column
        return data


class ConfigError(AmError):
    """Raised when an ``am.toml`` file holds invalid interpreter settings."""

    label = "Config"


class LexError(AmError):
    """
    Raised when source text cannot be split into tokens.

    Examples:
    - Unterminated string or interpolation brace
    - Characters outside the token grammar
    - Numeric text such as ``1e5`` or ``1/0``
    """

    label = "Lex"

    def __init__(self, kind: LexErrorKind, message: str, context: ErrorContext | None = None):
        self.kind = kind
        super().__init__(message, context)


class ParseError(AmError):
    """
    Raised when a token stream does not match the grammar.

    Examples:
    - Unexpected tokens
    - Unbalanced parentheses or a ``case`` without ``end``
    - Empty case blocks, wildcard arms that are not last
    """

    label = "Parse"

    def __init__(
        self,
        kind: ParseErrorKind,
        message: str,
        context: ErrorContext | None = None,
        expected: str | None = None,
        found: str | None = None,
    ):
        self.kind = kind
        self.expected = expected
        self.found = found
        super().__init__(message, context)


class EvaluationError(AmError):
    """
    Raised when evaluation of a program aborts.

    ``partial_results`` holds the statement results produced before the
    failing statement; the remaining statements are not run.
    ``call_depth`` is the number of algorithm calls active at the failing
    node: 0 means the position lies in the evaluated expression itself,
    anything higher means it lies in an algorithm body.
    """

    label = "Runtime"

    def __init__(
        self, kind: RuntimeErrorKind, message: str, context: ErrorContext | None = None
    ):
        self.kind = kind
        self.partial_results: list[StatementResult] = []
        self.call_depth = 0
        super().__init__(message, context)


def _context(line: int | None, column: int | None) -> ErrorContext | None:
    if line is None or column is None:
        return None
    return ErrorContext(line=line, column=column)


def make_lex_error(kind: LexErrorKind, message: str, line: int, column: int) -> LexError:
    """
    Helper to create a LexError with context.

    Args:
        kind: Lexer failure reason
        message: Error description
        line: Line number (1-indexed)
        column: Column number (1-indexed)

    Returns:
        LexError with context attached
    """
    return LexError(kind, message, ErrorContext(line=line, column=column))


def make_parse_error(
    kind: ParseErrorKind,
    message: str,
    line: int,
    column: int,
    expected: str | None = None,
    found: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        kind: Parser failure reason
        message: Error description
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        expected: What the grammar wanted at this point
        found: The token actually present

    Returns:
        ParseError with context attached
    """
    return ParseError(
        kind,
        message,
        ErrorContext(line=line, column=column),
        expected=expected,
        found=found,
    )


def make_runtime_error(
    kind: RuntimeErrorKind,
    message: str,
    line: int | None = None,
    column: int | None = None,
) -> EvaluationError:
    """
    Helper to create an EvaluationError with optional context.

    Args:
        kind: Runtime failure reason
        message: Error description
        line: Optional line number of the originating AST node
        column: Optional column number of the originating AST node

    Returns:
        EvaluationError with context if a location is provided
    """
    return EvaluationError(kind, message, _context(line, column))


def attach_source(error: AmError, source: str, file: Path | None = None) -> AmError:
    """
    Fill in file and snippet information on an error raised by the core.

    The core only knows line/column; callers holding the source text (the CLI)
    use this before displaying the error.
    """
    if error.context is None:
        return error

    lines = source.split("\n")
    first = max(1, error.context.line - 2)
    last = min(len(lines), error.context.line)
    error.context.file = file
    error.context.snippet = "\n".join(lines[first - 1 : last]) or None
    error.refresh()
    return error
