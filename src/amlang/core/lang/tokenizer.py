"""
Tokenizer for AM source text.

Produces positioned tokens in canonical spelling: every ASCII alias is
replaced by its Unicode form here, so the parser only ever sees one
grammar. ``pi`` and ``π`` yield the same token kind and value, as do
``and``/``∧``, ``!=``/``≠``, ``->``/``→`` and the rest of ``ALIASES``.

Newlines separate statements and are emitted as NEWLINE tokens, except
inside parentheses and interpolation braces where they are whitespace.
"""

from __future__ import annotations

from enum import StrEnum, auto
from fractions import Fraction
from types import MappingProxyType
from typing import Any

from amlang.core.errors import LexError, LexErrorKind, make_lex_error
from amlang.core.lang.numeric import CONSTANT_GLYPHS


class TokenKind(StrEnum):
    """Token types for AM."""

    # Literals
    INTEGER = auto()
    RATIONAL = auto()
    FLOAT = auto()
    CONSTANT = auto()  # π ℯ ∞ NaN
    STRING = auto()

    # Identifiers and keywords
    IDENT = auto()
    WILDCARD = auto()  # _
    LET = auto()
    CASE = auto()
    OF = auto()
    END = auto()
    TRUE = auto()
    FALSE = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    CARET = auto()
    EQ = auto()
    NE = auto()
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    ARROW = auto()  # →
    FAT_ARROW = auto()  # ⇒
    PIPE = auto()  # >>

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    AT = auto()

    NEWLINE = auto()
    EOF = auto()


class Token:
    """
    A single token.

    ``value`` is the canonical lexeme. ``payload`` holds the decoded
    literal: int, Fraction, float, a Special constant, or for strings the
    list of parts where each interpolation is its own token list.
    """

    __slots__ = ("kind", "value", "line", "column", "offset", "payload")

    def __init__(
        self,
        kind: TokenKind,
        value: str,
        line: int,
        column: int,
        offset: int,
        payload: Any = None,
    ) -> None:
        self.kind = kind
        self.value = value
        self.line = line
        self.column = column
        self.offset = offset
        self.payload = payload

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, {self.line}:{self.column})"


# Written form -> canonical form
ALIASES: MappingProxyType[str, str] = MappingProxyType(
    {
        "pi": "π",
        "inf": "∞",
        "and": "∧",
        "&&": "∧",
        "or": "∨",
        "||": "∨",
        "not": "¬",
        "!": "¬",
        "!=": "≠",
        "<=": "≤",
        ">=": "≥",
        "->": "→",
        "=>": "⇒",
        "==": "=",
        "≡": "=",
        "×": "*",
        "∗": "*",
        "÷": "/",
        "−": "-",
    }
)

_CANONICAL_KINDS: MappingProxyType[str, TokenKind] = MappingProxyType(
    {
        "π": TokenKind.CONSTANT,
        "ℯ": TokenKind.CONSTANT,
        "∞": TokenKind.CONSTANT,
        "NaN": TokenKind.CONSTANT,
        "∧": TokenKind.AND,
        "∨": TokenKind.OR,
        "¬": TokenKind.NOT,
        "≠": TokenKind.NE,
        "≤": TokenKind.LE,
        "≥": TokenKind.GE,
        "→": TokenKind.ARROW,
        "⇒": TokenKind.FAT_ARROW,
        ">>": TokenKind.PIPE,
        "=": TokenKind.EQ,
        "<": TokenKind.LT,
        ">": TokenKind.GT,
        "+": TokenKind.PLUS,
        "-": TokenKind.MINUS,
        "*": TokenKind.STAR,
        "/": TokenKind.SLASH,
        "%": TokenKind.PERCENT,
        "^": TokenKind.CARET,
        "(": TokenKind.LPAREN,
        ")": TokenKind.RPAREN,
        ",": TokenKind.COMMA,
        "@": TokenKind.AT,
    }
)

_KEYWORDS: MappingProxyType[str, TokenKind] = MappingProxyType(
    {
        "let": TokenKind.LET,
        "case": TokenKind.CASE,
        "of": TokenKind.OF,
        "end": TokenKind.END,
        "true": TokenKind.TRUE,
        "false": TokenKind.FALSE,
    }
)

_TWO_CHAR = frozenset(
    s for s in (*ALIASES, *_CANONICAL_KINDS) if len(s) == 2 and not s.isalpha()
)

_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t", "r": "\r", "{": "{", "}": "}"}


def canonical(lexeme: str) -> str:
    """Canonical spelling of a lexeme (itself when it has no alias)."""
    return ALIASES.get(lexeme, lexeme)


def _is_ident_start(c: str) -> bool:
    return c.isascii() and (c.isalpha() or c == "_")


def _is_ident_continue(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == "_")


class Lexer:
    """Converts source text into tokens with line/column/offset tracking."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def skip_comment(self) -> None:
        """Skip comment (from # to end of line)."""
        while self.current_char() not in (None, "\n"):
            self.advance()

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source text.

        Returns:
            List of tokens ending with EOF

        Raises:
            LexError: On the first malformed token
        """
        return self._scan(interpolation=False)

    def _scan(self, interpolation: bool) -> list[Token]:
        """
        Main scanning loop.

        Inside an interpolation the loop stops at the first unmatched ``}``
        and returns the tokens seen so far plus an EOF token.

        Open ``(`` and ``case`` are tracked on a stack: a newline is a
        token when the innermost open construct is a ``case`` (it separates
        arms) or, outside interpolations, when nothing is open.
        """
        tokens: list[Token] = []
        frames: list[TokenKind] = []  # open LPAREN / CASE
        start_line, start_col = self.line, self.column

        while True:
            ch = self.current_char()

            if ch is None:
                if interpolation:
                    raise make_lex_error(
                        LexErrorKind.UNTERMINATED_INTERPOLATION,
                        "Unterminated interpolation: missing '}'",
                        start_line,
                        start_col,
                    )
                break

            if ch in " \t\r":
                self.advance()
                continue

            if ch == "#":
                self.skip_comment()
                continue

            line, column, offset = self.line, self.column, self.pos

            if ch == "\n":
                self.advance()
                significant = frames[-1] == TokenKind.CASE if frames else not interpolation
                if significant and tokens and tokens[-1].kind != TokenKind.NEWLINE:
                    tokens.append(Token(TokenKind.NEWLINE, "\n", line, column, offset))
                continue

            if interpolation and ch == "}":
                self.advance()
                tokens.append(Token(TokenKind.EOF, "", line, column, offset))
                return tokens

            if ch in "{}":
                raise make_lex_error(
                    LexErrorKind.UNRECOGNIZED_CHARACTER,
                    f"Unexpected character: {ch!r}",
                    line,
                    column,
                )

            if ch == '"':
                tokens.append(self.read_string())
                continue

            if ch.isascii() and ch.isdigit():
                tokens.append(self.read_number())
                continue

            if _is_ident_start(ch):
                tok = self.read_word()
                if tok.kind == TokenKind.CASE:
                    frames.append(TokenKind.CASE)
                elif tok.kind == TokenKind.END and frames and frames[-1] == TokenKind.CASE:
                    frames.pop()
                tokens.append(tok)
                continue

            tok = self.read_symbol()
            if tok.kind == TokenKind.LPAREN:
                frames.append(TokenKind.LPAREN)
            elif tok.kind == TokenKind.RPAREN and TokenKind.LPAREN in frames:
                # Also closes any case left unterminated inside the parentheses
                while frames.pop() != TokenKind.LPAREN:
                    pass
            tokens.append(tok)

        tokens.append(Token(TokenKind.EOF, "", self.line, self.column, self.pos))
        return tokens

    def read_symbol(self) -> Token:
        """Read an operator or punctuation mark, longest match first."""
        line, column, offset = self.line, self.column, self.pos
        two = self.text[self.pos : self.pos + 2]
        lexeme = two if two in _TWO_CHAR else self.text[self.pos]

        value = canonical(lexeme)
        kind = _CANONICAL_KINDS.get(value)
        if kind is None:
            raise make_lex_error(
                LexErrorKind.UNRECOGNIZED_CHARACTER,
                f"Unexpected character: {lexeme[0]!r}",
                line,
                column,
            )

        for _ in lexeme:
            self.advance()
        payload = CONSTANT_GLYPHS[value] if kind == TokenKind.CONSTANT else None
        return Token(kind, value, line, column, offset, payload)

    def read_word(self) -> Token:
        """Read an identifier, keyword, word alias or ``NaN``."""
        line, column, offset = self.line, self.column, self.pos
        chars = []
        current = self.current_char()
        while current is not None and _is_ident_continue(current):
            chars.append(current)
            self.advance()
            current = self.current_char()
        word = "".join(chars)

        if word == "_":
            return Token(TokenKind.WILDCARD, word, line, column, offset)
        if word in _KEYWORDS:
            return Token(_KEYWORDS[word], word, line, column, offset)

        value = canonical(word)
        kind = _CANONICAL_KINDS.get(value)
        if kind is None:
            return Token(TokenKind.IDENT, word, line, column, offset)
        payload = CONSTANT_GLYPHS[value] if kind == TokenKind.CONSTANT else None
        return Token(kind, value, line, column, offset, payload)

    def _read_digits(self) -> str:
        chars = []
        current = self.current_char()
        while current is not None and current.isascii() and current.isdigit():
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def read_number(self) -> Token:
        """
        Read ``123``, ``3/4`` or ``1.25``.

        The fraction form needs digits on both sides of the slash with no
        whitespace; ``1 / 2`` is a division instead. Exponents, digit
        grouping and trailing letters are rejected.
        """
        line, column, offset = self.line, self.column, self.pos

        def malformed(reason: str) -> LexError:
            return make_lex_error(
                LexErrorKind.MALFORMED_NUMERIC_LITERAL,
                f"Malformed numeric literal {self.text[offset : self.pos + 1]!r}: {reason}",
                line,
                column,
            )

        whole = self._read_digits()
        kind = TokenKind.INTEGER
        payload: int | Fraction | float = int(whole)

        after = self.peek_char()
        if self.current_char() == "/" and after is not None and after.isascii() and after.isdigit():
            self.advance()
            denominator = self._read_digits()
            if int(denominator) == 0:
                raise malformed("zero denominator")
            kind = TokenKind.RATIONAL
            payload = Fraction(int(whole), int(denominator))
        elif self.current_char() == ".":
            self.advance()
            fraction = self._read_digits()
            if not fraction:
                raise malformed("expected digits after '.'")
            kind = TokenKind.FLOAT
            payload = float(f"{whole}.{fraction}")

        current = self.current_char()
        if current is not None and (current == "." or _is_ident_continue(current)):
            raise malformed(f"unexpected {current!r}")

        return Token(kind, self.text[offset : self.pos], line, column, offset, payload)

    def read_string(self) -> Token:
        """
        Read a quoted string, lexing each ``{…}`` hole into its own tokens.

        Payload is the ordered list of parts: plain text as ``str``,
        interpolations as ``list[Token]`` ending with EOF.
        """
        line, column, offset = self.line, self.column, self.pos
        self.advance()  # skip opening quote

        parts: list[str | list[Token]] = []
        chars: list[str] = []
        while True:
            current = self.current_char()
            if current is None:
                raise make_lex_error(
                    LexErrorKind.UNTERMINATED_STRING,
                    "Unterminated string literal",
                    line,
                    column,
                )
            if current == '"':
                self.advance()
                break
            if current == "\\":
                esc_line, esc_col = self.line, self.column
                self.advance()
                escape_char = self.current_char()
                if escape_char is None:
                    raise make_lex_error(
                        LexErrorKind.UNTERMINATED_STRING,
                        "Unterminated string literal",
                        line,
                        column,
                    )
                if escape_char not in _ESCAPES:
                    raise make_lex_error(
                        LexErrorKind.UNRECOGNIZED_CHARACTER,
                        f"Unknown escape sequence: \\{escape_char}",
                        esc_line,
                        esc_col,
                    )
                chars.append(_ESCAPES[escape_char])
                self.advance()
            elif current == "{":
                self.advance()
                if chars:
                    parts.append("".join(chars))
                    chars = []
                parts.append(self._scan(interpolation=True))
            else:
                chars.append(current)
                self.advance()

        if chars or not parts:
            parts.append("".join(chars))
        return Token(TokenKind.STRING, self.text[offset : self.pos], line, column, offset, parts)


def tokenize(source: str) -> list[Token]:
    """
    Tokenize AM source text.

    Args:
        source: Program text

    Returns:
        List of tokens ending with EOF

    Raises:
        LexError: If the text contains a malformed token
    """
    return Lexer(source).tokenize()
