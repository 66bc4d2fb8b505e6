"""
Recursive descent parser for AM.

Grammar (precedence low to high):
    program     → NEWLINE* (statement (NEWLINE+ statement)*)? NEWLINE* EOF
    statement   → "let" IDENT "=" expr
                | "@" IDENT "(" (IDENT ("," IDENT)*)? ")" "=" expr
                | expr
    expr        → pipe
    pipe        → or_expr (">>" or_expr)*
    or_expr     → and_expr ("∨" and_expr)*
    and_expr    → not_expr ("∧" not_expr)*
    not_expr    → "¬" not_expr | comparison
    comparison  → additive (comp_op additive)*
    additive    → multiply (("+" | "-") multiply)*
    multiply    → unary (("*" | "/" | "%") unary)*
    unary       → "-" unary | power
    power       → postfix ("^" unary)?
    postfix     → primary ("(" (expr ("," expr)*)? ")")*
    primary     → literal | IDENT | "@" IDENT | "(" expr ")" | case | string
    case        → "case" (expr "of")? NEWLINE* arm (NEWLINE+ arm)* NEWLINE* "end"
    arm         → (expr | "_") ("⇒" | "→") expr

A newline ends the current statement or arm, except directly after a
binary operator, ``=``, an arrow, ``case`` or ``of``.
"""

from __future__ import annotations

from amlang.core.errors import ParseError, ParseErrorKind, make_parse_error
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
from amlang.core.lang.recursion import recursion_headroom
from amlang.core.lang.tokenizer import Token, TokenKind, tokenize

# Python frames available while parsing; roughly a dozen per nested parenthesis
_PARSE_RECURSION_LIMIT = 10_000

_COMPARISON_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.EQ: BinaryOp.EQ,
    TokenKind.NE: BinaryOp.NE,
    TokenKind.LT: BinaryOp.LT,
    TokenKind.LE: BinaryOp.LE,
    TokenKind.GT: BinaryOp.GT,
    TokenKind.GE: BinaryOp.GE,
}

_ADDITIVE_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.PLUS: BinaryOp.ADD,
    TokenKind.MINUS: BinaryOp.SUB,
}

_MULTIPLICATIVE_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.STAR: BinaryOp.MUL,
    TokenKind.SLASH: BinaryOp.DIV,
    TokenKind.PERCENT: BinaryOp.MOD,
}

_ARM_ARROWS = (TokenKind.FAT_ARROW, TokenKind.ARROW)


def _span(tok: Token) -> Span:
    return Span(line=tok.line, column=tok.column, offset=tok.offset)


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.EOF:
        return "end of input"
    if tok.kind == TokenKind.NEWLINE:
        return "end of line"
    return repr(tok.value)


class _Parser:
    """Recursive descent parser for AM programs."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def expect(self, kind: TokenKind, what: str | None = None) -> Token:
        tok = self.current
        if tok.kind != kind:
            wanted = what or str(kind)
            if tok.kind == TokenKind.EOF and kind == TokenKind.RPAREN:
                raise self.error(
                    ParseErrorKind.UNBALANCED_DELIMITER, "Unclosed '('", tok, wanted
                )
            raise self.error(
                ParseErrorKind.UNEXPECTED_TOKEN,
                f"Expected {wanted}, got {_describe(tok)}",
                tok,
                wanted,
            )
        return self.advance()

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    def skip_newlines(self) -> None:
        while self.current.kind == TokenKind.NEWLINE:
            self.advance()

    def error(
        self,
        kind: ParseErrorKind,
        message: str,
        tok: Token,
        expected: str | None = None,
    ) -> ParseError:
        return make_parse_error(
            kind, message, tok.line, tok.column, expected=expected, found=_describe(tok)
        )

    # -- Statements --

    def parse_program(self) -> Program:
        statements: list[Statement] = []
        self.skip_newlines()
        while self.current.kind != TokenKind.EOF:
            statements.append(self.parse_statement())
            self._end_of_statement()
            self.skip_newlines()
        return Program(statements=statements)

    def _end_of_statement(self) -> None:
        tok = self.current
        if tok.kind in (TokenKind.NEWLINE, TokenKind.EOF):
            return
        if tok.kind == TokenKind.RPAREN:
            raise self.error(ParseErrorKind.UNBALANCED_DELIMITER, "Unmatched ')'", tok)
        raise self.error(
            ParseErrorKind.UNEXPECTED_TOKEN,
            f"Unexpected token after statement: {_describe(tok)}",
            tok,
            "end of line",
        )

    def parse_statement(self) -> Statement:
        tok = self.current
        if tok.kind == TokenKind.LET:
            return self.parse_let()
        if tok.kind == TokenKind.AT and self._at_definition():
            return self.parse_definition()
        return ExprStmt(expr=self.parse_expr(), span=_span(tok))

    def parse_let(self) -> Let:
        """'let' IDENT '=' expr"""
        let_tok = self.expect(TokenKind.LET)
        name = self.expect(TokenKind.IDENT, "a name after 'let'").value
        self.expect(TokenKind.EQ, "'='")
        self.skip_newlines()
        return Let(name=name, value=self.parse_expr(), span=_span(let_tok))

    def _at_definition(self) -> bool:
        """Lookahead for '@' IDENT '(' identlist ')' '='."""
        if self.peek(1).kind != TokenKind.IDENT or self.peek(2).kind != TokenKind.LPAREN:
            return False
        i = 3
        if self.peek(i).kind == TokenKind.IDENT:
            i += 1
            while self.peek(i).kind == TokenKind.COMMA and self.peek(i + 1).kind == TokenKind.IDENT:
                i += 2
        return self.peek(i).kind == TokenKind.RPAREN and self.peek(i + 1).kind == TokenKind.EQ

    def parse_definition(self) -> AlgorithmDef:
        """'@' IDENT '(' params ')' '=' expr"""
        at_tok = self.expect(TokenKind.AT)
        name = self.expect(TokenKind.IDENT, "an algorithm name").value
        self.expect(TokenKind.LPAREN, "'('")

        params: list[str] = []
        if self.current.kind != TokenKind.RPAREN:
            while True:
                param = self.expect(TokenKind.IDENT, "a parameter name")
                if param.value in params:
                    raise self.error(
                        ParseErrorKind.UNEXPECTED_TOKEN,
                        f"Duplicate parameter {param.value!r} in @{name}",
                        param,
                    )
                params.append(param.value)
                if not self.match(TokenKind.COMMA):
                    break

        self.expect(TokenKind.RPAREN, "')'")
        self.expect(TokenKind.EQ, "'='")
        self.skip_newlines()
        body = self.parse_expr()
        return AlgorithmDef(name=name, params=params, body=body, span=_span(at_tok))

    # -- Expressions --

    def parse_expr(self) -> Expr:
        return self.parse_pipe()

    def parse_pipe(self) -> Expr:
        """or_expr ('>>' or_expr)*"""
        start = self.current
        head = self.parse_or_expr()
        steps: list[Expr] = []
        while self.current.kind == TokenKind.PIPE:
            self.advance()
            self.skip_newlines()
            step_tok = self.current
            step = self.parse_or_expr()
            if not isinstance(step, (Var, AlgorithmRef, Call)):
                raise self.error(
                    ParseErrorKind.UNEXPECTED_TOKEN,
                    "Pipeline step must be a name, @Name or call",
                    step_tok,
                    "a name, @Name or call",
                )
            steps.append(step)
        if not steps:
            return head
        return Pipe(head=head, steps=steps, span=_span(start))

    def parse_or_expr(self) -> Expr:
        """and_expr ('∨' and_expr)*"""
        left = self.parse_and_expr()
        while op_tok := self.match(TokenKind.OR):
            self.skip_newlines()
            right = self.parse_and_expr()
            left = BinaryExpr(op=BinaryOp.OR, left=left, right=right, span=_span(op_tok))
        return left

    def parse_and_expr(self) -> Expr:
        """not_expr ('∧' not_expr)*"""
        left = self.parse_not_expr()
        while op_tok := self.match(TokenKind.AND):
            self.skip_newlines()
            right = self.parse_not_expr()
            left = BinaryExpr(op=BinaryOp.AND, left=left, right=right, span=_span(op_tok))
        return left

    def parse_not_expr(self) -> Expr:
        """'¬' not_expr | comparison"""
        if op_tok := self.match(TokenKind.NOT):
            operand = self.parse_not_expr()
            return UnaryExpr(op=UnaryOp.NOT, operand=operand, span=_span(op_tok))
        return self.parse_comparison()

    def parse_comparison(self) -> Expr:
        """additive (comp_op additive)*, left-associative"""
        left = self.parse_additive()
        while self.current.kind in _COMPARISON_OPS:
            op_tok = self.advance()
            self.skip_newlines()
            right = self.parse_additive()
            left = BinaryExpr(
                op=_COMPARISON_OPS[op_tok.kind], left=left, right=right, span=_span(op_tok)
            )
        return left

    def parse_additive(self) -> Expr:
        """multiply (('+' | '-') multiply)*"""
        left = self.parse_multiply()
        while self.current.kind in _ADDITIVE_OPS:
            op_tok = self.advance()
            self.skip_newlines()
            right = self.parse_multiply()
            left = BinaryExpr(
                op=_ADDITIVE_OPS[op_tok.kind], left=left, right=right, span=_span(op_tok)
            )
        return left

    def parse_multiply(self) -> Expr:
        """unary (('*' | '/' | '%') unary)*"""
        left = self.parse_unary()
        while self.current.kind in _MULTIPLICATIVE_OPS:
            op_tok = self.advance()
            self.skip_newlines()
            right = self.parse_unary()
            left = BinaryExpr(
                op=_MULTIPLICATIVE_OPS[op_tok.kind], left=left, right=right, span=_span(op_tok)
            )
        return left

    def parse_unary(self) -> Expr:
        """'-' unary | power"""
        if op_tok := self.match(TokenKind.MINUS):
            operand = self.parse_unary()
            return UnaryExpr(op=UnaryOp.NEG, operand=operand, span=_span(op_tok))
        return self.parse_power()

    def parse_power(self) -> Expr:
        """postfix ('^' unary)?  (right-associative through unary)"""
        base = self.parse_postfix()
        if op_tok := self.match(TokenKind.CARET):
            self.skip_newlines()
            exponent = self.parse_unary()
            return BinaryExpr(op=BinaryOp.POW, left=base, right=exponent, span=_span(op_tok))
        return base

    def parse_postfix(self) -> Expr:
        """primary ('(' args ')')*"""
        start = self.current
        expr = self.parse_primary()
        while self.current.kind == TokenKind.LPAREN:
            self.advance()
            args: list[Expr] = []
            if self.current.kind != TokenKind.RPAREN:
                args.append(self.parse_expr())
                while self.match(TokenKind.COMMA):
                    args.append(self.parse_expr())
            self.expect(TokenKind.RPAREN, "')'")
            expr = Call(callee=expr, args=args, span=_span(start))
        return expr

    def parse_primary(self) -> Expr:
        """literal | IDENT | '@' IDENT | '(' expr ')' | case | string"""
        tok = self.current

        if tok.kind == TokenKind.LPAREN:
            self.advance()
            expr = self.parse_expr()
            self.expect(TokenKind.RPAREN, "')'")
            return expr

        if tok.kind == TokenKind.CASE:
            return self.parse_case()

        if tok.kind == TokenKind.INTEGER:
            self.advance()
            return Literal(kind=LiteralKind.INTEGER, text=str(tok.payload), span=_span(tok))
        if tok.kind == TokenKind.RATIONAL:
            self.advance()
            # 4/2 is written as a fraction but denotes an integer
            kind = LiteralKind.INTEGER if tok.payload.denominator == 1 else LiteralKind.RATIONAL
            return Literal(kind=kind, text=str(tok.payload), span=_span(tok))
        if tok.kind == TokenKind.FLOAT:
            self.advance()
            return Literal(kind=LiteralKind.FLOAT, text=repr(tok.payload), span=_span(tok))
        if tok.kind == TokenKind.CONSTANT:
            self.advance()
            return Literal(kind=LiteralKind.CONSTANT, text=tok.value, span=_span(tok))
        if tok.kind in (TokenKind.TRUE, TokenKind.FALSE):
            self.advance()
            return Literal(kind=LiteralKind.BOOL, text=tok.value, span=_span(tok))
        if tok.kind == TokenKind.STRING:
            self.advance()
            return self._parse_string(tok)

        if tok.kind == TokenKind.IDENT:
            self.advance()
            return Var(name=tok.value, span=_span(tok))

        if tok.kind == TokenKind.AT:
            self.advance()
            name = self.expect(TokenKind.IDENT, "an algorithm name after '@'")
            return AlgorithmRef(name=name.value, span=_span(tok))

        if tok.kind == TokenKind.RPAREN:
            raise self.error(ParseErrorKind.UNBALANCED_DELIMITER, "Unmatched ')'", tok)

        raise self.error(
            ParseErrorKind.UNEXPECTED_TOKEN,
            f"Unexpected token: {_describe(tok)}",
            tok,
            "an expression",
        )

    def _parse_string(self, tok: Token) -> Expr:
        """Plain strings become literals; strings with holes become Interpolated."""
        parts: list[str | Expr] = []
        for part in tok.payload:
            if isinstance(part, str):
                parts.append(part)
                continue
            sub = _Parser(part)
            parts.append(sub.parse_expr())
            if sub.current.kind != TokenKind.EOF:
                raise sub.error(
                    ParseErrorKind.UNEXPECTED_TOKEN,
                    f"Unexpected token in interpolation: {_describe(sub.current)}",
                    sub.current,
                    "'}'",
                )

        if all(isinstance(p, str) for p in parts):
            text = "".join(p for p in parts if isinstance(p, str))
            return Literal(kind=LiteralKind.STRING, text=text, span=_span(tok))
        return Interpolated(parts=parts, span=_span(tok))

    def parse_case(self) -> Case:
        """'case' (expr 'of')? arm+ 'end'"""
        case_tok = self.expect(TokenKind.CASE)
        self.skip_newlines()
        self._reject_empty_case(case_tok)

        subject: Expr | None = None
        arms: list[CaseArm] = []

        if self.current.kind != TokenKind.WILDCARD:
            first_tok = self.current
            first = self.parse_expr()
            if self.match(TokenKind.OF):
                subject = first
                self.skip_newlines()
                self._reject_empty_case(case_tok)
            else:
                arms.append(self._finish_arm(first, first_tok))
                self._end_of_arm(case_tok)

        while self.current.kind != TokenKind.END:
            arm_tok = self.current
            if arms and arms[-1].is_wildcard:
                raise self.error(
                    ParseErrorKind.WILDCARD_NOT_LAST,
                    "Wildcard arm '_' must be the last arm of a case block",
                    arm_tok,
                )
            if self.match(TokenKind.WILDCARD):
                arms.append(self._finish_arm(None, arm_tok))
            else:
                guard = self.parse_expr()
                arms.append(self._finish_arm(guard, arm_tok))
            self._end_of_arm(case_tok)

        self.expect(TokenKind.END, "'end'")
        return Case(subject=subject, arms=arms, span=_span(case_tok))

    def _reject_empty_case(self, case_tok: Token) -> None:
        if self.current.kind == TokenKind.END:
            raise self.error(
                ParseErrorKind.EMPTY_CASE_BLOCK, "Case block has no arms", case_tok
            )
        if self.current.kind == TokenKind.EOF:
            raise self._missing_end(case_tok)

    def _finish_arm(self, guard: Expr | None, start: Token) -> CaseArm:
        """Consume the arrow and result of an arm whose guard is parsed."""
        if not self.match(*_ARM_ARROWS):
            tok = self.current
            if tok.kind == TokenKind.EOF:
                raise self._missing_end(tok)
            raise self.error(
                ParseErrorKind.UNEXPECTED_TOKEN,
                f"Expected '⇒' after case guard, got {_describe(tok)}",
                tok,
                "'⇒'",
            )
        self.skip_newlines()
        result = self.parse_expr()
        return CaseArm(guard=guard, result=result, span=_span(start))

    def _end_of_arm(self, case_tok: Token) -> None:
        tok = self.current
        if tok.kind == TokenKind.NEWLINE:
            self.skip_newlines()
            if self.current.kind == TokenKind.EOF:
                raise self._missing_end(case_tok)
            return
        if tok.kind == TokenKind.END:
            return
        if tok.kind == TokenKind.EOF:
            raise self._missing_end(case_tok)
        raise self.error(
            ParseErrorKind.UNEXPECTED_TOKEN,
            f"Unexpected token after case arm: {_describe(tok)}",
            tok,
            "end of line or 'end'",
        )

    def too_deep(self) -> ParseError:
        return self.error(
            ParseErrorKind.UNEXPECTED_TOKEN,
            "Expression nested too deeply",
            self.current,
        )

    def _missing_end(self, case_tok: Token) -> ParseError:
        return self.error(
            ParseErrorKind.UNBALANCED_DELIMITER,
            f"Case block opened at line {case_tok.line} is missing 'end'",
            self.current,
            "'end'",
        )


def parse(tokens: list[Token]) -> Program:
    """Parse a token list into a Program.

    Args:
        tokens: Output of ``tokenize``, ending with EOF.

    Returns:
        Parsed program AST.

    Raises:
        ParseError: On the first token that does not fit the grammar, or
            when the program is nested too deeply to parse.
    """
    parser = _Parser(tokens)
    with recursion_headroom(_PARSE_RECURSION_LIMIT):
        try:
            return parser.parse_program()
        except RecursionError:
            raise parser.too_deep() from None


def parse_source(source: str) -> Program:
    """Tokenize and parse AM source text.

    Raises:
        LexError: If tokenization fails.
        ParseError: If the program is invalid.
    """
    return parse(tokenize(source))


def parse_expression(source: str) -> Expr:
    """Parse a single expression, e.g. the argument of ``amlang run --call``."""
    parser = _Parser(tokenize(source))
    parser.skip_newlines()
    with recursion_headroom(_PARSE_RECURSION_LIMIT):
        try:
            expr = parser.parse_expr()
        except RecursionError:
            raise parser.too_deep() from None
    parser.skip_newlines()
    if parser.current.kind != TokenKind.EOF:
        raise parser.error(
            ParseErrorKind.UNEXPECTED_TOKEN,
            f"Unexpected token after expression: {_describe(parser.current)}",
            parser.current,
            "end of input",
        )
    return expr
