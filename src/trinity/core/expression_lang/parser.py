"""
Recursive descent parser for the Trinity expression language.

Grammar (precedence low to high):
    expr           → IDENT "=" additive | additive
    additive       → multiplicative (("+" | "-") multiplicative)*
    multiplicative → unary (("*" | "/") unary | unary)*
    unary          → "-"* power
    power          → postfix ("^" unary)?
    postfix        → primary ("!" | "?")*
    primary        → NUMBER | IDENT | call | "(" expr ")" | literal
    call           → FUNCTION "(" (expr ("," expr)*)? ")"
    literal        → "[" row (";" row)* "]"
    row            → element+

Two adjacent operands multiply (``A [1; 0]``, ``2A``, ``A! (v!)``), except
directly inside a literal, where whitespace between them separates
elements: ``[2x 3]`` has two elements and ``[2 x 3]`` has three. Inside a
literal a ``-`` with whitespace before it and none after it also starts a
new element, so ``[1 -2]`` has two elements and ``[1 - 2]`` has one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from trinity.core.config import DEFAULT_CONFIG, EngineConfig
from trinity.core.errors import (
    EmptyLiteral,
    IrregularLiteral,
    MissingOperand,
    NestingTooDeep,
    Span,
    UnbalancedBrackets,
    UnexpectedToken,
)
from trinity.core.expression_lang.tokenizer import Token, TokenKind, tokenize
from trinity.core.ir.expressions import (
    Assignment,
    BinaryExpr,
    BinaryOp,
    Call,
    Downgrade,
    Expr,
    Identifier,
    MatrixLiteral,
    NumberLiteral,
    UnaryExpr,
    UnaryOp,
    Upgrade,
    VectorLiteral,
)

logger = logging.getLogger(__name__)

# Tokens that can begin an operand, and so trigger implicit multiplication.
_OPERAND_START = frozenset(
    {
        TokenKind.NUMBER,
        TokenKind.IDENT,
        TokenKind.FUNCTION,
        TokenKind.LPAREN,
        TokenKind.LBRACKET,
    }
)

_CLOSERS = {TokenKind.RPAREN: "(", TokenKind.RBRACKET: "["}

_ROW_END = frozenset(
    {
        TokenKind.SEMICOLON,
        TokenKind.RBRACKET,
        TokenKind.RPAREN,
        TokenKind.COMMA,
        TokenKind.ASSIGN,
        TokenKind.EOF,
    }
)


class _Parser:
    """Recursive descent parser for expressions."""

    def __init__(self, tokens: list[Token], config: EngineConfig) -> None:
        self.tokens = tokens
        self.pos = 0
        self.config = config
        # One entry per open group; True while directly inside a literal.
        self.groups: list[bool] = []
        self.nesting = 0
        # AST height per node, keyed by id(); nodes stay alive in the tree.
        self.heights: dict[int, int] = {}

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

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    @property
    def in_literal(self) -> bool:
        return bool(self.groups) and self.groups[-1]

    # -- Limits --

    @contextmanager
    def nested(self, tok: Token, literal: bool = False) -> Iterator[None]:
        """Enter a bracket, call, or exponent level."""
        self.nesting += 1
        if self.nesting > self.config.max_nesting:
            raise NestingTooDeep(
                f"Expression nested deeper than {self.config.max_nesting} levels",
                tok.span,
            )
        self.groups.append(literal)
        try:
            yield
        finally:
            self.groups.pop()
            self.nesting -= 1

    def node(self, expr: Expr, *children: Expr, at: Token) -> Expr:
        """Record the height of a new node and enforce ``max_depth``."""
        height = 1 + max((self.heights.get(id(c), 1) for c in children), default=0)
        if height > self.config.max_depth:
            raise NestingTooDeep(
                f"Expression deeper than {self.config.max_depth} levels",
                at.span,
            )
        self.heights[id(expr)] = height
        return expr

    # -- Error helpers --

    def operand_error(self) -> Exception:
        """Build the error for a token that cannot start an operand."""
        tok = self.current
        if tok.kind in _CLOSERS:
            if self.groups and self._innermost_opener() == _CLOSERS[tok.kind]:
                return MissingOperand(f"Expected an operand before {tok.value!r}", tok.span)
            return UnbalancedBrackets(f"Unmatched {tok.value!r}", tok.span)
        if tok.kind == TokenKind.EOF:
            return MissingOperand("Expected an operand at end of input", tok.span)
        return MissingOperand(f"Expected an operand before {tok.value!r}", tok.span)

    def _innermost_opener(self) -> str:
        return "[" if self.groups[-1] else "("

    def close(self, opener: Token, kind: TokenKind) -> Token:
        """Consume the closer matching ``opener`` or raise."""
        tok = self.current
        if tok.kind == kind:
            return self.advance()
        if tok.kind in _CLOSERS or tok.kind == TokenKind.EOF:
            found = "end of input" if tok.kind == TokenKind.EOF else repr(tok.value)
            raise UnbalancedBrackets(
                f"{opener.value!r} is never closed; found {found}", Span(opener.pos, tok.end)
            )
        raise UnexpectedToken(f"Unexpected token {tok.value!r}", tok.span)

    # -- Grammar rules --

    def parse_expr(self) -> Expr:
        """IDENT '=' additive | additive"""
        if self.current.kind == TokenKind.IDENT and self.peek(1).kind == TokenKind.ASSIGN:
            name_tok = self.advance()
            self.advance()  # =
            value = self.parse_additive()
            return self.node(Assignment(name=name_tok.value, value=value), value, at=name_tok)
        return self.parse_additive()

    def parse_additive(self) -> Expr:
        """multiplicative (('+' | '-') multiplicative)*"""
        left = self.parse_multiplicative()
        while self.current.kind in (TokenKind.PLUS, TokenKind.MINUS):
            if self.in_literal and self._starts_signed_element():
                break
            op_tok = self.advance()
            op = BinaryOp.ADD if op_tok.kind == TokenKind.PLUS else BinaryOp.SUB
            right = self.parse_multiplicative()
            left = self.node(BinaryExpr(op=op, left=left, right=right), left, right, at=op_tok)
        return left

    def _starts_signed_element(self) -> bool:
        tok = self.current
        return tok.kind == TokenKind.MINUS and tok.spaced and not self.peek(1).spaced

    def parse_multiplicative(self) -> Expr:
        """unary (('*' | '/') unary | unary)*"""
        left = self.parse_unary()
        while True:
            tok = self.current
            if tok.kind in (TokenKind.STAR, TokenKind.SLASH):
                self.advance()
                op = BinaryOp.MUL if tok.kind == TokenKind.STAR else BinaryOp.DIV
            elif tok.kind in _OPERAND_START and not (self.in_literal and tok.spaced):
                op = BinaryOp.MUL
            else:
                return left
            right = self.parse_unary()
            left = self.node(BinaryExpr(op=op, left=left, right=right), left, right, at=tok)

    def parse_unary(self) -> Expr:
        """'-'* power"""
        signs: list[Token] = []
        while self.current.kind == TokenKind.MINUS:
            signs.append(self.advance())
        expr = self.parse_power()
        for sign in reversed(signs):
            expr = self.node(UnaryExpr(op=UnaryOp.NEG, operand=expr), expr, at=sign)
        return expr

    def parse_power(self) -> Expr:
        """postfix ('^' unary)?"""
        base = self.parse_postfix()
        caret = self.match(TokenKind.CARET)
        if caret is None:
            return base
        with self.nested(caret, literal=self.in_literal):
            exponent = self.parse_unary()
        return self.node(
            BinaryExpr(op=BinaryOp.POW, left=base, right=exponent), base, exponent, at=caret
        )

    def parse_postfix(self) -> Expr:
        """primary ('!' | '?')*"""
        expr = self.parse_primary()
        while True:
            tok = self.match(TokenKind.BANG, TokenKind.QUESTION)
            if tok is None:
                return expr
            wrapped = Upgrade(operand=expr) if tok.kind == TokenKind.BANG else Downgrade(operand=expr)
            expr = self.node(wrapped, expr, at=tok)

    def parse_primary(self) -> Expr:
        """NUMBER | IDENT | call | '(' expr ')' | literal"""
        tok = self.current

        if tok.kind == TokenKind.NUMBER:
            self.advance()
            return self.node(NumberLiteral(value=float(tok.value)), at=tok)

        if tok.kind == TokenKind.IDENT:
            self.advance()
            return self.node(Identifier(name=tok.value), at=tok)

        if tok.kind == TokenKind.FUNCTION:
            return self._parse_call()

        # Parenthesized expression
        if tok.kind == TokenKind.LPAREN:
            self.advance()
            with self.nested(tok):
                expr = self.parse_expr()
                self.close(tok, TokenKind.RPAREN)
            return expr

        if tok.kind == TokenKind.LBRACKET:
            return self._parse_literal()

        raise self.operand_error()

    def _parse_call(self) -> Expr:
        """FUNCTION '(' (expr (',' expr)*)? ')'"""
        name_tok = self.advance()
        lparen = self.current
        if lparen.kind != TokenKind.LPAREN:
            raise UnexpectedToken(
                f"Expected '(' after {name_tok.value}, got {lparen.value or 'end of input'!r}",
                lparen.span,
            )
        self.advance()

        args: list[Expr] = []
        with self.nested(lparen):
            if self.current.kind != TokenKind.RPAREN:
                args.append(self.parse_expr())
                while self.match(TokenKind.COMMA):
                    args.append(self.parse_expr())
            self.close(lparen, TokenKind.RPAREN)

        return self.node(Call(name=name_tok.value, args=tuple(args)), *args, at=name_tok)

    def _parse_literal(self) -> Expr:
        """'[' row (';' row)* ']'"""
        lbracket = self.advance()
        if self.current.kind == TokenKind.RBRACKET:
            raise EmptyLiteral("Empty literal '[]'", Span(lbracket.pos, self.current.end))

        rows: list[list[Expr]] = []
        with self.nested(lbracket, literal=True):
            while True:
                row: list[Expr] = []
                while self.current.kind not in _ROW_END:
                    row.append(self.parse_additive())
                if not row:
                    raise self._row_end_error(lbracket, empty=True)
                rows.append(row)
                if self.match(TokenKind.SEMICOLON):
                    continue
                if self.match(TokenKind.RBRACKET):
                    break
                raise self._row_end_error(lbracket, empty=False)

        span = Span(lbracket.pos, self.tokens[self.pos - 1].end)
        children = [e for row in rows for e in row]
        widths = {len(row) for row in rows}

        if widths == {1}:
            return self.node(VectorLiteral(elements=tuple(children)), *children, at=lbracket)
        if len(widths) > 1:
            shape = " ".join(str(len(row)) for row in rows)
            raise IrregularLiteral(
                f"Literal rows have different lengths ({shape})",
                span,
            )
        return self.node(
            MatrixLiteral(rows=tuple(tuple(row) for row in rows)), *children, at=lbracket
        )

    def _row_end_error(self, lbracket: Token, empty: bool) -> Exception:
        tok = self.current
        if tok.kind == TokenKind.EOF or tok.kind == TokenKind.RPAREN:
            found = "end of input" if tok.kind == TokenKind.EOF else "')'"
            return UnbalancedBrackets(
                f"'[' is never closed; found {found}", Span(lbracket.pos, tok.end)
            )
        if empty and tok.kind in (TokenKind.SEMICOLON, TokenKind.RBRACKET):
            return EmptyLiteral("Empty row in literal", tok.span)
        return UnexpectedToken(f"Unexpected token {tok.value!r} in literal", tok.span)


def parse(tokens: Sequence[Token], config: EngineConfig | None = None) -> Expr:
    """Parse a token sequence into an AST.

    Args:
        tokens: Output of :func:`tokenize`. A missing trailing EOF token is
            supplied.
        config: Nesting limits; defaults to ``DEFAULT_CONFIG``.

    Returns:
        Parsed expression AST.

    Raises:
        ParseError: If the tokens do not form a single expression.
    """
    token_list = list(tokens)
    if not token_list or token_list[-1].kind != TokenKind.EOF:
        end = token_list[-1].end if token_list else 0
        token_list.append(Token(TokenKind.EOF, "", end, end))

    parser = _Parser(token_list, config or DEFAULT_CONFIG)
    expr = parser.parse_expr()

    # Ensure all tokens consumed
    tok = parser.current
    if tok.kind != TokenKind.EOF:
        if tok.kind in _CLOSERS:
            raise UnbalancedBrackets(f"Unmatched {tok.value!r}", tok.span)
        raise UnexpectedToken(f"Unexpected token after expression: {tok.value!r}", tok.span)

    logger.debug("Parsed %d tokens into %s", len(token_list), type(expr).__name__)
    return expr


def parse_expr(source: str | bytes, config: EngineConfig | None = None) -> Expr:
    """Tokenize and parse an expression string.

    Args:
        source: Expression string (e.g., ``"A = [0 -1; 1 0]"``)
        config: Nesting limits; defaults to ``DEFAULT_CONFIG``.

    Returns:
        Parsed expression AST.

    Raises:
        LexError: If tokenization fails.
        ParseError: If the expression is invalid.
    """
    return parse(tokenize(source), config)
