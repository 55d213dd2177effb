"""
Tokenizer for the Trinity expression language.

Converts an expression string into a sequence of typed tokens. Every input
either tokenizes completely or raises a LexError with a position.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto

from trinity.core.errors import InvalidNumber, Span, UnexpectedCharacter
from trinity.core.expression_lang.builtins import BUILTIN_NAMES


class TokenKind(StrEnum):
    """Token types for the expression language."""

    # Literals and names
    NUMBER = auto()
    IDENT = auto()
    FUNCTION = auto()  # built-in name, e.g. rot

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    CARET = auto()
    BANG = auto()  # postfix upgrade
    QUESTION = auto()  # postfix downgrade
    ASSIGN = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    SEMICOLON = auto()
    COMMA = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the expression tokenizer.

    ``spaced`` records whether whitespace came right before the token;
    matrix rows use it to tell ``[1 -2]`` from ``[1 - 2]``.
    """

    __slots__ = ("kind", "value", "pos", "end", "spaced")

    def __init__(self, kind: TokenKind, value: str, pos: int, end: int, spaced: bool = False) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos
        self.end = end
        self.spaced = spaced

    @property
    def span(self) -> Span:
        return Span(self.pos, self.end)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (self.kind, self.value, self.pos, self.end, self.spaced) == (
            other.kind,
            other.value,
            other.pos,
            other.end,
            other.spaced,
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.value, self.pos, self.end, self.spaced))

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"


_SINGLE_CHAR: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "^": TokenKind.CARET,
    "!": TokenKind.BANG,
    "?": TokenKind.QUESTION,
    "=": TokenKind.ASSIGN,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ";": TokenKind.SEMICOLON,
    ",": TokenKind.COMMA,
}

_WHITESPACE = " \t\n\r\v\f"
_DIGITS = "0123456789"

# ASCII only: str.isdigit() accepts characters float() rejects.
_NUMBER_RE = re.compile(r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_MALFORMED_TAIL_RE = re.compile(r"[0-9.]+")


def tokenize(source: str | bytes) -> list[Token]:
    """Tokenize an expression into a list of tokens ending with EOF.

    Bytes are decoded as UTF-8 first.

    Raises:
        InvalidNumber: For malformed numeric text such as ``1.2.3``.
        UnexpectedCharacter: For any character that starts no token,
            including undecodable bytes.
    """
    if isinstance(source, (bytes, bytearray)):
        source = _decode(bytes(source))

    tokens: list[Token] = []
    i = 0
    n = len(source)
    spaced = False

    while i < n:
        c = source[i]

        # Skip whitespace
        if c in _WHITESPACE:
            spaced = True
            i += 1
            continue

        # Numbers
        if c in _DIGITS or (c == "." and i + 1 < n and source[i + 1] in _DIGITS):
            m = _NUMBER_RE.match(source, i)
            assert m is not None
            end = m.end()
            if end < n and source[end] == ".":
                tail = _MALFORMED_TAIL_RE.match(source, end)
                assert tail is not None
                raise InvalidNumber(
                    f"Invalid number: {source[i : tail.end()]!r}",
                    Span(i, tail.end()),
                )
            tokens.append(Token(TokenKind.NUMBER, m.group(0), i, end, spaced))
            i = end
            spaced = False
            continue

        # Identifiers and built-in names
        if c == "_" or ("a" <= c <= "z") or ("A" <= c <= "Z"):
            m = _IDENT_RE.match(source, i)
            assert m is not None
            word = m.group(0)
            kind = TokenKind.FUNCTION if word in BUILTIN_NAMES else TokenKind.IDENT
            tokens.append(Token(kind, word, i, m.end(), spaced))
            i = m.end()
            spaced = False
            continue

        kind = _SINGLE_CHAR.get(c)
        if kind is not None:
            tokens.append(Token(kind, c, i, i + 1, spaced))
            i += 1
            spaced = False
            continue

        raise UnexpectedCharacter(f"Unexpected character: {c!r}", Span(i, i + 1))

    tokens.append(Token(TokenKind.EOF, "", n, n, spaced))
    return tokens


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UnexpectedCharacter(
            f"Undecodable byte {data[e.start : e.start + 1]!r}",
            Span(e.start, e.start + 1),
        ) from e
