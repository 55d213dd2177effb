"""
Error types for Trinity expression tokenizing, parsing, and evaluation.

Three disjoint families, each closed:

- LexError: InvalidNumber, UnexpectedCharacter
- ParseError: UnexpectedToken, UnbalancedBrackets, IrregularLiteral,
  EmptyLiteral, MissingOperand, NestingTooDeep
- EvalError: UndefinedVariable, TypeMismatch, DimensionMismatch,
  InvalidUpgrade, InvalidDowngrade, DivisionByZero, InvalidCall,
  NamingConventionViolation, InvalidPower, SingularMatrix
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)`` in the source text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            object.__setattr__(self, "end", self.start)


class ExpressionError(Exception):
    """Base exception for all Trinity expression errors."""

    family: ClassVar[str] = "ExpressionError"
    kind: ClassVar[str] = "ExpressionError"

    def __init__(self, message: str, span: Span | None = None):
        self.message = message
        self.span = span
        super().__init__(message)

    @property
    def label(self) -> str:
        """Taxonomy label, e.g. ``EvalError.InvalidDowngrade``."""
        return f"{self.family}.{self.kind}"

    def format(self, source: str | None = None) -> str:
        """Format the error for display, with a source snippet when possible."""
        header = f"{self.label}: {self.message}"
        if self.span is None or source is None:
            return header
        return f"{header}\n{ErrorContext(source=source, span=self.span).format()}"


@dataclass
class ErrorContext:
    """
    Source location of an error inside a (possibly multi-line) expression.

    Attributes:
        source: The full expression text
        span: Offending character range
    """

    source: str
    span: Span

    @property
    def line(self) -> int:
        """1-indexed line of the span start."""
        return self.source.count("\n", 0, self.span.start) + 1

    @property
    def column(self) -> int:
        """1-indexed column of the span start."""
        line_start = self.source.rfind("\n", 0, self.span.start) + 1
        return self.span.start - line_start + 1

    def format(self) -> str:
        """
        Format as location plus snippet.

        Returns:
            String like ``"1:5\\n   1 | A * [1 2\\n           ^^^"``
        """
        return f"{self.line}:{self.column}\n{self._format_snippet()}"

    def _format_snippet(self) -> str:
        """Format the offending line with a marker under the span."""
        lines = self.source.split("\n")
        text = lines[self.line - 1] if self.line - 1 < len(lines) else ""
        prefix = f"{self.line:4d} | "

        # Clip to the rest of the line; EOF spans still get one marker.
        width = max(1, min(self.span.end - self.span.start, len(text) - self.column + 1))
        marker_pos = len(prefix) + self.column - 1
        return f"{prefix}{text}\n{' ' * marker_pos}{'^' * width}"


# ---------------------------------------------------------------------------
# Lexing
# ---------------------------------------------------------------------------


class LexError(ExpressionError):
    """Raised when expression text cannot be split into tokens."""

    family = "LexError"
    kind = "LexError"


class InvalidNumber(LexError):
    """Malformed numeric text such as ``1.2.3``."""

    kind = "InvalidNumber"


class UnexpectedCharacter(LexError):
    """A character that starts no token."""

    kind = "UnexpectedCharacter"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class ParseError(ExpressionError):
    """
    Raised when a token stream is not a valid expression.

    Examples:
    - Operators with a missing operand
    - Unbalanced or mismatched brackets
    - Empty or irregular matrix literals
    """

    family = "ParseError"
    kind = "ParseError"


class UnexpectedToken(ParseError):
    kind = "UnexpectedToken"


class UnbalancedBrackets(ParseError):
    kind = "UnbalancedBrackets"


class IrregularLiteral(ParseError):
    kind = "IrregularLiteral"


class EmptyLiteral(ParseError):
    kind = "EmptyLiteral"


class MissingOperand(ParseError):
    kind = "MissingOperand"


class NestingTooDeep(ParseError):
    """Expression nesting exceeds the configured limits."""

    kind = "NestingTooDeep"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class EvalError(ExpressionError):
    """
    Raised when a well-formed expression cannot be evaluated.

    Examples:
    - Adding a vector to a matrix
    - Multiplying a 2D matrix by a 3D one
    - Downgrading a matrix that is not an identity augmentation
    """

    family = "EvalError"
    kind = "EvalError"


class UndefinedVariable(EvalError):
    kind = "UndefinedVariable"

    def __init__(self, name: str, span: Span | None = None):
        self.name = name
        super().__init__(f"Variable '{name}' is not defined", span)


class TypeMismatch(EvalError):
    kind = "TypeMismatch"


class DimensionMismatch(EvalError):
    kind = "DimensionMismatch"


class InvalidUpgrade(EvalError):
    kind = "InvalidUpgrade"


class InvalidDowngrade(EvalError):
    kind = "InvalidDowngrade"


class DivisionByZero(EvalError):
    kind = "DivisionByZero"


class InvalidCall(EvalError):
    kind = "InvalidCall"


class NamingConventionViolation(EvalError):
    kind = "NamingConventionViolation"


class InvalidPower(EvalError):
    kind = "InvalidPower"


class SingularMatrix(EvalError):
    kind = "SingularMatrix"
