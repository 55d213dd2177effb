"""Tests for the error taxonomy and error formatting."""

from __future__ import annotations

import pytest

from trinity.core import errors
from trinity.core.errors import (
    ErrorContext,
    EvalError,
    ExpressionError,
    InvalidDowngrade,
    InvalidNumber,
    LexError,
    MissingOperand,
    ParseError,
    Span,
    UndefinedVariable,
)
from trinity.core.expression_lang import Environment, evaluate_source, parse_expr, tokenize

LEX_KINDS = ["InvalidNumber", "UnexpectedCharacter"]
PARSE_KINDS = [
    "UnexpectedToken",
    "UnbalancedBrackets",
    "IrregularLiteral",
    "EmptyLiteral",
    "MissingOperand",
    "NestingTooDeep",
]
EVAL_KINDS = [
    "UndefinedVariable",
    "TypeMismatch",
    "DimensionMismatch",
    "InvalidUpgrade",
    "InvalidDowngrade",
    "DivisionByZero",
    "InvalidCall",
    "NamingConventionViolation",
    "InvalidPower",
    "SingularMatrix",
]


class TestTaxonomy:
    @pytest.mark.parametrize(
        ("family", "names"),
        [(LexError, LEX_KINDS), (ParseError, PARSE_KINDS), (EvalError, EVAL_KINDS)],
    )
    def test_families(self, family: type[ExpressionError], names: list[str]) -> None:
        for name in names:
            cls = getattr(errors, name)
            assert issubclass(cls, family)
            assert issubclass(cls, ExpressionError)
            assert cls.kind == name
            assert cls.family == family.__name__

    def test_families_are_disjoint(self) -> None:
        assert not issubclass(LexError, ParseError)
        assert not issubclass(ParseError, EvalError)
        assert not issubclass(EvalError, LexError)

    def test_label(self) -> None:
        assert InvalidDowngrade("x").label == "EvalError.InvalidDowngrade"

    def test_undefined_variable_carries_name(self) -> None:
        err = UndefinedVariable("speed")
        assert err.name == "speed"
        assert str(err) == "Variable 'speed' is not defined"


class TestSpan:
    def test_end_is_clamped(self) -> None:
        assert Span(5, 2) == Span(5, 5)

    def test_lex_and_parse_errors_carry_spans(self) -> None:
        with pytest.raises(LexError) as lex_info:
            tokenize("1.2.3")
        assert lex_info.value.span is not None
        with pytest.raises(ParseError) as parse_info:
            parse_expr("(1")
        assert parse_info.value.span is not None


class TestErrorContext:
    def test_line_and_column(self) -> None:
        ctx = ErrorContext(source="A = 1\nB = [1 2", span=Span(10, 11))
        assert ctx.line == 2
        assert ctx.column == 5

    def test_format_single_line(self) -> None:
        with pytest.raises(InvalidNumber) as exc_info:
            tokenize("A * 1.2.3")
        formatted = exc_info.value.format("A * 1.2.3")
        assert formatted.splitlines() == [
            "LexError.InvalidNumber: Invalid number: '1.2.3'",
            "1:5",
            "   1 | A * 1.2.3",
            "           ^^^^^",
        ]

    def test_marker_at_end_of_input(self) -> None:
        with pytest.raises(MissingOperand) as exc_info:
            parse_expr("1 +")
        assert exc_info.value.format("1 +").splitlines()[-1] == "          ^"

    def test_format_without_span(self) -> None:
        with pytest.raises(EvalError) as exc_info:
            evaluate_source("x", Environment())
        message = exc_info.value.format("x")
        assert message == "EvalError.UndefinedVariable: Variable 'x' is not defined"

    def test_format_without_source(self) -> None:
        err = MissingOperand("Expected an operand", Span(0, 1))
        assert err.format() == "ParseError.MissingOperand: Expected an operand"
