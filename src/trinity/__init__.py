"""
Trinity - a matrix and vector expression language.

Expressions such as ``A = rot(90)`` or ``(A! v!)?`` are tokenized, parsed
and evaluated into fixed-size 2D and 3D values for a visualisation
front-end to render.
"""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path as _Path

from .core import ir
from .core.config import AngleUnit, EngineConfig, load_config
from .core.errors import (
    DimensionMismatch,
    DivisionByZero,
    EmptyLiteral,
    EvalError,
    ExpressionError,
    InvalidCall,
    InvalidDowngrade,
    InvalidNumber,
    InvalidPower,
    InvalidUpgrade,
    IrregularLiteral,
    LexError,
    MissingOperand,
    NamingConventionViolation,
    NestingTooDeep,
    ParseError,
    SingularMatrix,
    Span,
    TypeMismatch,
    UnbalancedBrackets,
    UndefinedVariable,
    UnexpectedCharacter,
    UnexpectedToken,
)
from .core.expression_lang import (
    Environment,
    ExprKind,
    evaluate,
    evaluate_source,
    infer_kind,
    parse,
    parse_expr,
    tokenize,
)
from .core.ir.values import Matrix2, Matrix3, Scalar, Value, Vector2, Vector3


def _get_version() -> str:
    """Get version from pyproject.toml (editable) or importlib.metadata (installed)."""
    # In editable mode, read directly from pyproject.toml for live updates
    pyproject = _Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        content = pyproject.read_text()
        if match := re.search(r'^version\s*=\s*["\']([^"\']+)["\']', content, re.MULTILINE):
            return match.group(1)

    try:
        return _metadata_version("trinity")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()

__all__ = [
    "__version__",
    "ir",
    # Pipeline
    "tokenize",
    "parse",
    "parse_expr",
    "evaluate",
    "evaluate_source",
    "infer_kind",
    "ExprKind",
    "Environment",
    # Values
    "Value",
    "Scalar",
    "Vector2",
    "Vector3",
    "Matrix2",
    "Matrix3",
    # Configuration
    "AngleUnit",
    "EngineConfig",
    "load_config",
    # Errors
    "Span",
    "ExpressionError",
    "LexError",
    "InvalidNumber",
    "UnexpectedCharacter",
    "ParseError",
    "UnexpectedToken",
    "UnbalancedBrackets",
    "IrregularLiteral",
    "EmptyLiteral",
    "MissingOperand",
    "NestingTooDeep",
    "EvalError",
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
