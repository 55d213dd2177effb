"""Core Trinity functionality: errors, configuration, IR and the expression language."""

from . import ir
from .config import AngleUnit, EngineConfig, load_config
from .errors import (
    ErrorContext,
    EvalError,
    ExpressionError,
    LexError,
    ParseError,
    Span,
)

__all__ = [
    "ir",
    "AngleUnit",
    "EngineConfig",
    "load_config",
    "ErrorContext",
    "EvalError",
    "ExpressionError",
    "LexError",
    "ParseError",
    "Span",
]
