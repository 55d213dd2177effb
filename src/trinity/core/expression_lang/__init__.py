"""
Trinity matrix expression language.

Tokenizer, parser, evaluator, environment and kind checker.

Usage:
    from trinity.core.expression_lang import Environment, evaluate_source

    env = Environment()
    evaluate_source("A = [0 -1; 1 0]", env)
    result = evaluate_source("A [1; 0]", env)
    # result == Vector2(components=(0.0, 1.0))
"""

from trinity.core.expression_lang.environment import Environment
from trinity.core.expression_lang.evaluator import evaluate, evaluate_source
from trinity.core.expression_lang.parser import parse, parse_expr
from trinity.core.expression_lang.tokenizer import Token, TokenKind, tokenize
from trinity.core.expression_lang.type_checker import ExprKind, infer_kind

__all__ = [
    "Environment",
    "ExprKind",
    "Token",
    "TokenKind",
    "evaluate",
    "evaluate_source",
    "infer_kind",
    "parse",
    "parse_expr",
    "tokenize",
]
