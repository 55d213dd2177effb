"""
Expression evaluator for the Trinity expression language.

Walks an expression AST post-order and produces a Value. Assignments mutate
the Environment passed in; nothing else has side effects. Every failure is
an EvalError subclass.
"""

from __future__ import annotations

import logging

import numpy as np

from trinity.core.config import DEFAULT_CONFIG, EngineConfig
from trinity.core.errors import DimensionMismatch, EvalError, TypeMismatch
from trinity.core.expression_lang.builtins import call_builtin, check_arity
from trinity.core.expression_lang.environment import Environment
from trinity.core.expression_lang.parser import parse_expr
from trinity.core.ir import values
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
from trinity.core.ir.values import Scalar, Value, describe

logger = logging.getLogger(__name__)

_BINARY = {
    BinaryOp.ADD: values.add,
    BinaryOp.SUB: values.sub,
    BinaryOp.MUL: values.mul,
    BinaryOp.DIV: values.div,
    BinaryOp.POW: values.power,
}

# Literal shapes (rows, columns) that map to a value variant.
_LITERAL_SHAPES = {(2, 2), (3, 3), (2, 1), (3, 1)}


def evaluate(expr: Expr, env: Environment, *, config: EngineConfig | None = None) -> Value:
    """Evaluate an expression against an environment.

    Args:
        expr: Parsed expression AST.
        env: Session bindings. Assignments update it in place.
        config: Angle unit for the rotation built-ins; defaults to
            ``DEFAULT_CONFIG``.

    Returns:
        The computed value.

    Raises:
        EvalError: If evaluation fails.
    """
    return _interpret(expr, env, config or DEFAULT_CONFIG)


def evaluate_source(
    source: str | bytes, env: Environment, config: EngineConfig | None = None
) -> Value:
    """Tokenize, parse and evaluate ``source`` in one step.

    Raises:
        LexError, ParseError, EvalError: From the stage that failed.
    """
    config = config or DEFAULT_CONFIG
    expr = parse_expr(source, config)
    logger.debug("Evaluating %s", expr)
    return evaluate(expr, env, config=config)


def _interpret(expr: Expr, env: Environment, config: EngineConfig) -> Value:
    """Dispatch evaluation to the appropriate handler."""
    if isinstance(expr, NumberLiteral):
        return Scalar(value=expr.value)

    if isinstance(expr, Identifier):
        return env.lookup(expr.name)

    if isinstance(expr, BinaryExpr):
        left = _interpret(expr.left, env, config)
        right = _interpret(expr.right, env, config)
        return _BINARY[expr.op](left, right)

    if isinstance(expr, UnaryExpr):
        operand = _interpret(expr.operand, env, config)
        if expr.op == UnaryOp.NEG:
            return values.neg(operand)
        raise EvalError(f"Unknown unary op: {expr.op}")

    if isinstance(expr, Upgrade):
        return values.upgrade(_interpret(expr.operand, env, config))

    if isinstance(expr, Downgrade):
        return values.downgrade(_interpret(expr.operand, env, config))

    if isinstance(expr, MatrixLiteral):
        return _interpret_literal([list(row) for row in expr.rows], env, config)

    if isinstance(expr, VectorLiteral):
        return _interpret_literal([[e] for e in expr.elements], env, config)

    if isinstance(expr, Assignment):
        return _interpret_assignment(expr, env, config)

    if isinstance(expr, Call):
        return _interpret_call(expr, env, config)

    raise EvalError(f"Unknown expression type: {type(expr).__name__}")


def _interpret_literal(rows: list[list[Expr]], env: Environment, config: EngineConfig) -> Value:
    """Evaluate a bracketed literal given as rows of element expressions."""
    entries: list[list[float]] = []
    for row in rows:
        entry_row: list[float] = []
        for element in row:
            value = _interpret(element, env, config)
            if not isinstance(value, Scalar):
                raise TypeMismatch(f"Literal elements must be Scalars, got {describe(value)}")
            entry_row.append(value.value)
        entries.append(entry_row)

    if len({len(row) for row in entries}) > 1:
        widths = " ".join(str(len(row)) for row in entries)
        raise DimensionMismatch(f"Literal rows have different lengths ({widths})")

    shape = (len(entries), len(entries[0]) if entries else 0)
    if shape not in _LITERAL_SHAPES:
        kind = "vector" if shape[1] == 1 else "matrix"
        raise DimensionMismatch(
            f"Unsupported {shape[0]}x{shape[1]} {kind} literal; "
            f"only 2x2 and 3x3 matrices and 2- and 3-vectors are supported"
        )

    array = np.array(entries, dtype=np.float64)
    if shape[1] == 1:
        array = array[:, 0]
    return values.value_from_array(array)


def _interpret_assignment(expr: Assignment, env: Environment, config: EngineConfig) -> Value:
    """Evaluate the right-hand side, then bind it."""
    value = _interpret(expr.value, env, config)
    env.set(expr.name, value)
    logger.debug("Assigned %s = %s", expr.name, value)
    return value


def _interpret_call(expr: Call, env: Environment, config: EngineConfig) -> Value:
    """Evaluate a built-in call (closed set, no user-defined functions)."""
    builtin = check_arity(expr.name, len(expr.args))
    args = [_interpret(a, env, config) for a in expr.args]
    return call_builtin(builtin, args, config.angle_unit)
