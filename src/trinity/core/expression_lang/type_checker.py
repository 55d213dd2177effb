"""
Kind inference for the Trinity expression language.

Predicts the variant an expression evaluates to without computing it, so a
front-end can pick a 2D or 3D scene before evaluation. Kind-level mistakes
raise the same EvalError subclasses evaluation would.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

from trinity.core.errors import (
    DimensionMismatch,
    InvalidCall,
    InvalidDowngrade,
    InvalidUpgrade,
    NamingConventionViolation,
    TypeMismatch,
)
from trinity.core.expression_lang.builtins import check_arity
from trinity.core.expression_lang.environment import Environment
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
    Upgrade,
    VectorLiteral,
    is_matrix_name,
)


class ExprKind(StrEnum):
    """Result kind of an expression. ANY means not statically known."""

    SCALAR = "scalar"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    MATRIX2 = "matrix2"
    MATRIX3 = "matrix3"
    ANY = "any"


# Kind context maps variable names to their kinds
KindContext = Mapping[str, ExprKind]

_MATRIX_KINDS = {ExprKind.MATRIX2, ExprKind.MATRIX3}
_VECTOR_KINDS = {ExprKind.VECTOR2, ExprKind.VECTOR3}

_LITERAL_KINDS = {
    (2, 2): ExprKind.MATRIX2,
    (3, 3): ExprKind.MATRIX3,
    (2, 1): ExprKind.VECTOR2,
    (3, 1): ExprKind.VECTOR3,
}

# Matrix applications and compositions: (left, right) -> result
_PRODUCTS = {
    (ExprKind.MATRIX2, ExprKind.MATRIX2): ExprKind.MATRIX2,
    (ExprKind.MATRIX3, ExprKind.MATRIX3): ExprKind.MATRIX3,
    (ExprKind.MATRIX2, ExprKind.VECTOR2): ExprKind.VECTOR2,
    (ExprKind.MATRIX3, ExprKind.VECTOR3): ExprKind.VECTOR3,
}

_BUILTIN_KINDS = {
    "rot": ExprKind.MATRIX2,
    "rotx": ExprKind.MATRIX3,
    "roty": ExprKind.MATRIX3,
    "rotz": ExprKind.MATRIX3,
}


def infer_kind(
    expr: Expr,
    env_or_kinds: Environment | KindContext | None = None,
) -> ExprKind:
    """Infer the result kind of an expression.

    Args:
        expr: Expression AST node.
        env_or_kinds: An Environment whose bound values give variable
            kinds, or a mapping of name -> ExprKind. Unknown names are ANY.

    Returns:
        The inferred ExprKind.

    Raises:
        EvalError: If the kinds are incompatible.
    """
    if isinstance(env_or_kinds, Environment):
        ctx: dict[str, ExprKind] = {
            name: ExprKind(value.kind.value) for name, value in env_or_kinds.snapshot().items()
        }
    else:
        ctx = dict(env_or_kinds or {})
    return _infer(expr, ctx)


def _infer(expr: Expr, ctx: dict[str, ExprKind]) -> ExprKind:
    """Dispatch kind inference."""
    if isinstance(expr, NumberLiteral):
        return ExprKind.SCALAR

    if isinstance(expr, Identifier):
        return ctx.get(expr.name, ExprKind.ANY)

    if isinstance(expr, BinaryExpr):
        return _infer_binary(expr, ctx)

    if isinstance(expr, UnaryExpr):
        # Negation preserves kind
        return _infer(expr.operand, ctx)

    if isinstance(expr, Upgrade):
        return _infer_upgrade(_infer(expr.operand, ctx))

    if isinstance(expr, Downgrade):
        return _infer_downgrade(_infer(expr.operand, ctx))

    if isinstance(expr, MatrixLiteral):
        return _infer_literal([list(row) for row in expr.rows], ctx)

    if isinstance(expr, VectorLiteral):
        return _infer_literal([[e] for e in expr.elements], ctx)

    if isinstance(expr, Assignment):
        return _infer_assignment(expr, ctx)

    if isinstance(expr, Call):
        return _infer_call(expr, ctx)

    return ExprKind.ANY


def _infer_binary(expr: BinaryExpr, ctx: dict[str, ExprKind]) -> ExprKind:
    """Infer the result kind of a binary expression."""
    left = _infer(expr.left, ctx)
    right = _infer(expr.right, ctx)

    if expr.op in (BinaryOp.ADD, BinaryOp.SUB):
        if ExprKind.ANY in (left, right):
            return right if left == ExprKind.ANY else left
        if left != right:
            verb = "add" if expr.op == BinaryOp.ADD else "subtract"
            raise TypeMismatch(f"Cannot {verb} {left} and {right}")
        return left

    if expr.op == BinaryOp.MUL:
        if left == ExprKind.SCALAR:
            return right
        if right == ExprKind.SCALAR:
            return left
        if ExprKind.ANY in (left, right):
            return ExprKind.ANY
        result = _PRODUCTS.get((left, right))
        if result is None:
            raise DimensionMismatch(f"Cannot multiply {left} by {right}")
        return result

    if expr.op == BinaryOp.DIV:
        if right not in (ExprKind.SCALAR, ExprKind.ANY):
            raise TypeMismatch(f"Cannot divide {left} by {right}")
        return left

    # Power
    if right not in (ExprKind.SCALAR, ExprKind.ANY):
        raise TypeMismatch(f"Cannot raise {left} to a {right} power")
    if left in _VECTOR_KINDS:
        raise TypeMismatch(f"Cannot raise {left} to a power")
    return left


def _infer_upgrade(kind: ExprKind) -> ExprKind:
    if kind == ExprKind.MATRIX2:
        return ExprKind.MATRIX3
    if kind == ExprKind.VECTOR2:
        return ExprKind.VECTOR3
    if kind == ExprKind.ANY:
        return ExprKind.ANY
    raise InvalidUpgrade(f"Cannot upgrade {kind}; only Matrix2 and Vector2 upgrade")


def _infer_downgrade(kind: ExprKind) -> ExprKind:
    # Whether the value is an identity augmentation is only known at runtime.
    if kind == ExprKind.MATRIX3:
        return ExprKind.MATRIX2
    if kind == ExprKind.VECTOR3:
        return ExprKind.VECTOR2
    if kind == ExprKind.ANY:
        return ExprKind.ANY
    raise InvalidDowngrade(f"Cannot downgrade {kind}; only Matrix3 and Vector3 downgrade")


def _infer_literal(rows: list[list[Expr]], ctx: dict[str, ExprKind]) -> ExprKind:
    for row in rows:
        for element in row:
            kind = _infer(element, ctx)
            if kind not in (ExprKind.SCALAR, ExprKind.ANY):
                raise TypeMismatch(f"Literal elements must be Scalars, got {kind}")

    if len({len(row) for row in rows}) > 1:
        raise DimensionMismatch("Literal rows have different lengths")

    shape = (len(rows), len(rows[0]) if rows else 0)
    result = _LITERAL_KINDS.get(shape)
    if result is None:
        raise DimensionMismatch(f"Unsupported {shape[0]}x{shape[1]} literal")
    return result


def _infer_assignment(expr: Assignment, ctx: dict[str, ExprKind]) -> ExprKind:
    kind = _infer(expr.value, ctx)
    if kind != ExprKind.ANY:
        if is_matrix_name(expr.name) and kind not in _MATRIX_KINDS:
            raise NamingConventionViolation(
                f"'{expr.name}' starts with an uppercase letter and can only hold a matrix, got {kind}"
            )
        if not is_matrix_name(expr.name) and kind in _MATRIX_KINDS:
            raise NamingConventionViolation(f"'{expr.name}' can only hold a scalar or vector")
    return kind


def _infer_call(expr: Call, ctx: dict[str, ExprKind]) -> ExprKind:
    check_arity(expr.name, len(expr.args))
    for index, arg in enumerate(expr.args, start=1):
        kind = _infer(arg, ctx)
        if kind not in (ExprKind.SCALAR, ExprKind.ANY):
            raise InvalidCall(f"{expr.name}() argument {index} must be a Scalar angle, got {kind}")
    return _BUILTIN_KINDS[expr.name]
