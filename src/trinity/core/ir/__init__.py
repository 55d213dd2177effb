"""
Trinity intermediate representation: expression AST nodes and runtime values.

All types are re-exported from this package.
"""

from .expressions import (
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
    is_matrix_name,
)
from .values import (
    IDENTITY2,
    IDENTITY3,
    Matrix2,
    Matrix3,
    Scalar,
    Value,
    ValueKind,
    Vector2,
    Vector3,
    value_from_array,
)

__all__ = [
    # AST
    "Assignment",
    "BinaryExpr",
    "BinaryOp",
    "Call",
    "Downgrade",
    "Expr",
    "Identifier",
    "MatrixLiteral",
    "NumberLiteral",
    "UnaryExpr",
    "UnaryOp",
    "Upgrade",
    "VectorLiteral",
    "is_matrix_name",
    # Values
    "IDENTITY2",
    "IDENTITY3",
    "Matrix2",
    "Matrix3",
    "Scalar",
    "Value",
    "ValueKind",
    "Vector2",
    "Vector3",
    "value_from_array",
]
