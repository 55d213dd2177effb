"""
Expression AST for the Trinity matrix language.

Supports:
- Number literals: 3, 0.5, 1e-3
- Matrix literals: [1 2; 3 4], [1 0 0; 0 1 0; 0 0 1]
- Vector literals: [1; 0], [x; y; 0]
- Variables and assignment: A, v, A = [0 -1; 1 0]
- Arithmetic: +, -, *, /, ^, unary minus, juxtaposition (A v)
- Upgrade and downgrade: A!, v?, A!?
- Built-in calls: rot(45), rotz(90)

Every node renders back to source with ``str()``. The rendering is fully
parenthesised, so parsing it again yields an equal tree.
"""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from trinity.core.ir.values import format_number

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary operators for expressions."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    POW = "^"


class UnaryOp(StrEnum):
    """Unary operators for expressions."""

    NEG = "-"


# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


class NumberLiteral(BaseModel):
    """A non-negative number as written; signs are UnaryExpr nodes."""

    value: float = Field(description="The literal value")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if math.isinf(self.value):
            return "1e999"  # overflowed literal; re-lexes to inf
        return format_number(self.value)


class MatrixLiteral(BaseModel):
    """
    A bracketed literal with more than one column, e.g. ``[1 2; 3 4]``.

    Rows all have the same length. Any rectangular shape parses; only 2x2
    and 3x3 evaluate.
    """

    rows: tuple[tuple[Expr, ...], ...] = Field(description="Rows of element expressions")

    model_config = ConfigDict(frozen=True)

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.rows), len(self.rows[0]) if self.rows else 0

    def __str__(self) -> str:
        return "[" + "; ".join(" ".join(str(e) for e in row) for row in self.rows) + "]"


class VectorLiteral(BaseModel):
    """A single-column bracketed literal, e.g. ``[1; 0]``."""

    elements: tuple[Expr, ...] = Field(description="Element expressions, top to bottom")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "[" + "; ".join(str(e) for e in self.elements) + "]"


class Identifier(BaseModel):
    """
    Reference to a variable.

    Uppercase-leading names hold matrices; all other names hold scalars and
    vectors.
    """

    name: str = Field(description="Variable name")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name

    @property
    def is_matrix_name(self) -> bool:
        return is_matrix_name(self.name)


class Assignment(BaseModel):
    """Binding of a variable: ``name = value``. Evaluates to the value."""

    name: str
    value: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.name} = {self.value})"


class BinaryExpr(BaseModel):
    """Binary operation: left op right."""

    op: BinaryOp
    left: Expr
    right: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        left = str(self.left)
        if self.op == BinaryOp.POW and isinstance(self.left, UnaryExpr):
            left = f"({left})"
        return f"({left} {self.op.value} {self.right})"


class UnaryExpr(BaseModel):
    """Unary operation: op operand."""

    op: UnaryOp
    operand: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"-{self.operand}"


class Upgrade(BaseModel):
    """Postfix ``!``: lift a 2D matrix or vector into 3D."""

    operand: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{_postfix_operand(self.operand)}!"


class Downgrade(BaseModel):
    """Postfix ``?``: narrow a 3D matrix or vector back to 2D."""

    operand: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{_postfix_operand(self.operand)}?"


class Call(BaseModel):
    """
    Built-in function call: name(arg1, arg2, ...).

    Built-in functions:
    - rot(angle): 2D rotation
    - rotx(angle), roty(angle), rotz(angle): 3D rotation about an axis
    """

    name: str = Field(description="Function name")
    args: tuple[Expr, ...] = Field(default=(), description="Arguments")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.name}({args_str})"


def _postfix_operand(operand: Expr) -> str:
    if isinstance(operand, UnaryExpr):
        return f"({operand})"
    return str(operand)


def is_matrix_name(name: str) -> bool:
    """Uppercase-leading names are reserved for matrices."""
    return bool(name) and "A" <= name[0] <= "Z"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = (
    NumberLiteral
    | MatrixLiteral
    | VectorLiteral
    | Identifier
    | Assignment
    | BinaryExpr
    | UnaryExpr
    | Upgrade
    | Downgrade
    | Call
)

# Rebuild models for recursive forward references
MatrixLiteral.model_rebuild()
VectorLiteral.model_rebuild()
Assignment.model_rebuild()
BinaryExpr.model_rebuild()
UnaryExpr.model_rebuild()
Upgrade.model_rebuild()
Downgrade.model_rebuild()
Call.model_rebuild()
