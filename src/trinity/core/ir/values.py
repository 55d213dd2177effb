"""
Runtime values for the Trinity expression language.

The evaluator produces exactly one of five fixed-size variants:

- Scalar: a real number
- Vector2 / Vector3: column vectors
- Matrix2 / Matrix3: square transformation matrices, stored row-major

Values are immutable plain data. Arithmetic goes through numpy with
floating point errors silenced, so overflow and NaN propagate as IEEE-754
values instead of raising.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import ClassVar

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, Field

from trinity.core.errors import (
    DimensionMismatch,
    DivisionByZero,
    InvalidDowngrade,
    InvalidPower,
    InvalidUpgrade,
    SingularMatrix,
    TypeMismatch,
)

FloatArray = npt.NDArray[np.float64]

# Exponents closer than this to an integer count as integral.
INTEGER_POWER_TOLERANCE = 1e-9


class ValueKind(StrEnum):
    """The closed set of runtime value variants."""

    SCALAR = "scalar"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    MATRIX2 = "matrix2"
    MATRIX3 = "matrix3"


def format_number(value: float) -> str:
    """Render a float the way it would be typed in an expression."""
    if math.isfinite(value) and value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class Scalar(BaseModel):
    """A real number."""

    value: float = Field(description="The number")

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ValueKind] = ValueKind.SCALAR
    dimension: ClassVar[int | None] = None

    def to_array(self) -> FloatArray:
        return np.array(self.value, dtype=np.float64)

    def __str__(self) -> str:
        return format_number(self.value)


class Vector2(BaseModel):
    """A 2D column vector."""

    components: tuple[float, float] = Field(description="(x, y)")

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ValueKind] = ValueKind.VECTOR2
    dimension: ClassVar[int | None] = 2

    def to_array(self) -> FloatArray:
        return np.array(self.components, dtype=np.float64)

    def __str__(self) -> str:
        return _format_column(self.components)


class Vector3(BaseModel):
    """A 3D column vector."""

    components: tuple[float, float, float] = Field(description="(x, y, z)")

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ValueKind] = ValueKind.VECTOR3
    dimension: ClassVar[int | None] = 3

    def to_array(self) -> FloatArray:
        return np.array(self.components, dtype=np.float64)

    def __str__(self) -> str:
        return _format_column(self.components)


class Matrix2(BaseModel):
    """A 2x2 matrix, rows first."""

    rows: tuple[tuple[float, float], tuple[float, float]] = Field(description="Row-major entries")

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ValueKind] = ValueKind.MATRIX2
    dimension: ClassVar[int | None] = 2

    def to_array(self) -> FloatArray:
        return np.array(self.rows, dtype=np.float64)

    def __str__(self) -> str:
        return _format_rows(self.rows)


class Matrix3(BaseModel):
    """A 3x3 matrix, rows first."""

    rows: tuple[
        tuple[float, float, float],
        tuple[float, float, float],
        tuple[float, float, float],
    ] = Field(description="Row-major entries")

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ValueKind] = ValueKind.MATRIX3
    dimension: ClassVar[int | None] = 3

    def to_array(self) -> FloatArray:
        return np.array(self.rows, dtype=np.float64)

    def __str__(self) -> str:
        return _format_rows(self.rows)


Value = Scalar | Vector2 | Vector3 | Matrix2 | Matrix3

MATRIX_TYPES = (Matrix2, Matrix3)
VECTOR_TYPES = (Vector2, Vector3)

IDENTITY2 = Matrix2(rows=((1.0, 0.0), (0.0, 1.0)))
IDENTITY3 = Matrix3(rows=((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)))


def _format_column(components: tuple[float, ...]) -> str:
    return "[" + "; ".join(format_number(c) for c in components) + "]"


def _format_rows(rows: tuple[tuple[float, ...], ...]) -> str:
    return "[" + "; ".join(" ".join(format_number(c) for c in row) for row in rows) + "]"


def describe(value: Value) -> str:
    """Short variant name used in error messages."""
    return type(value).__name__


def value_from_array(array: FloatArray) -> Value:
    """Wrap a numpy array of a supported shape as a Value.

    Raises:
        DimensionMismatch: If the shape is not (), (2,), (3,), (2, 2) or (3, 3).
    """
    shape = np.shape(array)
    if shape == ():
        return Scalar(value=float(array))
    if shape == (2,):
        return Vector2(components=tuple(array.tolist()))
    if shape == (3,):
        return Vector3(components=tuple(array.tolist()))
    if shape == (2, 2):
        return Matrix2(rows=tuple(tuple(r) for r in array.tolist()))
    if shape == (3, 3):
        return Matrix3(rows=tuple(tuple(r) for r in array.tolist()))
    raise DimensionMismatch(f"No value type has shape {'x'.join(str(n) for n in shape)}")


# ---------------------------------------------------------------------------
# Algebra
# ---------------------------------------------------------------------------


def add(left: Value, right: Value) -> Value:
    """Element-wise sum of two values of the same variant."""
    if type(left) is not type(right):
        raise TypeMismatch(f"Cannot add {describe(left)} and {describe(right)}")
    with np.errstate(all="ignore"):
        return value_from_array(left.to_array() + right.to_array())


def sub(left: Value, right: Value) -> Value:
    """Element-wise difference of two values of the same variant."""
    if type(left) is not type(right):
        raise TypeMismatch(f"Cannot subtract {describe(right)} from {describe(left)}")
    with np.errstate(all="ignore"):
        return value_from_array(left.to_array() - right.to_array())


def mul(left: Value, right: Value) -> Value:
    """Scale, compose, or apply a transformation.

    Scalars scale anything element-wise. Same-size matrices compose with
    the matrix product, and a matrix applied to a same-size vector
    transforms it. Everything else is a dimension mismatch.
    """
    if isinstance(left, Scalar) or isinstance(right, Scalar):
        with np.errstate(all="ignore"):
            return value_from_array(left.to_array() * right.to_array())

    if (isinstance(left, Matrix2) and isinstance(right, (Matrix2, Vector2))) or (
        isinstance(left, Matrix3) and isinstance(right, (Matrix3, Vector3))
    ):
        with np.errstate(all="ignore"):
            return value_from_array(left.to_array() @ right.to_array())

    raise DimensionMismatch(f"Cannot multiply {describe(left)} by {describe(right)}")


def div(left: Value, right: Value) -> Value:
    """Scale any value by the reciprocal of a non-zero scalar."""
    if not isinstance(right, Scalar):
        raise TypeMismatch(f"Cannot divide {describe(left)} by {describe(right)}")
    if right.value == 0.0:
        raise DivisionByZero(f"Cannot divide {describe(left)} by zero")
    with np.errstate(all="ignore"):
        return value_from_array(left.to_array() * (1.0 / np.float64(right.value)))


def neg(value: Value) -> Value:
    """Element-wise negation."""
    return value_from_array(-value.to_array())


def power(base: Value, exponent: Value) -> Value:
    """Raise a scalar to a real power, or a matrix to an integer power.

    A matrix raised to zero is the identity, and a negative power inverts
    the matrix first.

    Raises:
        TypeMismatch: For vector bases or non-scalar exponents.
        InvalidPower: For matrix bases with a non-integral exponent.
        SingularMatrix: For a negative power of a singular matrix.
    """
    if not isinstance(exponent, Scalar):
        raise TypeMismatch(f"Cannot raise {describe(base)} to a {describe(exponent)} power")

    if isinstance(base, Scalar):
        with np.errstate(all="ignore"):
            return Scalar(value=float(np.power(np.float64(base.value), np.float64(exponent.value))))

    if not isinstance(base, MATRIX_TYPES):
        raise TypeMismatch(f"Cannot raise {describe(base)} to a power")

    n = exponent.value
    if not math.isfinite(n):
        raise InvalidPower(f"Cannot raise {describe(base)} to the power {format_number(n)}")
    rounded = round(n)
    if abs(n - rounded) > INTEGER_POWER_TOLERANCE:
        raise InvalidPower(f"Cannot raise {describe(base)} to the non-integer power {format_number(n)}")

    with np.errstate(all="ignore"):
        try:
            result = np.linalg.matrix_power(base.to_array(), int(rounded))
        except np.linalg.LinAlgError as e:
            raise SingularMatrix(f"{describe(base)} is singular and cannot be inverted") from e
    return value_from_array(result)


def upgrade(value: Value) -> Value:
    """Embed a 2D matrix or vector into 3D.

    ``[a b; c d]`` becomes ``[a b 0; c d 0; 0 0 1]`` and ``[x; y]`` becomes
    ``[x; y; 0]``.
    """
    if isinstance(value, Matrix2):
        (a, b), (c, d) = value.rows
        return Matrix3(rows=((a, b, 0.0), (c, d, 0.0), (0.0, 0.0, 1.0)))
    if isinstance(value, Vector2):
        x, y = value.components
        return Vector3(components=(x, y, 0.0))
    raise InvalidUpgrade(f"Cannot upgrade {describe(value)}; only Matrix2 and Vector2 upgrade")


def downgrade(value: Value) -> Value:
    """Narrow a 3D matrix or vector back to 2D.

    Only exact identity augmentations narrow: the third row and column of a
    matrix must be ``[0 0 1]``, and the third component of a vector must
    be 0. Nothing is projected away.
    """
    if isinstance(value, Matrix3):
        (a, b, c), (d, e, f), (g, h, i) = value.rows
        if (g, h, i) != (0.0, 0.0, 1.0) or (c, f) != (0.0, 0.0):
            raise InvalidDowngrade(
                f"Cannot downgrade {value}: third row and column must be [0 0 1]"
            )
        return Matrix2(rows=((a, b), (d, e)))
    if isinstance(value, Vector3):
        x, y, z = value.components
        if z != 0.0:
            raise InvalidDowngrade(
                f"Cannot downgrade {value}: third component is {format_number(z)}, not 0"
            )
        return Vector2(components=(x, y))
    raise InvalidDowngrade(f"Cannot downgrade {describe(value)}; only Matrix3 and Vector3 downgrade")
