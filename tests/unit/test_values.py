"""Tests for the Trinity value model and its algebra."""

from __future__ import annotations

import math

import numpy as np
import pytest
from pydantic import ValidationError

from trinity.core.errors import (
    DimensionMismatch,
    DivisionByZero,
    InvalidDowngrade,
    InvalidPower,
    InvalidUpgrade,
    SingularMatrix,
    TypeMismatch,
)
from trinity.core.ir import values
from trinity.core.ir.values import (
    IDENTITY2,
    IDENTITY3,
    Matrix2,
    Matrix3,
    Scalar,
    ValueKind,
    Vector2,
    Vector3,
    format_number,
    value_from_array,
)

M = Matrix2(rows=((1.0, 2.0), (3.0, 4.0)))
V2 = Vector2(components=(1.0, 2.0))
V3 = Vector3(components=(1.0, 2.0, 3.0))


class TestVariants:
    """Value variants are immutable plain data."""

    def test_kinds_and_dimensions(self) -> None:
        assert (Scalar(value=1).kind, Scalar.dimension) == (ValueKind.SCALAR, None)
        assert (V2.kind, V2.dimension) == (ValueKind.VECTOR2, 2)
        assert (V3.kind, V3.dimension) == (ValueKind.VECTOR3, 3)
        assert (M.kind, M.dimension) == (ValueKind.MATRIX2, 2)
        assert (IDENTITY3.kind, IDENTITY3.dimension) == (ValueKind.MATRIX3, 3)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            V2.components = (0.0, 0.0)  # type: ignore[misc]

    def test_wrong_arity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Vector2(components=(1.0, 2.0, 3.0))  # type: ignore[arg-type]

    def test_structural_equality(self) -> None:
        assert Matrix2(rows=((1, 2), (3, 4))) == M
        assert Vector2(components=(1.0, 2.0)) != Vector3(components=(1.0, 2.0, 0.0))

    def test_to_array(self) -> None:
        np.testing.assert_array_equal(M.to_array(), np.array([[1.0, 2.0], [3.0, 4.0]]))
        assert V3.to_array().shape == (3,)
        assert Scalar(value=2.5).to_array().shape == ()

    def test_str_uses_literal_syntax(self) -> None:
        assert str(M) == "[1 2; 3 4]"
        assert str(V2) == "[1; 2]"
        assert str(Scalar(value=0.5)) == "0.5"
        assert str(IDENTITY3) == "[1 0 0; 0 1 0; 0 0 1]"


class TestFormatNumber:
    @pytest.mark.parametrize(
        ("value", "text"),
        [
            (3.0, "3"),
            (-0.0, "0"),
            (0.25, "0.25"),
            (1e20, "1e+20"),
            (math.inf, "inf"),
        ],
    )
    def test_format(self, value: float, text: str) -> None:
        assert format_number(value) == text

    def test_nan(self) -> None:
        assert format_number(math.nan) == "nan"


class TestValueFromArray:
    def test_shapes(self) -> None:
        assert value_from_array(np.array(2.0)) == Scalar(value=2.0)
        assert value_from_array(np.array([1.0, 2.0])) == V2
        assert value_from_array(np.array([1.0, 2.0, 3.0])) == V3
        assert value_from_array(np.eye(2)) == IDENTITY2
        assert value_from_array(np.eye(3)) == IDENTITY3

    def test_unsupported_shape(self) -> None:
        with pytest.raises(DimensionMismatch):
            value_from_array(np.zeros((2, 3)))


class TestAddSub:
    def test_add_same_variant(self) -> None:
        assert values.add(M, IDENTITY2) == Matrix2(rows=((2.0, 2.0), (3.0, 5.0)))
        assert values.add(Scalar(value=1), Scalar(value=2)) == Scalar(value=3)

    def test_sub_same_variant(self) -> None:
        assert values.sub(V3, V3) == Vector3(components=(0.0, 0.0, 0.0))

    @pytest.mark.parametrize(
        ("left", "right"),
        [(Scalar(value=3), M), (V2, V3), (M, IDENTITY3), (V2, M)],
    )
    def test_mixed_variants(self, left, right) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(TypeMismatch):
            values.add(left, right)
        with pytest.raises(TypeMismatch):
            values.sub(left, right)


class TestMul:
    def test_scalar_scales_either_side(self) -> None:
        two = Scalar(value=2)
        assert values.mul(two, V2) == Vector2(components=(2.0, 4.0))
        assert values.mul(M, two) == Matrix2(rows=((2.0, 4.0), (6.0, 8.0)))
        assert values.mul(two, two) == Scalar(value=4)

    def test_matrix_composition(self) -> None:
        swap = Matrix2(rows=((0.0, 1.0), (1.0, 0.0)))
        assert values.mul(M, swap) == Matrix2(rows=((2.0, 1.0), (4.0, 3.0)))
        assert values.mul(swap, M) == Matrix2(rows=((3.0, 4.0), (1.0, 2.0)))

    def test_matrix_applied_to_vector(self) -> None:
        assert values.mul(M, V2) == Vector2(components=(5.0, 11.0))
        assert values.mul(IDENTITY3, V3) == V3

    @pytest.mark.parametrize(
        ("left", "right"),
        [(M, IDENTITY3), (M, V3), (IDENTITY3, V2), (V2, M), (V2, V2), (V3, V3)],
    )
    def test_dimension_mismatch(self, left, right) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(DimensionMismatch):
            values.mul(left, right)


class TestDiv:
    def test_divide_by_scalar(self) -> None:
        assert values.div(V2, Scalar(value=2)) == Vector2(components=(0.5, 1.0))
        assert values.div(Scalar(value=1), Scalar(value=4)) == Scalar(value=0.25)

    @pytest.mark.parametrize("zero", [0.0, -0.0])
    def test_division_by_zero(self, zero: float) -> None:
        with pytest.raises(DivisionByZero):
            values.div(M, Scalar(value=zero))

    def test_non_scalar_divisor(self) -> None:
        with pytest.raises(TypeMismatch):
            values.div(Scalar(value=1), V2)
        with pytest.raises(TypeMismatch):
            values.div(M, M)

    def test_tiny_divisor_overflows_quietly(self) -> None:
        result = values.div(Scalar(value=1e308), Scalar(value=1e-308))
        assert isinstance(result, Scalar)
        assert math.isinf(result.value)


class TestNeg:
    def test_negation(self) -> None:
        assert values.neg(V2) == Vector2(components=(-1.0, -2.0))
        assert values.neg(Scalar(value=3)) == Scalar(value=-3)


class TestPower:
    def test_scalar_power(self) -> None:
        assert values.power(Scalar(value=2), Scalar(value=10)) == Scalar(value=1024)

    def test_scalar_power_nan_flows_through(self) -> None:
        result = values.power(Scalar(value=-8), Scalar(value=0.5))
        assert isinstance(result, Scalar)
        assert math.isnan(result.value)

    def test_matrix_power(self) -> None:
        base = Matrix2(rows=((1.0, 2.0), (3.0, 2.0)))
        assert values.power(base, Scalar(value=3)) == Matrix2(rows=((25.0, 26.0), (39.0, 38.0)))

    def test_zero_power_is_identity(self) -> None:
        assert values.power(M, Scalar(value=0)) == IDENTITY2

    def test_nearly_integral_exponent(self) -> None:
        assert values.power(M, Scalar(value=2 + 1e-12)) == values.mul(M, M)

    def test_negative_power_inverts(self) -> None:
        diag = Matrix2(rows=((2.0, 0.0), (0.0, 4.0)))
        assert values.power(diag, Scalar(value=-1)) == Matrix2(rows=((0.5, 0.0), (0.0, 0.25)))

    def test_singular_matrix(self) -> None:
        with pytest.raises(SingularMatrix):
            values.power(Matrix2(rows=((1.0, 2.0), (2.0, 4.0))), Scalar(value=-1))

    @pytest.mark.parametrize("exponent", [1.5, math.inf, math.nan])
    def test_invalid_matrix_exponent(self, exponent: float) -> None:
        with pytest.raises(InvalidPower):
            values.power(IDENTITY2, Scalar(value=exponent))

    def test_vector_base(self) -> None:
        with pytest.raises(TypeMismatch):
            values.power(V2, Scalar(value=2))

    def test_non_scalar_exponent(self) -> None:
        with pytest.raises(TypeMismatch):
            values.power(Scalar(value=2), V2)


class TestUpgradeDowngrade:
    def test_upgrade_matrix(self) -> None:
        assert values.upgrade(M) == Matrix3(
            rows=((1.0, 2.0, 0.0), (3.0, 4.0, 0.0), (0.0, 0.0, 1.0))
        )

    def test_upgrade_vector(self) -> None:
        assert values.upgrade(V2) == Vector3(components=(1.0, 2.0, 0.0))

    @pytest.mark.parametrize("value", [Scalar(value=1), V3, IDENTITY3])
    def test_invalid_upgrade(self, value) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(InvalidUpgrade):
            values.upgrade(value)

    def test_downgrade_inverts_upgrade(self) -> None:
        assert values.downgrade(values.upgrade(M)) == M
        assert values.downgrade(values.upgrade(V2)) == V2

    @pytest.mark.parametrize(
        "rows",
        [
            ((1.0, 2.0, 5.0), (3.0, 4.0, 0.0), (0.0, 0.0, 1.0)),  # translation column
            ((1.0, 2.0, 0.0), (3.0, 4.0, 0.0), (0.0, 1.0, 1.0)),  # third row
            ((1.0, 2.0, 0.0), (3.0, 4.0, 0.0), (0.0, 0.0, 2.0)),  # corner
            ((1.0, 2.0, 0.0), (3.0, 4.0, 0.0), (0.0, 0.0, 1.0 + 1e-15)),  # exact check
        ],
    )
    def test_invalid_matrix_downgrade(self, rows) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(InvalidDowngrade):
            values.downgrade(Matrix3(rows=rows))

    def test_invalid_vector_downgrade(self) -> None:
        with pytest.raises(InvalidDowngrade):
            values.downgrade(Vector3(components=(1.0, 2.0, 1.0)))

    @pytest.mark.parametrize("value", [Scalar(value=1), V2, M])
    def test_downgrade_of_2d_value(self, value) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(InvalidDowngrade):
            values.downgrade(value)
