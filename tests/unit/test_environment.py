"""Tests for session variable bindings."""

from __future__ import annotations

import logging

import pytest

from trinity.core.errors import NamingConventionViolation, UndefinedVariable
from trinity.core.expression_lang.environment import Environment, check_binding
from trinity.core.ir.values import IDENTITY2, IDENTITY3, Scalar, Vector2, Vector3

ONE = Scalar(value=1)
V = Vector2(components=(1.0, 0.0))


class TestBindings:
    def test_set_and_get(self, env: Environment) -> None:
        env.set("v", V)
        assert env.get("v") == V
        assert env.lookup("v") == V

    def test_get_unbound_is_none(self, env: Environment) -> None:
        assert env.get("missing") is None

    def test_lookup_unbound_raises(self, env: Environment) -> None:
        with pytest.raises(UndefinedVariable) as exc_info:
            env.lookup("missing")
        assert exc_info.value.name == "missing"

    def test_overwrite_with_other_variant(self, env: Environment) -> None:
        env.set("x", ONE)
        env.set("x", Vector3(components=(1.0, 2.0, 3.0)))
        assert env.get("x") == Vector3(components=(1.0, 2.0, 3.0))
        assert len(env) == 1

    def test_initial_bindings(self) -> None:
        env = Environment({"A": IDENTITY2, "x": ONE})
        assert env.names() == ["A", "x"]

    def test_initial_bindings_are_validated(self) -> None:
        with pytest.raises(NamingConventionViolation):
            Environment({"a": IDENTITY2})

    def test_environments_are_isolated(self) -> None:
        first, second = Environment(), Environment()
        first.set("x", ONE)
        assert "x" not in second


class TestNamingConvention:
    @pytest.mark.parametrize("name", ["A", "Rot", "M2", "ROT_A"])
    def test_uppercase_names_hold_matrices(self, name: str) -> None:
        check_binding(name, IDENTITY2)
        check_binding(name, IDENTITY3)
        for value in (ONE, V):
            with pytest.raises(NamingConventionViolation):
                check_binding(name, value)

    @pytest.mark.parametrize("name", ["a", "v", "_tmp", "angle_2", "_A"])
    def test_other_names_hold_scalars_and_vectors(self, name: str) -> None:
        check_binding(name, ONE)
        check_binding(name, V)
        with pytest.raises(NamingConventionViolation):
            check_binding(name, IDENTITY2)

    @pytest.mark.parametrize("name", ["", "1a", "a b", "x-y", "é"])
    def test_invalid_names(self, name: str) -> None:
        with pytest.raises(NamingConventionViolation):
            check_binding(name, ONE)

    @pytest.mark.parametrize("name", ["rot", "rotx"])
    def test_builtin_names_reserved(self, env: Environment, name: str) -> None:
        with pytest.raises(NamingConventionViolation):
            env.set(name, IDENTITY2)

    def test_rejected_binding_leaves_environment_unchanged(self, env: Environment) -> None:
        env.set("A", IDENTITY2)
        with pytest.raises(NamingConventionViolation):
            env.set("A", ONE)
        assert env.get("A") == IDENTITY2


class TestInspection:
    def test_names_are_sorted(self, env: Environment) -> None:
        env.set("b", ONE)
        env.set("B", IDENTITY2)
        env.set("a", ONE)
        assert env.names() == ["B", "a", "b"]
        assert list(env) == ["B", "a", "b"]

    def test_snapshot_is_a_copy(self, env: Environment) -> None:
        env.set("x", ONE)
        snapshot = env.snapshot()
        env.set("y", ONE)
        assert snapshot == {"x": ONE}

    def test_contains_and_len(self, env: Environment) -> None:
        assert len(env) == 0
        assert not env
        env.set("x", ONE)
        assert "x" in env
        assert "y" not in env
        assert len(env) == 1

    def test_reset(self, env: Environment, caplog: pytest.LogCaptureFixture) -> None:
        env.set("x", ONE)
        env.set("A", IDENTITY2)
        with caplog.at_level(logging.DEBUG, logger="trinity.core.expression_lang.environment"):
            env.reset()
        assert len(env) == 0
        assert env.get("x") is None
        assert "Resetting environment" in caplog.text

    def test_repr(self, env: Environment) -> None:
        env.set("x", ONE)
        assert repr(env) == "Environment(x)"
