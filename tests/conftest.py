"""Shared pytest fixtures for Trinity tests."""

import pytest

from trinity.core.expression_lang import Environment
from trinity.core.ir.values import Matrix2, Vector2


@pytest.fixture
def env() -> Environment:
    """Return an empty session environment."""
    return Environment()


@pytest.fixture
def quarter_turn_env() -> Environment:
    """Return an environment with a 90 degree rotation A and a unit vector v."""
    return Environment(
        {
            "A": Matrix2(rows=((0.0, -1.0), (1.0, 0.0))),
            "v": Vector2(components=(1.0, 0.0)),
        }
    )
