"""
Built-in functions for the Trinity expression language.

The set is closed: there are no user-defined functions. The names are
reserved words, which the tokenizer emits as FUNCTION tokens.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from trinity.core.config import AngleUnit
from trinity.core.errors import InvalidCall
from trinity.core.ir.values import Scalar, Value, describe, value_from_array


@dataclass(frozen=True)
class Builtin:
    """A built-in function taking scalar angle arguments."""

    name: str
    arity: int
    func: Callable[[float], Value]
    summary: str


def _trig(angle: float) -> tuple[float, float]:
    with np.errstate(all="ignore"):
        return float(np.cos(angle)), float(np.sin(angle))


def _rot(angle: float) -> Value:
    c, s = _trig(angle)
    return value_from_array(np.array([[c, -s], [s, c]]))


def _rotx(angle: float) -> Value:
    c, s = _trig(angle)
    return value_from_array(np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]]))


def _roty(angle: float) -> Value:
    c, s = _trig(angle)
    return value_from_array(np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]]))


def _rotz(angle: float) -> Value:
    c, s = _trig(angle)
    return value_from_array(np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]]))


BUILTINS: dict[str, Builtin] = {
    "rot": Builtin("rot", 1, _rot, "counter-clockwise 2D rotation"),
    "rotx": Builtin("rotx", 1, _rotx, "3D rotation about the x axis"),
    "roty": Builtin("roty", 1, _roty, "3D rotation about the y axis"),
    "rotz": Builtin("rotz", 1, _rotz, "3D rotation about the z axis"),
}

BUILTIN_NAMES = frozenset(BUILTINS)


def check_arity(name: str, arg_count: int) -> Builtin:
    """Look up a built-in and check how many arguments it was given.

    Raises:
        InvalidCall: If the function is unknown or the count is wrong.
    """
    builtin = BUILTINS.get(name)
    if builtin is None:
        raise InvalidCall(f"Unknown function: {name}()")
    if arg_count != builtin.arity:
        plural = "argument" if builtin.arity == 1 else "arguments"
        raise InvalidCall(
            f"{name}() takes exactly {builtin.arity} {plural}, got {arg_count}"
        )
    return builtin


def call_builtin(builtin: Builtin, args: list[Value], angle_unit: AngleUnit) -> Value:
    """Apply a built-in to already-evaluated arguments.

    Raises:
        InvalidCall: If an argument is not a scalar.
    """
    for index, arg in enumerate(args, start=1):
        if not isinstance(arg, Scalar):
            raise InvalidCall(
                f"{builtin.name}() argument {index} must be a Scalar angle, got {describe(arg)}"
            )
    angle = args[0].value  # type: ignore[union-attr]  # checked above
    if angle_unit == AngleUnit.DEGREES:
        angle = float(np.radians(angle))
    return builtin.func(angle)
