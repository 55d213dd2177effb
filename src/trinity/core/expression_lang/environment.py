"""
Variable bindings for a Trinity session.

An Environment lives for a whole session and is mutated in place by
assignments. Names follow a fixed convention:

- ``A``, ``Rot``, ``M2``: uppercase-leading names hold matrices
- ``v``, ``angle``, ``_tmp``: every other name holds scalars and vectors
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping

from trinity.core.errors import NamingConventionViolation, UndefinedVariable
from trinity.core.expression_lang.builtins import BUILTIN_NAMES
from trinity.core.ir.expressions import is_matrix_name
from trinity.core.ir.values import MATRIX_TYPES, Value, describe

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def check_binding(name: str, value: Value) -> None:
    """Check that ``value`` may be bound to ``name``.

    Raises:
        NamingConventionViolation: If the name is not an identifier, is a
            built-in function name, or the value variant does not match the
            case of the name.
    """
    if not _NAME_RE.fullmatch(name):
        raise NamingConventionViolation(f"'{name}' is not a valid variable name")
    if name in BUILTIN_NAMES:
        raise NamingConventionViolation(f"'{name}' is a built-in function and cannot be assigned")

    is_matrix = isinstance(value, MATRIX_TYPES)
    if is_matrix_name(name) and not is_matrix:
        raise NamingConventionViolation(
            f"'{name}' starts with an uppercase letter and can only hold a matrix, "
            f"got {describe(value)}"
        )
    if not is_matrix_name(name) and is_matrix:
        raise NamingConventionViolation(
            f"'{name}' can only hold a scalar or vector; "
            f"matrix names start with an uppercase letter"
        )


class Environment:
    """Mutable mapping of variable names to values.

    Example:
        >>> env = Environment()
        >>> env.set("v", Vector2(components=(1.0, 0.0)))
        >>> "v" in env
        True
    """

    def __init__(self, bindings: Mapping[str, Value] | None = None) -> None:
        self._bindings: dict[str, Value] = {}
        for name, value in (bindings or {}).items():
            self.set(name, value)

    def get(self, name: str) -> Value | None:
        """Look up a binding, or None if ``name`` is unbound."""
        return self._bindings.get(name)

    def lookup(self, name: str) -> Value:
        """Look up a binding that must exist.

        Raises:
            UndefinedVariable: If ``name`` is not bound.
        """
        value = self._bindings.get(name)
        if value is None:
            raise UndefinedVariable(name)
        return value

    def set(self, name: str, value: Value) -> None:
        """Bind ``name`` to ``value``, replacing any earlier binding.

        Raises:
            NamingConventionViolation: See :func:`check_binding`.
        """
        check_binding(name, value)
        self._bindings[name] = value

    def reset(self) -> None:
        """Drop every binding."""
        logger.debug("Resetting environment (%d bindings)", len(self._bindings))
        self._bindings.clear()

    def names(self) -> list[str]:
        """Bound names in sorted order."""
        return sorted(self._bindings)

    def snapshot(self) -> dict[str, Value]:
        """Copy of the current bindings. Values are immutable."""
        return dict(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __repr__(self) -> str:
        return f"Environment({', '.join(self.names())})"
