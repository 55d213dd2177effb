"""
Engine configuration for Trinity.

Settings come from three layers, later layers winning:

1. Built-in defaults
2. The ``[engine]`` table of a ``trinity.toml`` file
3. ``TRINITY_*`` environment variables

Example ``trinity.toml``:

    [engine]
    max_nesting = 32
    max_depth = 150
    angle_unit = "radians"

Usage:
    from trinity.core.config import load_config

    config = load_config()              # ./trinity.toml if present
    config = load_config(Path("x.toml"))
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class AngleUnit(StrEnum):
    """Unit of the angle argument taken by the rotation built-ins."""

    DEGREES = "degrees"
    RADIANS = "radians"


DEFAULT_CONFIG_FILE = "trinity.toml"

# Ceilings that keep the recursive stages under the default
# interpreter recursion limit.
MAX_NESTING_CEILING = 96
MAX_DEPTH_CEILING = 250

_ENV_PREFIX = "TRINITY_"


@dataclass(frozen=True)
class EngineConfig:
    """Limits and conventions used by the parser and evaluator."""

    max_nesting: int = 64  # brackets, call arguments, exponents
    max_depth: int = 200  # AST height
    angle_unit: AngleUnit = AngleUnit.DEGREES


DEFAULT_CONFIG = EngineConfig()


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> EngineConfig:
    """Load engine configuration.

    Args:
        path: TOML file to read. Defaults to ``./trinity.toml``, which may be
            absent. An explicitly given path must exist.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        The resolved EngineConfig.

    Raises:
        FileNotFoundError: If an explicit ``path`` does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    data: dict[str, Any] = {}
    if path is None:
        default = Path(DEFAULT_CONFIG_FILE)
        if default.is_file():
            data = _read_engine_table(default)
    else:
        data = _read_engine_table(path)

    env = os.environ if environ is None else environ
    for field_name in ("max_nesting", "max_depth", "angle_unit"):
        env_value = env.get(f"{_ENV_PREFIX}{field_name.upper()}")
        if env_value is not None and env_value.strip():
            data[field_name] = env_value.strip()

    return _build_config(data)


def _read_engine_table(path: Path) -> dict[str, Any]:
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    engine = raw.get("engine", {})
    if not isinstance(engine, dict):
        logger.warning("Ignoring non-table [engine] entry in %s", path)
        return {}
    logger.debug("Loaded engine settings from %s", path)
    return dict(engine)


def _build_config(data: Mapping[str, Any]) -> EngineConfig:
    config = DEFAULT_CONFIG

    if "max_nesting" in data:
        value = _positive_int("max_nesting", data["max_nesting"], MAX_NESTING_CEILING)
        if value is not None:
            config = replace(config, max_nesting=value)

    if "max_depth" in data:
        value = _positive_int("max_depth", data["max_depth"], MAX_DEPTH_CEILING)
        if value is not None:
            config = replace(config, max_depth=value)

    if "angle_unit" in data:
        unit = str(data["angle_unit"]).lower().strip()
        if unit in ("deg", "degree", "degrees"):
            config = replace(config, angle_unit=AngleUnit.DEGREES)
        elif unit in ("rad", "radian", "radians"):
            config = replace(config, angle_unit=AngleUnit.RADIANS)
        else:
            logger.warning(
                "Unknown angle_unit '%s'. Using '%s'.", data["angle_unit"], DEFAULT_CONFIG.angle_unit
            )

    return config


def _positive_int(name: str, raw: Any, ceiling: int) -> int | None:
    """Coerce a setting to a positive int, clamped to ``ceiling``."""
    if isinstance(raw, bool):
        logger.warning("Invalid %s %r. Using the default.", name, raw)
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid %s %r. Using the default.", name, raw)
        return None
    if value < 1:
        logger.warning("%s must be positive, got %d. Using the default.", name, value)
        return None
    if value > ceiling:
        logger.warning("%s %d exceeds the ceiling %d. Clamping.", name, value, ceiling)
        return ceiling
    return value
