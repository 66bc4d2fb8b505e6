"""
Interpreter configuration loaded from ``am.toml``.

Example::

    [interpreter]
    max_call_depth = 512
    prelude = true
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

from amlang.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "am.toml"


@dataclass(frozen=True)
class InterpreterConfig:
    """Settings that change how a program is evaluated."""

    max_call_depth: int = 256  # nested algorithm calls before StackOverflow
    prelude: bool = True  # bind abs, sqrt and e in the root environment


def load_config(path: Path) -> InterpreterConfig:
    """
    Load interpreter settings from a TOML file.

    Args:
        path: Path to an ``am.toml`` file

    Returns:
        Parsed configuration; missing keys keep their defaults

    Raises:
        ConfigError: If the file is not valid TOML or holds invalid values
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    section = data.get("interpreter", {})
    known = {f.name for f in fields(InterpreterConfig)}
    for key in section:
        if key not in known:
            logger.warning("Ignoring unknown interpreter setting %r in %s", key, path)

    max_call_depth = section.get("max_call_depth", InterpreterConfig.max_call_depth)
    if not isinstance(max_call_depth, int) or isinstance(max_call_depth, bool):
        raise ConfigError(f"max_call_depth must be an integer, got {max_call_depth!r}")
    if max_call_depth <= 0:
        raise ConfigError(f"max_call_depth must be positive, got {max_call_depth}")

    prelude = section.get("prelude", InterpreterConfig.prelude)
    if not isinstance(prelude, bool):
        raise ConfigError(f"prelude must be true or false, got {prelude!r}")

    config = InterpreterConfig(max_call_depth=max_call_depth, prelude=prelude)
    logger.debug("Loaded %s from %s", config, path)
    return config


def find_config(start: Path) -> Path | None:
    """Return ``start/am.toml`` if it exists."""
    candidate = start / CONFIG_FILENAME
    if candidate.is_file():
        return candidate
    return None
