"""Version lookup for amlang."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION = "amlang"

# Present in a source checkout, absent once installed as a wheel
_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _checkout_version(pyproject: Path) -> str | None:
    if not pyproject.is_file():
        return None
    try:
        project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {})
    except tomllib.TOMLDecodeError:
        return None
    if project.get("name") != DISTRIBUTION:
        return None
    return project.get("version")


def get_version(pyproject: Path = _PYPROJECT) -> str:
    """Version of the checkout being run, else of the installed distribution."""
    found = _checkout_version(pyproject)
    if found is not None:
        return found
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        return "0.0.0"
