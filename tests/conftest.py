"""Shared pytest fixtures for amlang tests."""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def examples_dir() -> Path:
    """Return path to the bundled example programs."""
    return Path(__file__).parent.parent / "examples"


@pytest.fixture
def write_program(tmp_path: Path) -> Callable[..., Path]:
    """Write AM source to a file under tmp_path and return its path."""

    def _write(source: str, name: str = "prog.am") -> Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write
