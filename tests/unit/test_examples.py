"""Run every bundled example program and check its output."""

from pathlib import Path

import pytest

from amlang.core.lang import render, run

EXPECTED_OUTPUTS: dict[str, list[str]] = {
    "add.am": ["5", "3", "5/6"],
    "describe.am": ["zero", "one", "many"],
    "factorial.am": ["120", "2432902008176640000"],
    "greeting.am": ["Hello world, the result is 5", "half is 1/2, pi is π"],
    "numbers.am": [
        "19",
        "1024",
        "0.5",
        "0.30000000000000004",
        "1/2",
        "1",
        "1.4142135623730951",
        "false",
        "true",
    ],
    "pipeline.am": ["7", "3"],
    "safediv.am": ["1/2", "∞", "-∞", "NaN"],
    "scoping.am": ["5", "3", "100"],
}


@pytest.mark.parametrize("name", sorted(EXPECTED_OUTPUTS))
def test_example_output(examples_dir: Path, name: str):
    """Test an example program prints what it documents."""
    source = (examples_dir / name).read_text(encoding="utf-8")
    outputs = [render(r.value) for r in run(source) if r.is_expression]
    assert outputs == EXPECTED_OUTPUTS[name]


def test_every_example_is_covered(examples_dir: Path):
    """Test no example program is left without expected output."""
    assert {p.name for p in examples_dir.glob("*.am")} == set(EXPECTED_OUTPUTS)
