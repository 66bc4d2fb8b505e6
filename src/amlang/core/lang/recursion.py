"""
Host recursion limit handling.

Parsing and evaluation both recurse once per level of nesting in the
program. Both raise the interpreter's recursion limit while they run and
turn a ``RecursionError`` that still escapes into an AM error.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager


@contextmanager
def recursion_headroom(limit: int) -> Iterator[None]:
    """Raise the recursion limit to at least ``limit`` for the block, then restore it."""
    previous = sys.getrecursionlimit()
    if limit > previous:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)
