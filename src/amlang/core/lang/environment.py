"""
Lexical environments.

An environment is a chain of scopes linked by parent references only.
Scopes are never mutated once a binding is visible: ``let`` and calls
produce new child scopes, so closures that captured an older chain keep
seeing exactly what existed when they were created.
"""

from __future__ import annotations

from collections.abc import Mapping

from amlang.core.errors import RuntimeErrorKind, make_runtime_error
from amlang.core.lang.values import Value


class Environment:
    """One scope plus a link to the enclosing scope."""

    __slots__ = ("bindings", "parent")

    def __init__(
        self,
        bindings: Mapping[str, Value] | None = None,
        parent: Environment | None = None,
    ) -> None:
        self.bindings: dict[str, Value] = dict(bindings or {})
        self.parent = parent

    def __repr__(self) -> str:
        return f"Environment({sorted(self.bindings)}, depth={self.depth})"

    @property
    def depth(self) -> int:
        """Number of scopes in the chain, this one included."""
        count = 0
        env: Environment | None = self
        while env is not None:
            count += 1
            env = env.parent
        return count

    def _find(self, name: str) -> Environment | None:
        env: Environment | None = self
        while env is not None:
            if name in env.bindings:
                return env
            env = env.parent
        return None

    def lookup(self, name: str) -> Value:
        """
        Resolve a name, innermost scope first.

        Raises:
            EvaluationError: UnboundVariable if no scope binds the name
        """
        scope = self._find(name)
        if scope is None:
            raise make_runtime_error(
                RuntimeErrorKind.UNBOUND_VARIABLE, f"Unbound variable: {name}"
            )
        return scope.bindings[name]

    def extend(self, name: str, value: Value) -> Environment:
        """Return a child scope holding a single binding."""
        return Environment({name: value}, parent=self)

    def child(self, bindings: Mapping[str, Value]) -> Environment:
        """Return a child scope holding ``bindings``."""
        return Environment(bindings, parent=self)


def root_environment(prelude: bool = True) -> Environment:
    """Build a fresh root scope, optionally holding the builtin prelude."""
    if not prelude:
        return Environment()

    from amlang.core.lang.builtins import PRELUDE

    return Environment(PRELUDE)
