from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from .values import TYPE_NAMES, UNKNOWN_TYPE, Value


class ScopeError(Exception):
    """Base class for environment failures; the evaluator turns these into diagnostics."""

    kind = "scope"

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class NameNotFound(ScopeError):
    kind = "undeclared-assignment"

    def __init__(self, name: str):
        super().__init__(name, f"Assignment to undeclared variable: {name}")


class AlreadyDeclared(ScopeError):
    kind = "redeclaration"

    def __init__(self, name: str):
        super().__init__(name, f"Variable already declared: {name}")


class ConstViolation(ScopeError):
    kind = "const-violation"

    def __init__(self, name: str):
        super().__init__(name, f"Cannot assign to const variable: {name}")


class TypeTagMismatch(ScopeError):
    kind = "type-mismatch"

    def __init__(self, name: str, expected: str, actual: str):
        super().__init__(
            name, f"Type mismatch for {name}: declared {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


def type_tag_accepts(tag: Optional[str], value: Value) -> bool:
    if tag is None or tag == UNKNOWN_TYPE:
        return True
    return tag in TYPE_NAMES and tag == value.type_name


@dataclass
class Binding:
    value: Value
    is_const: bool = False
    type_tag: Optional[str] = None


class Environment:
    """
    One lexical scope.

    Names are unique within a scope; lookups fall back to the parent chain.
    Values are stored as given and handed out as copies by `lookup`.
    """

    def __init__(self, parent: "Environment | None" = None, *, name: str = "scope"):
        self.parent = parent
        self.name = name
        self._bindings: Dict[str, Binding] = {}

    def __repr__(self) -> str:
        return f"<Environment {self.name} ({len(self._bindings)} bindings)>"

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    # ----- queries -----

    def resolve(self, name: str) -> Optional[Binding]:
        """Return the nearest live binding for `name`, or None."""
        env: Environment | None = self
        while env is not None:
            binding = env._bindings.get(name)
            if binding is not None:
                return binding
            env = env.parent
        return None

    def has(self, name: str) -> bool:
        return self.resolve(name) is not None

    def has_local(self, name: str) -> bool:
        return name in self._bindings

    def lookup(self, name: str) -> Optional[Value]:
        binding = self.resolve(name)
        if binding is None:
            return None
        return binding.value.copy()

    def local_bindings(self) -> Iterator[tuple[str, Binding]]:
        return iter(list(self._bindings.items()))

    # ----- mutation -----

    def declare(
        self,
        name: str,
        value: Value,
        *,
        is_const: bool = False,
        type_tag: str | None = None,
    ) -> None:
        if name in self._bindings:
            raise AlreadyDeclared(name)
        if not type_tag_accepts(type_tag, value):
            raise TypeTagMismatch(name, type_tag, value.type_name)
        self._bindings[name] = Binding(value, is_const, type_tag)

    def set(self, name: str, value: Value) -> None:
        binding = self.resolve(name)
        if binding is None:
            raise NameNotFound(name)
        if binding.is_const:
            raise ConstViolation(name)
        if not type_tag_accepts(binding.type_tag, value):
            raise TypeTagMismatch(name, binding.type_tag, value.type_name)
        binding.value = value

    def put(self, name: str, value: Value) -> None:
        """Bind in this scope, replacing an existing local binding (parameters, memory)."""
        binding = self._bindings.get(name)
        if binding is None:
            self._bindings[name] = Binding(value)
            return
        if binding.is_const:
            raise ConstViolation(name)
        if not type_tag_accepts(binding.type_tag, value):
            raise TypeTagMismatch(name, binding.type_tag, value.type_name)
        binding.value = value

    def set_type_tag(self, name: str, type_tag: str) -> None:
        binding = self.resolve(name)
        if binding is None:
            raise NameNotFound(name)
        if not type_tag_accepts(type_tag, binding.value):
            raise TypeTagMismatch(name, type_tag, binding.value.type_name)
        binding.type_tag = type_tag

    def clear(self) -> None:
        self._bindings.clear()

    def to_python(self) -> Dict[str, Any]:
        return {name: binding.value.to_python() for name, binding in self._bindings.items()}
