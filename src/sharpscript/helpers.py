from __future__ import annotations

import math
import operator
from typing import Callable, Dict, Optional

from .scopes import Environment, ScopeError
from .values import (
    FALSE,
    NULL,
    ArrayValue,
    BooleanValue,
    ClassValue,
    ErrorValue,
    MapValue,
    NullValue,
    NumberValue,
    StringValue,
    Value,
    boolean,
    stringify,
)


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _modulo(a: float, b: float) -> float:
    # C fmod: sign follows the dividend, x % 0 and inf % x are nan.
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    return math.fmod(a, b)


_ARITHMETIC: Dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _divide,
    "%": _modulo,
}

_COMPARISON: Dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}

_PRIMITIVES = (NumberValue, StringValue, BooleanValue)


class HelperMixin:
    # ----- diagnostics -----

    def report_scope_error(self, exc: ScopeError) -> Value:
        self.report(exc.kind, str(exc))
        return NULL

    # ----- truthiness / equality -----

    @staticmethod
    def is_truthy(value: Optional[Value]) -> bool:
        if value is None or isinstance(value, NullValue):
            return False
        if isinstance(value, BooleanValue):
            return value.value
        if isinstance(value, NumberValue):
            return value.value != 0
        if isinstance(value, StringValue):
            return value.value != ""
        return True

    @staticmethod
    def values_equal(left: Value, right: Value) -> bool:
        """`==`: only matching primitive kinds compare, by value."""
        for kind in _PRIMITIVES:
            if isinstance(left, kind) and isinstance(right, kind):
                return left.value == right.value
        return False

    def match_equals(self, subject: Value, pattern: Value) -> bool:
        if isinstance(subject, _PRIMITIVES):
            return self.values_equal(subject, pattern)
        return subject is pattern

    # ----- operators -----

    def binary_op(self, op: str, left: Value, right: Value) -> Value:
        if op == "+" and (isinstance(left, StringValue) or isinstance(right, StringValue)):
            return StringValue(stringify(left) + stringify(right))
        if op == "==":
            return boolean(self.values_equal(left, right))
        if op == "!=":
            return boolean(not self.values_equal(left, right))
        if op == "&&":
            return boolean(self.is_truthy(left) and self.is_truthy(right))
        if op == "||":
            return boolean(self.is_truthy(left) or self.is_truthy(right))

        arithmetic = _ARITHMETIC.get(op)
        comparison = _COMPARISON.get(op)
        if arithmetic is None and comparison is None:
            self.report("type-mismatch", f"Unknown operator: {op}")
            return NULL
        if not (isinstance(left, NumberValue) and isinstance(right, NumberValue)):
            self.report(
                "type-mismatch",
                f"Operator {op} expects numbers, got {left.type_name} and {right.type_name}",
            )
            return NULL if arithmetic is not None else FALSE
        if arithmetic is not None:
            return NumberValue(arithmetic(left.value, right.value))
        return boolean(comparison(left.value, right.value))

    def numeric_compound(self, op: str, current: Value, operand: Value) -> Optional[Value]:
        """`x op= y` when both sides are numbers; None means store the operand as-is."""
        if isinstance(current, NumberValue) and isinstance(operand, NumberValue):
            return NumberValue(_ARITHMETIC[op](current.value, operand.value))
        return None

    # ----- names, fields, indexing -----

    @staticmethod
    def get_field(value: Value, key: str) -> Optional[Value]:
        if isinstance(value, MapValue):
            return value.entries.get(key)
        if isinstance(value, ErrorValue):
            return value.get_field(key)
        if isinstance(value, ClassValue):
            return value.env.lookup(key)
        return None

    def resolve_name(self, name: str, env: Environment) -> Optional[Value]:
        """
        Look `name` up through the scope chain.

        A dotted name that is not bound verbatim falls back to the longest
        bound prefix, reading the remaining segments as fields of its value.
        """
        value = env.lookup(name)
        if value is not None or "." not in name:
            return value
        parts = name.split(".")
        for cut in range(len(parts) - 1, 0, -1):
            base = env.lookup(".".join(parts[:cut]))
            if base is None:
                continue
            for key in parts[cut:]:
                base = self.get_field(base, key)
                if base is None:
                    return None
            return base.copy()
        return None

    @staticmethod
    def _position(index: Value, length: int) -> Optional[int]:
        if not isinstance(index, NumberValue) or not math.isfinite(index.value):
            return None
        position = int(index.value)
        if 0 <= position < length:
            return position
        return None

    def index_value(self, target: Value, index: Value) -> Value:
        if isinstance(target, ArrayValue):
            position = self._position(index, len(target.elements))
            if position is not None:
                return target.elements[position].copy()
        elif isinstance(target, MapValue) and isinstance(index, StringValue):
            item = target.entries.get(index.value)
            if item is not None:
                return item.copy()
        elif isinstance(target, StringValue):
            position = self._position(index, len(target.value))
            if position is not None:
                return StringValue(target.value[position])
        return NULL

    def store_index(self, container: Value, index: Value, value: Value) -> bool:
        """Write into an array slot or map key in place; False if not addressable."""
        if isinstance(container, ArrayValue):
            position = self._position(index, len(container.elements))
            if position is None:
                return False
            container.elements[position] = value
            return True
        if isinstance(container, MapValue) and isinstance(index, StringValue):
            container.entries[index.value] = value
            return True
        return False

    def slot_value(self, container: Value, index: Value) -> Optional[Value]:
        """The live (uncopied) element of a container, for in-place index stores."""
        if isinstance(container, ArrayValue):
            position = self._position(index, len(container.elements))
            return None if position is None else container.elements[position]
        if isinstance(container, MapValue) and isinstance(index, StringValue):
            return container.entries.get(index.value)
        return None
