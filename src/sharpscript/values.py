"""
Runtime values for the SharpScript interpreter.

Scalars are immutable and shared freely.  Arrays and maps are mutable, so
every read out of an environment or a container goes through `Value.copy()`,
which deep-copies them: a value obtained by reading a variable never changes
when the variable is later mutated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional

if TYPE_CHECKING:
    from .nodes import FunctionDecl, Lambda
    from .scopes import Environment

TYPE_NAMES = frozenset(
    {"number", "string", "boolean", "null", "array", "map", "function", "class", "error"}
)
UNKNOWN_TYPE = "unknown"


class Value:
    type_name: ClassVar[str] = "unknown"

    def copy(self) -> "Value":
        return self

    def to_python(self) -> Any:
        return self

    @property
    def is_control(self) -> bool:
        return False


@dataclass(frozen=True)
class NumberValue(Value):
    value: float
    type_name: ClassVar[str] = "number"

    def to_python(self) -> float:
        return self.value


@dataclass(frozen=True)
class StringValue(Value):
    value: str
    type_name: ClassVar[str] = "string"

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class BooleanValue(Value):
    value: bool
    type_name: ClassVar[str] = "boolean"

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True)
class NullValue(Value):
    type_name: ClassVar[str] = "null"

    def to_python(self) -> None:
        return None


@dataclass
class ArrayValue(Value):
    elements: List[Value] = field(default_factory=list)
    type_name: ClassVar[str] = "array"

    def copy(self) -> "ArrayValue":
        return ArrayValue([element.copy() for element in self.elements])

    def to_python(self) -> list:
        return [element.to_python() for element in self.elements]


@dataclass
class MapValue(Value):
    """Insertion-ordered string-keyed record."""

    entries: Dict[str, Value] = field(default_factory=dict)
    type_name: ClassVar[str] = "map"

    def copy(self) -> "MapValue":
        return MapValue({key: value.copy() for key, value in self.entries.items()})

    def to_python(self) -> dict:
        return {key: value.to_python() for key, value in self.entries.items()}


@dataclass(eq=False)
class FunctionValue(Value):
    """A closure: a function or lambda node plus its defining environment."""

    node: "FunctionDecl | Lambda"
    closure: "Environment"
    type_name: ClassVar[str] = "function"

    @property
    def name(self) -> str:
        return getattr(self.node, "name", "<lambda>")

    def copy(self) -> "FunctionValue":
        # Copies share the captured environment.
        return FunctionValue(self.node, self.closure)

    def __repr__(self) -> str:
        return f"<function {self.name}>"


@dataclass(eq=False)
class ClassValue(Value):
    name: str
    base: Optional[str]
    env: "Environment"
    type_name: ClassVar[str] = "class"

    def __repr__(self) -> str:
        return f"<class {self.name}>"


@dataclass(frozen=True)
class ErrorValue(Value):
    name: str = "Error"
    message: str = ""
    code: float = 0.0
    type_name: ClassVar[str] = "error"

    def get_field(self, key: str) -> Optional[Value]:
        if key == "name":
            return StringValue(self.name)
        if key == "message":
            return StringValue(self.message)
        if key == "code":
            return NumberValue(self.code)
        return None

    def __str__(self) -> str:
        return f"{self.name}: {self.message}" if self.message else self.name


# ----- control sentinels -----


class ControlValue(Value):
    @property
    def is_control(self) -> bool:
        return True


class BreakValue(ControlValue):
    type_name: ClassVar[str] = "break"

    def __repr__(self) -> str:
        return "BREAK"


class ContinueValue(ControlValue):
    type_name: ClassVar[str] = "continue"

    def __repr__(self) -> str:
        return "CONTINUE"


@dataclass(frozen=True)
class ReturnValue(ControlValue):
    value: Optional[Value] = None
    type_name: ClassVar[str] = "return"

    def unwrap(self) -> Value:
        return NULL if self.value is None else self.value


NULL = NullValue()
TRUE = BooleanValue(True)
FALSE = BooleanValue(False)
BREAK = BreakValue()
CONTINUE = ContinueValue()


def boolean(flag: bool) -> BooleanValue:
    return TRUE if flag else FALSE


def format_number(number: float) -> str:
    if math.isnan(number):
        return "nan"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if number == int(number) and abs(number) < 1e16:
        return str(int(number))
    return repr(number)


def stringify(value: Optional[Value]) -> str:
    """Render a value the way `system.print` and string `+` show it."""
    if value is None or isinstance(value, NullValue):
        return "null"
    if isinstance(value, NumberValue):
        return format_number(value.value)
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, BooleanValue):
        return "true" if value.value else "false"
    if isinstance(value, ArrayValue):
        return "[" + ", ".join(stringify(element) for element in value.elements) + "]"
    if isinstance(value, MapValue):
        inner = ", ".join(f"{key}: {stringify(item)}" for key, item in value.entries.items())
        return "{" + inner + "}"
    if isinstance(value, ErrorValue):
        return str(value)
    if isinstance(value, (FunctionValue, ClassValue)):
        return repr(value)
    return "null"


def from_python(obj: Any) -> Value:
    """Convert plain Python data (as produced by `to_python`) into a Value."""
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return boolean(obj)
    if isinstance(obj, (int, float)):
        return NumberValue(float(obj))
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, (list, tuple)):
        return ArrayValue([from_python(item) for item in obj])
    if isinstance(obj, dict):
        return MapValue({str(key): from_python(item) for key, item in obj.items()})
    raise TypeError(f"cannot convert {type(obj).__name__} to a SharpScript value")
