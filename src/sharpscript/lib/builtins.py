"""
Default builtin registry.

Each builtin receives the interpreter, the *unevaluated* argument nodes and
the caller's environment, so it decides itself what to evaluate and when.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Mapping, Sequence

from ..common import ThrownError
from ..nodes import Node
from ..scopes import ScopeError, type_tag_accepts
from ..values import (
    NULL,
    TYPE_NAMES,
    UNKNOWN_TYPE,
    ArrayValue,
    ErrorValue,
    MapValue,
    NumberValue,
    StringValue,
    Value,
    from_python,
    stringify,
)
from . import docs
from .fileio import file_read, file_write

if TYPE_CHECKING:
    from ..main import Interpreter
    from ..scopes import Environment

BuiltinFunc = Callable[["Interpreter", Sequence[Node], "Environment"], Value]


@dataclass(frozen=True)
class Builtin:
    name: str
    func: BuiltinFunc
    min_args: int = 0

    def __call__(self, interp: "Interpreter", args: Sequence[Node], env: "Environment") -> Value:
        # host callables may hand back plain Python data (or None)
        return from_python(self.func(interp, args, env))


_DEFAULT_BUILTINS: Dict[str, Builtin] = {}


def _builtin(name: str, min_args: int = 0):
    def register(func: BuiltinFunc) -> BuiltinFunc:
        _DEFAULT_BUILTINS[name] = Builtin(name, func, min_args)
        return func

    return register


def _number_arg(interp: "Interpreter", node: Node, env: "Environment") -> float:
    value = interp.evaluate(node, env)
    return value.value if isinstance(value, NumberValue) else 0.0


def _string_arg(interp: "Interpreter", node: Node, env: "Environment") -> str | None:
    value = interp.evaluate(node, env)
    return value.value if isinstance(value, StringValue) else None


def _joined(interp: "Interpreter", args: Sequence[Node], env: "Environment") -> str:
    return " ".join(stringify(interp.evaluate(arg, env)) for arg in args)


# ----- output -----


@_builtin("system.print")
@_builtin("system.output")
def _print(interp, args, env):
    print(_joined(interp, args, env), file=interp.stdout)
    return NULL


@_builtin("system.error")
def _error(interp, args, env):
    print("Error: " + _joined(interp, args, env), file=interp.stderr)
    return NULL


@_builtin("system.warning")
def _warning(interp, args, env):
    print("Warning: " + _joined(interp, args, env), file=interp.stdout)
    return NULL


@_builtin("system.input")
def _input(interp, args, env):
    if args:
        interp.stdout.write(stringify(interp.evaluate(args[0], env)))
        interp.stdout.flush()
    line = interp.stdin.readline()
    return StringValue(line.rstrip("\r\n"))


@_builtin("system.help")
def _help(interp, args, env):
    topic = "help"
    if args:
        topic = _string_arg(interp, args[0], env) or "help"
    print(docs.get_topic(topic), file=interp.stdout)
    return NULL


# ----- math -----


def _unary_math(name: str, func: Callable[[float], float], zero_result: float = math.nan):
    def call(interp, args, env):
        x = _number_arg(interp, args[0], env)
        try:
            return NumberValue(func(x))
        except OverflowError:
            return NumberValue(math.inf)
        except ValueError:
            # Match C math: log(0) is -inf, other domain errors are nan.
            return NumberValue(zero_result if x == 0 else math.nan)

    _DEFAULT_BUILTINS[name] = Builtin(name, call, 1)


_unary_math("system.sin", math.sin)
_unary_math("system.cos", math.cos)
_unary_math("system.tan", math.tan)
_unary_math("system.asin", math.asin)
_unary_math("system.acos", math.acos)
_unary_math("system.atan", math.atan)
_unary_math("system.log", math.log10, -math.inf)
_unary_math("system.ln", math.log, -math.inf)
_unary_math("system.exp", math.exp)
_unary_math("system.sqrt", math.sqrt)


@_builtin("system.pow", min_args=2)
def _pow(interp, args, env):
    base = _number_arg(interp, args[0], env)
    exponent = _number_arg(interp, args[1], env)
    try:
        return NumberValue(math.pow(base, exponent))
    except OverflowError:
        return NumberValue(math.inf)
    except (ValueError, ZeroDivisionError):
        return NumberValue(math.inf if base == 0 and exponent < 0 else math.nan)


# ----- calculator memory -----


@_builtin("system.store", min_args=2)
def _store(interp, args, env):
    name = _string_arg(interp, args[0], env)
    value = interp.evaluate(args[1], env)
    if name is not None:
        interp.memory.put(name, value.copy())
    return NULL


@_builtin("system.recall", min_args=1)
def _recall(interp, args, env):
    name = _string_arg(interp, args[0], env)
    if name is None:
        return NULL
    value = interp.memory.lookup(name)
    return NULL if value is None else value


@_builtin("system.memclear")
def _memclear(interp, args, env):
    interp.memory.clear()
    return NULL


# ----- unit conversion -----

_CONVERSIONS: Dict[tuple[str, str], Callable[[float], float]] = {
    ("m", "km"): lambda v: v / 1000.0,
    ("km", "m"): lambda v: v * 1000.0,
    ("m", "mi"): lambda v: v / 1609.344,
    ("mi", "m"): lambda v: v * 1609.344,
    ("kg", "lb"): lambda v: v * 2.20462,
    ("lb", "kg"): lambda v: v / 2.20462,
    ("C", "F"): lambda v: v * 9.0 / 5.0 + 32.0,
    ("F", "C"): lambda v: (v - 32.0) * 5.0 / 9.0,
    ("C", "K"): lambda v: v + 273.15,
    ("K", "C"): lambda v: v - 273.15,
}


@_builtin("system.convert", min_args=3)
def _convert(interp, args, env):
    number = _number_arg(interp, args[0], env)
    source = _string_arg(interp, args[1], env) or ""
    target = _string_arg(interp, args[2], env) or ""
    conversion = _CONVERSIONS.get((source, target))
    if conversion is None:
        return NULL
    return NumberValue(conversion(number))


# ----- history -----


@_builtin("system.history.add", min_args=1)
def _history_add(interp, args, env):
    interp.history.append(interp.evaluate(args[0], env))
    return NULL


@_builtin("system.history.get")
def _history_get(interp, args, env):
    return ArrayValue([value.copy() for value in interp.history])


@_builtin("system.history.clear")
def _history_clear(interp, args, env):
    interp.history.clear()
    return NULL


# ----- reflection -----


@_builtin("system.len", min_args=1)
def _len(interp, args, env):
    value = interp.evaluate(args[0], env)
    if isinstance(value, StringValue):
        return NumberValue(float(len(value.value)))
    if isinstance(value, ArrayValue):
        return NumberValue(float(len(value.elements)))
    if isinstance(value, MapValue):
        return NumberValue(float(len(value.entries)))
    return NumberValue(0.0)


@_builtin("system.type", min_args=1)
def _type(interp, args, env):
    return StringValue(interp.evaluate(args[0], env).type_name)


@_builtin("system.annotate", min_args=2)
def _annotate(interp, args, env):
    name = _string_arg(interp, args[0], env)
    type_name = _string_arg(interp, args[1], env)
    if name is None or type_name is None:
        interp.report("type-mismatch", "system.annotate expects (name, type) strings")
        return NULL
    if type_name != UNKNOWN_TYPE and type_name not in TYPE_NAMES:
        interp.report("type-mismatch", f"Unknown type name: {type_name}")
        return NULL
    binding = env.resolve(name)
    if binding is None:
        interp.report("undefined-variable", f"Undefined variable: {name}")
        return NULL
    if not type_tag_accepts(type_name, binding.value):
        interp.report(
            "type-mismatch",
            f"Type mismatch for {name}: declared {type_name}, got {binding.value.type_name}",
        )
        return NULL
    try:
        env.set_type_tag(name, type_name)
    except ScopeError as exc:
        interp.report(exc.kind, str(exc))
    return NULL


# ----- errors -----


@_builtin("system.throw")
def _throw(interp, args, env):
    name = _string_arg(interp, args[0], env) if len(args) > 0 else None
    message = interp.evaluate(args[1], env) if len(args) > 1 else NULL
    code = _number_arg(interp, args[2], env) if len(args) > 2 else 0.0
    error = ErrorValue(
        name or "Error",
        "" if message is NULL else stringify(message),
        code,
    )
    raise ThrownError(error)


# ----- files -----

_DEFAULT_BUILTINS["file.read"] = Builtin("file.read", file_read, 1)
_DEFAULT_BUILTINS["file.write"] = Builtin("file.write", file_write, 1)


def make_default_builtins() -> Dict[str, Builtin]:
    return dict(_DEFAULT_BUILTINS)


def make_builtins(extra: Mapping[str, BuiltinFunc | Builtin] | None = None) -> Dict[str, Builtin]:
    """Default registry updated with host-supplied entries (plain callables are wrapped)."""
    table = make_default_builtins()
    for name, entry in (extra or {}).items():
        table[name] = entry if isinstance(entry, Builtin) else Builtin(name, entry)
    return table
