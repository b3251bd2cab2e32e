"""SharpScript: a tree-walking interpreter for a small dynamically-typed scripting language."""

import logging

from .common import ControlFlowSignal, Diagnostic, RunResult, ThrownError
from .lexer import Token, TokenType, tokenize
from .lib import Builtin, make_default_builtins
from .main import Interpreter
from .parser import ParseError, parse
from .scopes import Environment, ScopeError
from .values import (
    ArrayValue,
    BooleanValue,
    ClassValue,
    ErrorValue,
    FunctionValue,
    MapValue,
    NullValue,
    NumberValue,
    StringValue,
    Value,
    from_python,
    stringify,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "ArrayValue",
    "BooleanValue",
    "Builtin",
    "ClassValue",
    "ControlFlowSignal",
    "Diagnostic",
    "Environment",
    "ErrorValue",
    "FunctionValue",
    "Interpreter",
    "MapValue",
    "NullValue",
    "NumberValue",
    "ParseError",
    "RunResult",
    "ScopeError",
    "StringValue",
    "ThrownError",
    "Token",
    "TokenType",
    "Value",
    "from_python",
    "make_default_builtins",
    "parse",
    "stringify",
    "tokenize",
]
