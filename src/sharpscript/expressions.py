from __future__ import annotations

import logging
from typing import Sequence

from . import nodes as n
from .common import ThrownError
from .scopes import Environment
from .values import (
    NULL,
    ArrayValue,
    ErrorValue,
    FunctionValue,
    MapValue,
    NumberValue,
    ReturnValue,
    StringValue,
    Value,
    boolean,
)

logger = logging.getLogger(__name__)


class ExpressionMixin:
    # ----- literals -----

    def eval_NumberLiteral(self, node: n.NumberLiteral, env: Environment) -> Value:
        return NumberValue(node.value)

    def eval_StringLiteral(self, node: n.StringLiteral, env: Environment) -> Value:
        return StringValue(node.value)

    def eval_BooleanLiteral(self, node: n.BooleanLiteral, env: Environment) -> Value:
        return boolean(node.value)

    def eval_NullLiteral(self, node: n.NullLiteral, env: Environment) -> Value:
        return NULL

    # ----- names and operators -----

    def eval_Identifier(self, node: n.Identifier, env: Environment) -> Value:
        value = self.resolve_name(node.name, env)
        if value is None:
            self.report("undefined-variable", f"Undefined variable: {node.name}")
            return NULL
        return value

    def eval_BinaryOp(self, node: n.BinaryOp, env: Environment) -> Value:
        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)
        return self.binary_op(node.op, left, right)

    def eval_UnaryOp(self, node: n.UnaryOp, env: Environment) -> Value:
        operand = self.evaluate(node.operand, env)
        if node.op == "!":
            return boolean(not self.is_truthy(operand))
        if node.op == "-":
            if isinstance(operand, NumberValue):
                return NumberValue(-operand.value)
            self.report("type-mismatch", f"Unary - expects a number, got {operand.type_name}")
            return NULL
        logger.debug("unknown unary operator %r", node.op)
        return NULL

    # ----- calls -----

    def eval_Call(self, node: n.Call, env: Environment) -> Value:
        builtin = self.builtins.get(node.name)
        if builtin is not None:
            if len(node.args) < builtin.min_args:
                self.report(
                    "arity",
                    f"{node.name} expects at least {builtin.min_args} argument(s), "
                    f"got {len(node.args)}",
                )
                return NULL
            return builtin(self, node.args, env)

        func = self.resolve_name(node.name, env)
        if not isinstance(func, FunctionValue):
            self.report("undefined-function", f"Undefined function: {node.name}")
            return NULL
        return self.call_function(func, node.args, env)

    def call_function(
        self, func: FunctionValue, arg_nodes: Sequence[n.Node], caller_env: Environment
    ) -> Value:
        """
        Invoke a closure.

        Arguments and parameter defaults are evaluated in the caller's
        environment; the body runs in a fresh scope whose parent is the
        closure's defining environment.  Only `return` yields a result.
        """
        params = func.node.params
        if len(arg_nodes) > len(params):
            self.report(
                "arity",
                f"{func.name} expects at most {len(params)} argument(s), got {len(arg_nodes)}",
            )

        call_env = Environment(func.closure, name=f"call {func.name}")
        for position, param in enumerate(params):
            if position < len(arg_nodes):
                value = self.evaluate(arg_nodes[position], caller_env)
            elif param.default is not None:
                value = self.evaluate(param.default, caller_env)
            else:
                value = NULL
            call_env.put(param.name, value)

        if self.call_depth >= self.max_call_depth:
            message = f"maximum call depth {self.max_call_depth} exceeded in {func.name}"
            raise ThrownError(ErrorValue("StackOverflow", message))

        saved = self.current
        self.current = call_env
        self.call_depth += 1
        try:
            result = self.evaluate(func.node.body, call_env)
        finally:
            self.current = saved
            self.call_depth -= 1

        if isinstance(result, ReturnValue):
            return result.unwrap()
        return NULL

    # ----- collections -----

    def eval_ArrayLiteral(self, node: n.ArrayLiteral, env: Environment) -> Value:
        return ArrayValue([self.evaluate(element, env) for element in node.elements])

    def eval_MapLiteral(self, node: n.MapLiteral, env: Environment) -> Value:
        entries = {}
        for key_node, value_node in zip(node.keys, node.values):
            key = self.evaluate(key_node, env)
            value = self.evaluate(value_node, env)
            if not isinstance(key, StringValue):
                self.report("type-mismatch", f"Map keys must be strings, got {key.type_name}")
                continue
            entries[key.value] = value
        return MapValue(entries)

    def eval_Index(self, node: n.Index, env: Environment) -> Value:
        target = self.evaluate(node.target, env)
        index = self.evaluate(node.index, env)
        return self.index_value(target, index)

    # ----- functions -----

    def eval_Lambda(self, node: n.Lambda, env: Environment) -> Value:
        return FunctionValue(node, env)

