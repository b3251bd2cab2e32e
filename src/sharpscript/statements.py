from __future__ import annotations

import logging
from typing import List

from . import nodes as n
from .common import HandlerFrame, ThrownError
from .scopes import Environment, ScopeError
from .values import (
    BREAK,
    CONTINUE,
    NULL,
    ArrayValue,
    BreakValue,
    ClassValue,
    ContinueValue,
    FunctionValue,
    MapValue,
    NumberValue,
    ReturnValue,
    StringValue,
    Value,
)

logger = logging.getLogger(__name__)


class StatementMixin:
    # ----- assignment -----

    def eval_Assign(self, node: n.Assign, env: Environment) -> Value:
        value = self.evaluate(node.value, env)
        op = node.op

        if op.is_declaration:
            try:
                env.declare(
                    node.name,
                    value,
                    is_const=op is n.AssignOp.CONST,
                    type_tag=node.type_name,
                )
            except ScopeError as exc:
                self.report_scope_error(exc)
            return NULL

        if op.is_compound:
            current = env.lookup(node.name)
            if current is not None:
                combined = self.numeric_compound(op.value[0], current, value)
                if combined is not None:
                    value = combined

        try:
            env.set(node.name, value)
        except ScopeError as exc:
            self.report_scope_error(exc)
        return NULL

    def eval_IndexAssign(self, node: n.IndexAssign, env: Environment) -> Value:
        indices = [self.evaluate(index, env) for index in node.indices]
        value = self.evaluate(node.value, env)

        binding = env.resolve(node.name)
        if binding is None:
            self.report("undefined-variable", f"Undefined variable: {node.name}")
            return NULL
        if binding.is_const:
            self.report("const-violation", f"Cannot assign to const variable: {node.name}")
            return NULL

        container = binding.value
        for index in indices[:-1]:
            container = self.slot_value(container, index)
            if container is None:
                self.report("type-mismatch", f"Cannot index into {node.name}")
                return NULL

        last = indices[-1]
        if node.op.is_compound:
            current = self.slot_value(container, last)
            if current is not None:
                combined = self.numeric_compound(node.op.value[0], current, value)
                if combined is not None:
                    value = combined

        if not self.store_index(container, last, value):
            self.report(
                "type-mismatch",
                f"Cannot store into {container.type_name} with {last.type_name} index",
            )
        return NULL

    # ----- control flow -----

    def eval_If(self, node: n.If, env: Environment) -> Value:
        if self.is_truthy(self.evaluate(node.condition, env)):
            return self.evaluate(node.then_block, env)
        if node.else_block is not None:
            return self.evaluate(node.else_block, env)
        return NULL

    def eval_While(self, node: n.While, env: Environment) -> Value:
        result: Value = NULL
        while self.is_truthy(self.evaluate(node.condition, env)):
            result = self.evaluate(node.body, env)
            if isinstance(result, BreakValue):
                return NULL
            if isinstance(result, ContinueValue):
                result = NULL
            elif isinstance(result, ReturnValue):
                return result
        return result

    def eval_For(self, node: n.For, env: Environment) -> Value:
        if node.init is not None:
            self.evaluate(node.init, env)

        result: Value = NULL
        while node.condition is None or self.is_truthy(self.evaluate(node.condition, env)):
            result = self.evaluate(node.body, env)
            if isinstance(result, BreakValue):
                return NULL
            if isinstance(result, ContinueValue):
                result = NULL
            elif isinstance(result, ReturnValue):
                return result
            if node.increment is not None:
                self.evaluate(node.increment, env)
        return result

    def eval_ForIn(self, node: n.ForIn, env: Environment) -> Value:
        collection = self.evaluate(node.collection, env)
        if isinstance(collection, ArrayValue):
            items: List[Value] = collection.elements
        elif isinstance(collection, MapValue):
            items = [
                MapValue({"key": StringValue(key), "value": value})
                for key, value in collection.entries.items()
            ]
        else:
            self.report(
                "bad-collection",
                f"for-in expects an array or map, got {collection.type_name}",
            )
            return NULL

        result: Value = NULL
        for item in items:
            try:
                env.put(node.var, item)
            except ScopeError as exc:
                return self.report_scope_error(exc)
            result = self.evaluate(node.body, env)
            if isinstance(result, BreakValue):
                return NULL
            if isinstance(result, ContinueValue):
                result = NULL
            elif isinstance(result, ReturnValue):
                return result
        return result

    def eval_Return(self, node: n.Return, env: Environment) -> Value:
        if node.value is None:
            return ReturnValue()
        return ReturnValue(self.evaluate(node.value, env))

    def eval_Break(self, node: n.Break, env: Environment) -> Value:
        return BREAK

    def eval_Continue(self, node: n.Continue, env: Environment) -> Value:
        return CONTINUE

    def eval_Block(self, node: n.Block, env: Environment) -> Value:
        result: Value = NULL
        for statement in node.statements:
            result = self.evaluate(statement, env)
            if result.is_control:
                return result
        return result

    eval_Program = eval_Block

    # ----- declarations -----

    def eval_FunctionDecl(self, node: n.FunctionDecl, env: Environment) -> Value:
        try:
            env.put(node.name, FunctionValue(node, env))
        except ScopeError as exc:
            self.report_scope_error(exc)
        return NULL

    def _evaluate_in(self, body: n.Node, scope: Environment) -> Value:
        saved = self.current
        self.current = scope
        try:
            return self.evaluate(body, scope)
        finally:
            self.current = saved

    def eval_Namespace(self, node: n.Namespace, env: Environment) -> Value:
        scope = Environment(env, name=f"namespace {node.name}")
        self._evaluate_in(node.body, scope)
        for name, binding in scope.local_bindings():
            try:
                env.declare(
                    f"{node.name}.{name}",
                    binding.value.copy(),
                    is_const=binding.is_const,
                    type_tag=binding.type_tag,
                )
            except ScopeError as exc:
                self.report_scope_error(exc)
        return NULL

    def eval_EnumDecl(self, node: n.EnumDecl, env: Environment) -> Value:
        next_value = 0.0
        for member in node.members:
            if member.value is not None:
                explicit = self.evaluate(member.value, env)
                if isinstance(explicit, NumberValue):
                    next_value = explicit.value
                else:
                    self.report(
                        "type-mismatch",
                        f"Enum value for {node.name}.{member.name} must be a number",
                    )
            try:
                env.declare(f"{node.name}.{member.name}", NumberValue(next_value), is_const=True)
            except ScopeError as exc:
                self.report_scope_error(exc)
            next_value += 1
        return NULL

    def eval_ClassDecl(self, node: n.ClassDecl, env: Environment) -> Value:
        scope = Environment(env, name=f"class {node.name}")
        self._evaluate_in(node.body, scope)
        try:
            env.put(node.name, ClassValue(node.name, node.base, scope))
        except ScopeError as exc:
            self.report_scope_error(exc)
        return NULL

    # ----- match / try -----

    def eval_Match(self, node: n.Match, env: Environment) -> Value:
        subject = self.evaluate(node.subject, env)
        for case in node.cases:
            if self.match_equals(subject, self.evaluate(case.pattern, env)):
                return self.evaluate(case.body, env)
        if node.default is not None:
            return self.evaluate(node.default, env)
        return NULL

    def eval_TryCatch(self, node: n.TryCatch, env: Environment) -> Value:
        frame = HandlerFrame(node, self.current, self.call_depth)
        self.handler_frames.append(frame)
        logger.debug("enter try (depth %d)", len(self.handler_frames))
        try:
            try:
                result = self.evaluate(node.try_block, env)
            finally:
                self.handler_frames.pop()
        except ThrownError as exc:
            # unwind to the state the try block was entered with
            self.current = frame.env
            self.call_depth = frame.call_depth
            if node.catch_block is None:
                logger.debug("no catch for %s; re-raising after finally", exc.error)
                self._run_finally(node, env)
                raise
            logger.debug("caught %s", exc.error)
            try:
                if node.error_var is not None:
                    try:
                        env.put(node.error_var, exc.error)
                    except ScopeError as scope_exc:
                        self.report_scope_error(scope_exc)
                result = self.evaluate(node.catch_block, env)
            finally:
                self._run_finally(node, env)
            return result
        self._run_finally(node, env)
        return result

    def _run_finally(self, node: n.TryCatch, env: Environment) -> None:
        if node.finally_block is not None:
            self.evaluate(node.finally_block, env)
