"""
AST node definitions for SharpScript.

Nodes are frozen dataclasses; composite nodes hold their children in tuples,
so a tree is immutable once the parser has built it.  The evaluator
dispatches on the class name (``eval_<ClassName>``).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple


class AssignOp(enum.Enum):
    SET = "="
    ADD = "+="
    SUB = "-="
    MUL = "*="
    DIV = "/="
    MOD = "%="
    INSERT = "&insert"
    CONST = "const"

    @property
    def is_declaration(self) -> bool:
        return self in (AssignOp.INSERT, AssignOp.CONST)

    @property
    def is_compound(self) -> bool:
        return self in (AssignOp.ADD, AssignOp.SUB, AssignOp.MUL, AssignOp.DIV, AssignOp.MOD)


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""


# ----- literals -----


@dataclass(frozen=True)
class NumberLiteral(Node):
    value: float


@dataclass(frozen=True)
class StringLiteral(Node):
    value: str


@dataclass(frozen=True)
class BooleanLiteral(Node):
    value: bool


@dataclass(frozen=True)
class NullLiteral(Node):
    pass


# ----- expressions -----


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class BinaryOp(Node):
    op: str  # operator symbol, e.g. "+", "==", "&&"
    left: Node
    right: Node


@dataclass(frozen=True)
class UnaryOp(Node):
    op: str  # "!" or "-"
    operand: Node


@dataclass(frozen=True)
class Call(Node):
    name: str
    args: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class ArrayLiteral(Node):
    elements: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class MapLiteral(Node):
    keys: Tuple[Node, ...] = ()
    values: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Index(Node):
    target: Node
    index: Node


@dataclass(frozen=True)
class Param:
    name: str
    default: Optional[Node] = None


@dataclass(frozen=True)
class Lambda(Node):
    params: Tuple[Param, ...] = ()
    body: Node = field(default_factory=lambda: Block())


# ----- statements -----


@dataclass(frozen=True)
class Assign(Node):
    name: str
    value: Node
    op: AssignOp = AssignOp.SET
    type_name: Optional[str] = None


@dataclass(frozen=True)
class IndexAssign(Node):
    """``name[i][j] op= value``: stores into the bound container in place."""

    name: str
    indices: Tuple[Node, ...]
    value: Node
    op: AssignOp = AssignOp.SET


@dataclass(frozen=True)
class If(Node):
    condition: Node
    then_block: Node
    else_block: Optional[Node] = None


@dataclass(frozen=True)
class While(Node):
    condition: Node
    body: Node


@dataclass(frozen=True)
class For(Node):
    init: Optional[Node]
    condition: Optional[Node]
    increment: Optional[Node]
    body: Node


@dataclass(frozen=True)
class ForIn(Node):
    var: str
    collection: Node
    body: Node


@dataclass(frozen=True)
class FunctionDecl(Node):
    name: str
    params: Tuple[Param, ...] = ()
    body: Node = field(default_factory=lambda: Block())


@dataclass(frozen=True)
class Return(Node):
    value: Optional[Node] = None


@dataclass(frozen=True)
class Break(Node):
    pass


@dataclass(frozen=True)
class Continue(Node):
    pass


@dataclass(frozen=True)
class Block(Node):
    statements: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Program(Block):
    """Top-level statement sequence; evaluated exactly like a Block."""


@dataclass(frozen=True)
class Namespace(Node):
    name: str
    body: Node


@dataclass(frozen=True)
class EnumMember:
    name: str
    value: Optional[Node] = None


@dataclass(frozen=True)
class EnumDecl(Node):
    name: str
    members: Tuple[EnumMember, ...] = ()


@dataclass(frozen=True)
class ClassDecl(Node):
    name: str
    base: Optional[str] = None
    body: Node = field(default_factory=lambda: Block())


@dataclass(frozen=True)
class MatchCase:
    pattern: Node
    body: Node


@dataclass(frozen=True)
class Match(Node):
    subject: Node
    cases: Tuple[MatchCase, ...] = ()
    default: Optional[Node] = None


@dataclass(frozen=True)
class TryCatch(Node):
    try_block: Node
    error_var: Optional[str] = None
    catch_block: Optional[Node] = None
    finally_block: Optional[Node] = None


FunctionNode = (FunctionDecl, Lambda)
