from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .values import NULL, ErrorValue, Value

if TYPE_CHECKING:
    from .nodes import TryCatch
    from .scopes import Environment


class ControlFlowSignal(BaseException):
    """Internal non-user exceptions used for non-local transfer out of evaluation."""


class ThrownError(ControlFlowSignal):
    """A script-level `throw` travelling to the nearest active handler frame."""

    def __init__(self, error: ErrorValue):
        super().__init__(str(error))
        self.error = error


@dataclass
class HandlerFrame:
    """Saved context of an active try block, restored when it catches."""

    node: "TryCatch"
    env: "Environment"
    call_depth: int = 0


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class RunResult:
    value: Value = NULL
    exception: Optional[BaseException] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    parse_errors: list = field(default_factory=list)
    globals: Optional["Environment"] = None

    @property
    def ok(self) -> bool:
        return self.exception is None

    def raise_for_exception(self) -> None:
        if self.exception is not None:
            raise self.exception

    def namespace(self) -> Dict[str, Any]:
        """Global bindings converted to plain Python values."""
        if self.globals is None:
            return {}
        return self.globals.to_python()
