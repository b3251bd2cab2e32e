from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, List, Mapping, Optional, Sequence

from . import nodes as n
from .code import ProgramCode
from .common import Diagnostic, HandlerFrame, RunResult, ThrownError
from .lib import Builtin, make_builtins
from .scopes import Environment
from .values import NULL, FunctionValue, ReturnValue, Value

logger = logging.getLogger(__name__)
diagnostics_logger = logging.getLogger("sharpscript.diagnostics")

DEFAULT_MAX_CALL_DEPTH = 1000
# host frames one script-level call needs for ordinary nesting
FRAMES_PER_CALL = 16


class InterpreterCore:
    def __init__(
        self,
        builtins: Optional[Mapping[str, Builtin]] = None,
        *,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
        stdin: IO[str] | None = None,
        allow_file_io: bool = True,
        file_root: str | Path | None = None,
        include_paths: Sequence[str | Path] = (),
        max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
    ):
        """
        builtins:
          - None -> the default `system.*` / `file.*` table
          - a mapping -> merged over the defaults (plain callables are wrapped)
        stdout / stderr / stdin:
          text streams for the I/O builtins; None means the process streams
          as they are at call time
        allow_file_io / file_root:
          gate `file.read` / `file.write`; with a root, paths must stay inside it
        include_paths:
          extra directories searched for `#include`
        max_call_depth:
          nested user-function calls allowed before a catchable
          `StackOverflow` error is thrown
        """
        self.builtins = make_builtins(builtins)
        self._stdout = stdout
        self._stderr = stderr
        self._stdin = stdin
        self.allow_file_io = bool(allow_file_io)
        self.file_root = None if file_root is None else Path(file_root)
        self.include_paths = [Path(p) for p in include_paths]
        self.max_call_depth = max(1, int(max_call_depth))
        self.reset()

    def reset(self) -> None:
        """Fresh globals, calculator memory, history and diagnostics."""
        self.globals = Environment(name="global")
        self.current = self.globals
        self.memory = Environment(name="memory")
        self.history: List[Value] = []
        self.diagnostics: List[Diagnostic] = []
        self.handler_frames: List[HandlerFrame] = []
        self.call_depth = 0

    # ----- streams -----

    @property
    def stdout(self) -> IO[str]:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self) -> IO[str]:
        return self._stderr if self._stderr is not None else sys.stderr

    @property
    def stdin(self) -> IO[str]:
        return self._stdin if self._stdin is not None else sys.stdin

    # ----- diagnostics -----

    def report(self, kind: str, message: str) -> None:
        diagnostic = Diagnostic(kind, message)
        self.diagnostics.append(diagnostic)
        diagnostics_logger.warning("%s", message)

    # ----- run -----

    @contextmanager
    def _call_stack(self) -> Iterator[None]:
        """Give the host stack room for `max_call_depth` script calls."""
        limit = sys.getrecursionlimit()
        depth = self.call_depth
        sys.setrecursionlimit(limit + self.max_call_depth * FRAMES_PER_CALL)
        try:
            yield
        finally:
            sys.setrecursionlimit(limit)
            self.call_depth = depth

    def compile(self, source: str, filename: str = "<sharpscript>") -> ProgramCode:
        return ProgramCode(source, filename, include_paths=self.include_paths)

    def run(
        self, source: str | ProgramCode | n.Node, filename: str = "<sharpscript>"
    ) -> RunResult:
        """
        Evaluate a program against the interpreter's global environment.

        Script-level failures never raise: an uncaught thrown error (or
        host recursion exhaustion) ends the run and is stored on the result.
        Calls nested deeper than `max_call_depth` throw a script-level
        `StackOverflow` error, which `try`/`catch` can handle.
        """
        parse_errors: list = []
        if isinstance(source, str):
            source = self.compile(source, filename)
        if isinstance(source, ProgramCode):
            parse_errors = list(source.errors)
            tree: n.Node = source.tree
        else:
            tree = source

        first_diagnostic = len(self.diagnostics)
        value: Value = NULL
        exception: BaseException | None = None
        try:
            with self._call_stack():
                value = self.evaluate(tree, self.globals)
        except ThrownError as exc:
            logger.debug("uncaught %s", exc.error)
            exception = exc
        except RecursionError as exc:
            logger.debug("recursion limit reached")
            exception = exc
        finally:
            self.current = self.globals
            self.handler_frames.clear()

        if isinstance(value, ReturnValue):
            value = value.unwrap()
        elif value.is_control:
            value = NULL
        return RunResult(
            value=value,
            exception=exception,
            diagnostics=self.diagnostics[first_diagnostic:],
            parse_errors=parse_errors,
            globals=self.globals,
        )

    def run_file(self, path: str | Path) -> RunResult:
        """Run a script file, then call its `main()` if it defines one."""
        script = Path(path)
        result = self.run(self.compile(script.read_text(), str(script)))
        if not result.ok:
            return result

        entry = self.globals.lookup("main")
        if not isinstance(entry, FunctionValue):
            return result

        first_diagnostic = len(self.diagnostics)
        try:
            with self._call_stack():
                result.value = self.call_function(entry, (), self.globals)
        except ThrownError as exc:
            result.exception = exc
        except RecursionError as exc:
            result.exception = exc
        finally:
            self.current = self.globals
            self.handler_frames.clear()
        result.diagnostics.extend(self.diagnostics[first_diagnostic:])
        return result

    # ----- dispatch -----

    def evaluate(self, node: Optional[n.Node], env: Environment | None = None) -> Value:
        if node is None:
            return NULL
        if env is None:
            env = self.current
        method = getattr(self, f"eval_{node.__class__.__name__}", None)
        if method is None:
            logger.debug("no evaluation rule for %s", node.__class__.__name__)
            return NULL
        return method(node, env)
