from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Set

from ..lexer import tokenize
from ..nodes import Node
from ..parser import IncludeError, Parser
from .guards import candidate_paths

logger = logging.getLogger(__name__)


class IncludeLoader:
    """Resolves `#include "path"` directives by parsing the named file in place."""

    def __init__(
        self,
        *,
        base_dir: str | Path | None = None,
        search_paths: Sequence[str | Path] = (),
    ):
        self.base_dirs: List[Path] = [Path(base_dir) if base_dir is not None else Path.cwd()]
        self.search_paths = [Path(p) for p in search_paths]
        self.included: Set[Path] = set()
        self.errors: list = []

    def _resolve(self, path: str) -> Path | None:
        for candidate in candidate_paths(path, self.base_dirs[-1], self.search_paths):
            if candidate.is_file():
                return candidate.resolve()
        return None

    def __call__(self, path: str) -> Sequence[Node]:
        resolved = self._resolve(path)
        if resolved is None:
            raise IncludeError(f"Include error: could not open {path}")
        if resolved in self.included:
            logger.debug("skipping already included file %s", resolved)
            return ()
        self.included.add(resolved)

        try:
            source = resolved.read_text()
        except OSError as exc:
            raise IncludeError(f"Include error: could not read {path}: {exc}") from exc

        self.base_dirs.append(resolved.parent)
        try:
            parser = Parser(tokenize(source), include_loader=self)
            program = parser.parse_program()
        finally:
            self.base_dirs.pop()
        self.errors.extend(parser.errors)
        logger.debug("included %s (%d statements)", resolved, len(program.statements))
        return program.statements
