from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from .lexer import Token, tokenize
from .lib.module_loader import IncludeLoader
from .parser import ParseError, Parser


class ProgramCode:
    """
    Holds:
      - source text and filename
      - the token stream
      - the parsed Program, with `#include` directives already spliced in
      - every parse error recorded along the way (including included files)
    """

    def __init__(
        self,
        source: str,
        filename: str = "<sharpscript>",
        *,
        include_paths: Sequence[str | Path] = (),
    ):
        self.source = source
        self.filename = filename

        script = None if filename.startswith("<") else Path(filename)
        self.loader = IncludeLoader(
            base_dir=script.parent if script is not None else None,
            search_paths=include_paths,
        )
        if script is not None:
            # a script never re-includes itself
            self.loader.included.add(script.resolve())

        self.tokens: List[Token] = tokenize(source)
        parser = Parser(self.tokens, include_loader=self.loader)
        self.tree = parser.parse_program()
        self.errors: List[ParseError] = parser.errors + self.loader.errors

    @property
    def ok(self) -> bool:
        return not self.errors
