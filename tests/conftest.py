from __future__ import annotations

import io
import sys
from pathlib import Path

# Allow importing the package when running plain `pytest` without an editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

import pytest

from sharpscript import Interpreter


@pytest.fixture
def interpreter():
    """An interpreter whose I/O builtins write into in-memory streams."""
    return Interpreter(stdout=io.StringIO(), stderr=io.StringIO(), stdin=io.StringIO())


@pytest.fixture
def run_script():
    def _run(source: str, *, filename: str = "<test>", **options):
        options.setdefault("stdout", io.StringIO())
        interpreter = Interpreter(**options)
        result = interpreter.run(source, filename=filename)
        result.raise_for_exception()
        return result.namespace()

    return _run
