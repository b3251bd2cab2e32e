from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from ..nodes import Node
from ..values import NULL, NumberValue, StringValue, Value, format_number
from .guards import FileAccessDenied, guard_file_path

if TYPE_CHECKING:
    from ..main import Interpreter
    from ..scopes import Environment


def _path_argument(interp: "Interpreter", name: str, arg: Node, env: "Environment"):
    value = interp.evaluate(arg, env)
    if not isinstance(value, StringValue):
        interp.report("type-mismatch", f"{name}: path must be a string, got {value.type_name}")
        return None
    try:
        return guard_file_path(value.value, allowed=interp.allow_file_io, root=interp.file_root)
    except FileAccessDenied as exc:
        interp.report("file-io", f"{name}: {exc}")
        return None


def file_read(interp: "Interpreter", args: Sequence[Node], env: "Environment") -> Value:
    path = _path_argument(interp, "file.read", args[0], env)
    if path is None:
        return NULL
    try:
        return StringValue(path.read_text())
    except OSError as exc:
        interp.report("file-io", f"file.read: {exc}")
        return NULL


def file_write(interp: "Interpreter", args: Sequence[Node], env: "Environment") -> Value:
    path = _path_argument(interp, "file.write", args[0], env)
    data = interp.evaluate(args[1], env) if len(args) > 1 else NULL
    if path is None:
        return NULL
    if isinstance(data, StringValue):
        text = data.value
    elif isinstance(data, NumberValue):
        text = format_number(data.value)
    else:
        text = ""
    try:
        path.write_text(text)
    except OSError as exc:
        interp.report("file-io", f"file.write: {exc}")
    return NULL
