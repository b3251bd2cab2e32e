from __future__ import annotations

from pathlib import Path
from typing import Iterator, Sequence


class FileAccessDenied(Exception):
    pass


def candidate_paths(
    path: str, base_dir: Path, search_paths: Sequence[Path] = ()
) -> Iterator[Path]:
    """Places an include or file path may refer to, most specific first."""
    raw = Path(path)
    if raw.is_absolute():
        yield raw
        return
    yield base_dir / raw
    yield Path.cwd() / raw
    yield Path.cwd() / "src" / raw
    for directory in search_paths:
        yield directory / raw


def guard_file_path(path: str, *, allowed: bool, root: Path | None = None) -> Path:
    """
    Validate a script-supplied path for file builtins.

    With a `root`, the path must stay inside it once resolved.
    """
    if not allowed:
        raise FileAccessDenied("file access is disabled for this interpreter")
    if not isinstance(path, str) or not path:
        raise FileAccessDenied("file path must be a non-empty string")
    if "\x00" in path:
        raise FileAccessDenied("file path must not contain NUL bytes")

    target = Path(path)
    if root is None:
        return target
    if not target.is_absolute():
        target = root / target
    resolved = target.resolve()
    if not resolved.is_relative_to(root.resolve()):
        raise FileAccessDenied(f"path escapes the file root: {path}")
    return resolved
