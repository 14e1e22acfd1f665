from __future__ import annotations
import os
from pathlib import Path
from typing import Sequence

class FsError(RuntimeError):
    pass

class PathRejected(FsError):
    pass

def canonical_path(path_str: str) -> str:
    # realpath resolves symlinks along the existing prefix and normalizes the rest
    # lexically, so a not-yet-created file is judged by where it would land.
    return os.path.realpath(path_str)

def _within(resolved: str, directory: str) -> bool:
    prefix = directory if directory.endswith(os.sep) else directory + os.sep
    return resolved == directory or resolved.startswith(prefix)

def validate_path(path_str: str, allowed_dirs: Sequence[str]) -> None:
    """Raise PathRejected unless path_str lies inside one of allowed_dirs.

    An empty allow-list means no restriction, but the path must still be absolute.
    """
    if not os.path.isabs(path_str):
        raise PathRejected("path must be absolute")
    if not allowed_dirs:
        return
    resolved = canonical_path(path_str)
    for d in allowed_dirs:
        if _within(resolved, canonical_path(d)):
            return
    raise PathRejected(f"path {path_str} is outside allowed directories")

def is_path_allowed(path_str: str, allowed_dirs: Sequence[str]) -> bool:
    try:
        validate_path(path_str, allowed_dirs)
    except PathRejected:
        return False
    return True

def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")

def is_binary(data: bytes) -> bool:
    """Null byte in the first 8KB."""
    return b"\x00" in data[:8192]
