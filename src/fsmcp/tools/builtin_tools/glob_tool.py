from __future__ import annotations
import glob as _glob
import os
from dataclasses import dataclass
from typing import Any

from ..base import ToolSpec, ToolResult, ToolContext
from ..schema import object_schema, string_prop
from ...util.fs import validate_path, is_path_allowed, FsError

MAX_RESULTS = 1000

def _mtime(path: str) -> float:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return 0.0

@dataclass
class GlobTool:
    spec: ToolSpec = ToolSpec(
        name="fs_glob",
        description=(
            "Find files matching a glob pattern. Returns absolute paths sorted by modification "
            "time (newest first). Capped at 1000 results."
        ),
        parameters=object_schema(
            {
                "pattern": string_prop("Glob pattern (e.g. '**/*.py')"),
                "path": string_prop(
                    "Directory to search in (defaults to allowed directories, or cwd if unrestricted)"
                ),
            },
            ["pattern"],
        ),
        read_only=True,
        category="File System",
    )

    def _search_dirs(self, ctx: ToolContext, path: str | None) -> list[str]:
        # "." is treated the same as no path at all
        if path and path != ".":
            validate_path(path, ctx.allowed_dirs)
            if not os.path.exists(path):
                raise FsError(f"directory not found: {path}")
            return [path]
        if ctx.allowed_dirs:
            dirs = [d for d in ctx.allowed_dirs if os.path.exists(d)]
            if not dirs:
                raise FsError("none of the allowed directories exist")
            return dirs
        return [ctx.cwd]

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        pattern = args["pattern"]
        try:
            dirs = self._search_dirs(ctx, args.get("path"))
        except FsError as e:
            return ToolResult(str(e), is_error=True)

        seen: set[str] = set()
        matches: list[str] = []
        for d in dirs:
            try:
                hits = _glob.glob(pattern, root_dir=d, recursive=True)
            except (OSError, ValueError) as e:
                return ToolResult(f"glob error: {e}", is_error=True)
            for h in hits:
                full = os.path.abspath(os.path.join(d, h))
                if full in seen or not os.path.isfile(full):
                    continue
                # absolute or ../ patterns can reach past the search root
                if ctx.allowed_dirs and not is_path_allowed(full, ctx.allowed_dirs):
                    continue
                seen.add(full)
                matches.append(full)

        # sorted() is stable: equal mtimes keep discovery order
        ordered = sorted(matches, key=_mtime, reverse=True)
        out = "\n".join(ordered[:MAX_RESULTS])
        if len(ordered) > MAX_RESULTS:
            out += f"\n\n(showing {MAX_RESULTS} of {len(ordered)} matches)"
        return ToolResult(out)
