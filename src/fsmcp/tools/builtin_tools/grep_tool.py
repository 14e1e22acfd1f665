from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Any

from ..base import ToolSpec, ToolResult, ToolContext
from ..schema import object_schema, string_prop, int_prop, enum_prop
from ...util.fs import validate_path, FsError
from .grep_backends import FileHits, GrepQuery, Searcher, SearchError, select_searcher

OUTPUT_MODES = ["content", "files_with_matches", "count"]
NO_MATCHES = "No matches found."

def format_hits(hits: list[FileHits], mode: str, context: int = 0, head_limit: int | None = None) -> list[str]:
    """Turn per-file hits into output lines.

    head_limit counts files in files_with_matches/count mode and matched lines
    in content mode; context lines ride along with the matches they belong to.
    """
    out: list[str] = []
    remaining = head_limit if head_limit and head_limit > 0 else None
    for h in hits:
        if remaining is not None and remaining <= 0:
            break
        if mode == "files_with_matches":
            out.append(h.path)
            used = 1
        elif mode == "count":
            out.append(f"{h.path}:{len(h.matched)}")
            used = 1
        else:
            matched = h.matched if remaining is None else h.matched[:remaining]
            shown: set[int] = set()
            for m in matched:
                for n in range(m - context, m + context + 1):
                    if n in h.lines:
                        shown.add(n)
            for n in sorted(shown):
                out.append(f"{h.path}:{n}:{h.lines[n]}")
            used = len(matched)
        if remaining is not None:
            remaining -= used
    return out

@dataclass
class GrepTool:
    spec: ToolSpec = ToolSpec(
        name="fs_grep",
        description=(
            "Search file contents with regex. Uses ripgrep if available, falls back to a "
            "built-in search. Default output mode is files_with_matches (file paths only)."
        ),
        parameters=object_schema(
            {
                "pattern": string_prop("Regex pattern to search for"),
                "path": string_prop("File or directory to search in (defaults to cwd)"),
                "glob": string_prop("Glob to filter files (e.g. '*.py')"),
                "type": string_prop("File type filter (e.g. 'py', 'js', 'ts')"),
                "output_mode": enum_prop("Output mode", OUTPUT_MODES),
                "context": int_prop("Lines of context around matches (content mode only)"),
                "head_limit": int_prop("Limit output to first N results"),
            },
            ["pattern"],
        ),
        read_only=True,
        category="File System",
    )
    searcher: Searcher = field(default_factory=select_searcher)

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        path = args.get("path") or ctx.cwd
        mode = args.get("output_mode", "files_with_matches")
        context = max(0, int(args.get("context", 0))) if mode == "content" else 0
        head_limit = args.get("head_limit")

        try:
            validate_path(path, ctx.allowed_dirs)
        except FsError as e:
            return ToolResult(str(e), is_error=True)
        if not os.path.exists(path):
            return ToolResult(f"path not found: {path}", is_error=True)

        query = GrepQuery(
            pattern=args["pattern"],
            path=path,
            glob=args.get("glob"),
            file_type=(args.get("type") or "").lstrip(".") or None,
            context=context,
        )
        try:
            hits = self.searcher.search(query)
        except SearchError as e:
            return ToolResult(str(e), is_error=True)

        lines = format_hits(hits, mode, context, head_limit)
        if not lines:
            return ToolResult(NO_MATCHES)
        return ToolResult("\n".join(lines))
