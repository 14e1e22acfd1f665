from __future__ import annotations
import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..base import ToolSpec, ToolResult, ToolContext
from ..schema import object_schema, string_prop, int_prop
from ...util.fs import validate_path, read_text, FsError

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp", ".ico"}
MAX_LINE_LENGTH = 2000
DEFAULT_LIMIT = 2000

def format_numbered(lines: list[str], first_line: int) -> str:
    """Render lines cat -n style, numbers right-aligned to the widest shown number."""
    width = max(len(str(first_line + len(lines) - 1)), 1)
    out = []
    for i, line in enumerate(lines):
        if len(line) > MAX_LINE_LENGTH:
            line = line[:MAX_LINE_LENGTH] + "... [truncated]"
        out.append(f"{str(first_line + i).rjust(width)}\t{line}")
    return "\n".join(out)

@dataclass
class ReadFileTool:
    spec: ToolSpec = ToolSpec(
        name="fs_read",
        description=(
            "Read file contents with line numbers (cat -n format). Supports offset and limit "
            "for partial reads. Lines longer than 2000 characters are truncated."
        ),
        parameters=object_schema(
            {
                "file_path": string_prop("Absolute path to the file"),
                "offset": int_prop("Line number to start reading from (1-based)"),
                "limit": int_prop("Maximum number of lines to read (default: 2000)"),
            },
            ["file_path"],
        ),
        read_only=True,
        category="File System",
    )

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        path = args["file_path"]
        try:
            validate_path(path, ctx.allowed_dirs)
        except FsError as e:
            return ToolResult(str(e), is_error=True)

        p = Path(path)
        if not p.exists():
            return ToolResult(f"file not found: {path}", is_error=True)
        if p.is_dir():
            return ToolResult("path is a directory, not a file", is_error=True)

        ext = p.suffix.lower()
        if ext in IMAGE_EXTENSIONS:
            data = base64.b64encode(p.read_bytes()).decode("ascii")
            return ToolResult(f"[base64 image: {ext}]\n{data}")

        lines = read_text(p).split("\n")
        offset = max(1, int(args.get("offset", 1)))
        limit = int(args.get("limit", DEFAULT_LIMIT))
        start = offset - 1
        excerpt = lines[start:start + max(limit, 0)]
        return ToolResult(format_numbered(excerpt, offset))
