from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..base import ToolSpec, ToolResult, ToolContext
from ..schema import object_schema, string_prop
from ...util.fs import validate_path, FsError

@dataclass
class WriteFileTool:
    spec: ToolSpec = ToolSpec(
        name="fs_write",
        description=(
            "Write content to a file. Creates the file and parent directories if they do not "
            "exist. Overwrites existing files."
        ),
        parameters=object_schema(
            {
                "file_path": string_prop("Absolute path to the file"),
                "content": string_prop("Content to write"),
            },
            ["file_path", "content"],
        ),
        category="File System",
    )

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        path = args["file_path"]
        content = args["content"]
        try:
            validate_path(path, ctx.allowed_dirs)
        except FsError as e:
            return ToolResult(str(e), is_error=True)

        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8")
        p.write_bytes(data)
        return ToolResult(f"Wrote {len(data)} bytes to {path}")
