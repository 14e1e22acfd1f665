from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..base import ToolSpec, ToolResult, ToolContext
from ..schema import object_schema, string_prop, bool_prop
from ...util.fs import validate_path, FsError

@dataclass
class EditFileTool:
    spec: ToolSpec = ToolSpec(
        name="fs_edit",
        description=(
            "Perform exact string replacement in a file. By default, old_string must appear "
            "exactly once (fails if 0 or >1 matches). Use replace_all to replace every occurrence."
        ),
        parameters=object_schema(
            {
                "file_path": string_prop("Absolute path to the file"),
                "old_string": string_prop("Exact string to find"),
                "new_string": string_prop("Replacement string"),
                "replace_all": bool_prop("Replace all occurrences (default: false)"),
            },
            ["file_path", "old_string", "new_string"],
        ),
        category="File System",
    )

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        path = args["file_path"]
        old = args["old_string"]
        new = args["new_string"]
        replace_all = bool(args.get("replace_all", False))

        try:
            validate_path(path, ctx.allowed_dirs)
        except FsError as e:
            return ToolResult(str(e), is_error=True)
        if not old:
            return ToolResult("old_string must not be empty", is_error=True)

        p = Path(path)
        if not p.is_file():
            return ToolResult(f"file not found: {path}", is_error=True)
        # Strict decode, no newline translation: the text is written straight back.
        text = p.read_bytes().decode("utf-8")

        # Literal, non-overlapping occurrences.
        count = text.count(old)
        if count == 0:
            return ToolResult("old_string not found in file", is_error=True)
        if count > 1 and not replace_all:
            return ToolResult(
                f"old_string found {count} times. Use replace_all or provide more context to make it unique.",
                is_error=True,
            )

        p.write_bytes(text.replace(old, new).encode("utf-8"))
        return ToolResult(f"Replaced {count} occurrence(s) in {path}")
