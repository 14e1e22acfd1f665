from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Any, Protocol

@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: dict[str, Any]   # JSONSchema
    read_only: bool = False
    category: str | None = None

    def to_mcp(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.parameters,
        }
        if self.read_only:
            d["annotations"] = {"readOnlyHint": True}
        if self.category:
            d["category"] = self.category
        return d

class Tool(Protocol):
    spec: ToolSpec
    def execute(self, ctx: "ToolContext", args: dict[str, Any]) -> "ToolResult": ...

@dataclass
class ToolResult:
    content: str
    is_error: bool = False

    def to_mcp(self) -> dict[str, Any]:
        d: dict[str, Any] = {"content": [{"type": "text", "text": self.content}]}
        if self.is_error:
            d["isError"] = True
        return d

@dataclass
class ToolContext:
    # Static sandbox plus any directories supplied with the call. Empty = unrestricted.
    allowed_dirs: list[str] = field(default_factory=list)
    cwd: str = field(default_factory=os.getcwd)
