from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .base import Tool, ToolContext, ToolResult, ToolSpec
from .schema import ArgumentError, validate_arguments
from ..events.store import EventStore

@dataclass
class ToolRegistry:
    _tools: Dict[str, Tool] = None  # type: ignore
    events: Optional[EventStore] = None

    def __post_init__(self):
        if self._tools is None:
            self._tools = {}

    def register(self, tool: Tool) -> None:
        # Re-registering a name replaces the previous tool.
        self._tools[tool.spec.name] = tool

    def get(self, name: str) -> Tool:
        if name not in self._tools:
            raise KeyError(f"Unknown tool: {name}")
        return self._tools[name]

    def get_optional(self, name: str) -> Optional[Tool]:
        """Return a tool if registered, otherwise None."""
        return self._tools.get(name)

    def list_specs(self) -> list[ToolSpec]:
        return sorted((t.spec for t in self._tools.values()), key=lambda s: s.name)

    def call(
        self,
        name: str,
        args: dict[str, Any] | None,
        allowed_dirs: Sequence[str] = (),
        *,
        cwd: str | None = None,
    ) -> ToolResult:
        """Dispatch one tool call.

        Never raises: unknown tools, malformed arguments and handler exceptions
        all come back as error results.
        """
        t0 = time.perf_counter()
        res = self._dispatch(name, args, allowed_dirs, cwd)
        if self.events:
            self.events.append(
                "tool.call",
                {
                    "tool": name,
                    "allowed_dirs": list(allowed_dirs),
                    "is_error": bool(res.is_error),
                    "elapsed_ms": int((time.perf_counter() - t0) * 1000),
                    "content_len": len(res.content or ""),
                    "content_preview": (res.content or "")[:4000],
                },
            )
        return res

    def _dispatch(
        self,
        name: str,
        args: dict[str, Any] | None,
        allowed_dirs: Sequence[str],
        cwd: str | None,
    ) -> ToolResult:
        tool = self.get_optional(name)
        if tool is None:
            return ToolResult(f"unknown tool: {name}", is_error=True)
        try:
            clean = validate_arguments(tool.spec.parameters, args)
        except ArgumentError as e:
            return ToolResult(f"invalid arguments for {name}: {e}", is_error=True)
        ctx = ToolContext(allowed_dirs=list(allowed_dirs))
        if cwd is not None:
            ctx.cwd = cwd
        try:
            return tool.execute(ctx, clean)
        except Exception as e:
            return ToolResult(str(e) or type(e).__name__, is_error=True)
