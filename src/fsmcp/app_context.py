from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config.loader import load_server_config, absolute_dir
from .config.models import ServerConfig
from .events.store import EventStore
from .mcp.server import StdioServer
from .tools.builtin import register_builtin_tools
from .tools.builtin_tools.bash_tool import BashSession
from .tools.builtin_tools.grep_backends import select_searcher
from .tools.registry import ToolRegistry


@dataclass
class AppContext:
    cwd: Path
    config: ServerConfig
    tools: ToolRegistry
    session: BashSession
    events: EventStore | None = None

    @property
    def allowed_dirs(self) -> list[str]:
        return self.config.allowed_dirs

    def server(self) -> StdioServer:
        return StdioServer(self.tools, self.config.allowed_dirs, events=self.events)

    def close(self) -> None:
        """Nothing long-lived is held today; the shell runs per call."""

    @staticmethod
    def from_env(
        cwd: Path,
        allowed_dirs: list[str] | None = None,
        config_path: Optional[Path] = None,
        record_events: bool | None = None,
        grep_backend: str | None = None,
        events_dir: Path | None = None,
    ) -> "AppContext":
        config = load_server_config(cwd=cwd, explicit_path=config_path)

        # CLI directories extend the configured sandbox; CLI switches override config.
        config.extend_allowed([absolute_dir(d, cwd) for d in (allowed_dirs or [])])
        if record_events is not None:
            config.record_events = record_events
        if grep_backend:
            config.grep_backend = grep_backend  # type: ignore[assignment]

        events = EventStore.open(directory=events_dir) if config.record_events else None

        session = BashSession(cwd=str(cwd))
        tools = ToolRegistry(events=events)
        register_builtin_tools(tools, session=session, searcher=select_searcher(config.grep_backend))

        return AppContext(
            cwd=cwd,
            config=config,
            tools=tools,
            session=session,
            events=events,
        )
