from __future__ import annotations

from .registry import ToolRegistry
from .builtin_tools.glob_tool import GlobTool
from .builtin_tools.grep_tool import GrepTool
from .builtin_tools.grep_backends import Searcher, select_searcher
from .builtin_tools.file_read import ReadFileTool
from .builtin_tools.file_write import WriteFileTool
from .builtin_tools.file_edit import EditFileTool
from .builtin_tools.bash_tool import BashTool, BashSession


def register_builtin_tools(
    registry: ToolRegistry,
    *,
    session: BashSession | None = None,
    searcher: Searcher | None = None,
) -> None:
    registry.register(ReadFileTool())
    registry.register(WriteFileTool())
    registry.register(EditFileTool())
    registry.register(GlobTool())
    registry.register(GrepTool(searcher=searcher or select_searcher()))
    registry.register(BashTool(session=session or BashSession()))
