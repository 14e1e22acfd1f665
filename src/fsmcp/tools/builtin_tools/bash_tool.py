from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import os
import shutil

from ..base import ToolSpec, ToolResult, ToolContext
from ..schema import object_schema, string_prop, int_prop
from ...util.fs import is_path_allowed
from ...util.subprocess import run_cmd

CWD_MARKER = "___FSMCP_CWD___"
DEFAULT_TIMEOUT_MS = 120_000
MAX_TIMEOUT_MS = 600_000
MAX_OUTPUT = 30_000
TRUNCATION_MARKER = "\n... [output truncated]"

@dataclass
class BashSession:
    """Working directory carried from one fs_bash call to the next."""
    cwd: str = field(default_factory=os.getcwd)

def split_marker(raw: str) -> tuple[str, str | None]:
    """Strip sentinel lines from raw output.

    Returns the visible output and the last well-formed directory reported.
    """
    new_cwd: str | None = None
    visible: list[str] = []
    for line in raw.split("\n"):
        idx = line.find(CWD_MARKER)
        if idx == -1:
            visible.append(line)
            continue
        value = line[idx + len(CWD_MARKER):].strip()
        if value and os.path.isabs(value):
            new_cwd = value
        before = line[:idx]
        if before.strip():
            visible.append(before)
    return "\n".join(visible), new_cwd

def join_streams(stdout: str, stderr: str) -> str:
    """stdout then stderr; a line break is added only when stdout lacks one."""
    if not stdout or not stderr or stdout.endswith("\n"):
        return stdout + stderr
    return stdout + "\n" + stderr

def truncate(output: str, limit: int = MAX_OUTPUT) -> str:
    if len(output) > limit:
        return output[:limit] + TRUNCATION_MARKER
    return output

@dataclass
class BashTool:
    spec: ToolSpec = ToolSpec(
        name="fs_bash",
        description=(
            "Execute a shell command. Working directory persists between calls. "
            "Output is truncated at 30000 characters."
        ),
        parameters=object_schema(
            {
                "command": string_prop("Shell command to execute"),
                "timeout": int_prop("Timeout in milliseconds (default: 120000, max: 600000)"),
                "description": string_prop("Description of what the command does"),
            },
            ["command"],
        ),
        category="Shell",
    )
    session: BashSession = field(default_factory=BashSession)

    def _shell(self) -> str:
        return shutil.which("bash") or shutil.which("sh") or "/bin/sh"

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        cmd = args["command"]
        timeout_ms = int(args.get("timeout", DEFAULT_TIMEOUT_MS))
        if timeout_ms <= 0:
            timeout_ms = DEFAULT_TIMEOUT_MS
        timeout_ms = min(timeout_ms, MAX_TIMEOUT_MS)

        # A previous call may have cd'ed outside the sandbox; catch it before running anything.
        cwd = self.session.cwd
        if ctx.allowed_dirs and not is_path_allowed(cwd, ctx.allowed_dirs):
            return ToolResult(f"cwd {cwd} is outside allowed directories", is_error=True)
        if not os.path.isdir(cwd):
            return ToolResult(f"cwd {cwd} no longer exists", is_error=True)

        # the trailing echo must not mask the command's own exit status
        wrapped = f'{cmd}\n__fsmcp_rc=$?\necho "{CWD_MARKER}$(pwd)"\nexit $__fsmcp_rc'
        try:
            res = run_cmd([self._shell(), "-c", wrapped], cwd=cwd, timeout=timeout_ms / 1000)
        except OSError as e:
            return ToolResult(f"failed to start shell: {e}", is_error=True)

        stdout, new_cwd = split_marker(res.stdout)
        if new_cwd:
            # kept even when the command failed afterwards
            self.session.cwd = new_cwd

        out = truncate(join_streams(stdout, res.stderr).rstrip())
        # appended after truncation so the notice always survives
        if res.timed_out:
            out = (out + "\n" if out else "") + f"[Process killed: timeout exceeded after {timeout_ms}ms]"
        return ToolResult(out, is_error=res.timed_out or res.returncode != 0)
