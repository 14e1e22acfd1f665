from __future__ import annotations

import json
from typing import Any, IO, Sequence

from ..tools.registry import ToolRegistry
from ..events.store import EventStore

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "fsmcp"
SERVER_VERSION = "1.0.0"

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601

CONTEXT_SCHEMA = {
    "allowed_dirs": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Directories this server is allowed to access",
        "ui": "directory-list",
    },
}


def _reply(rid: Any, result=None, error: dict[str, Any] | None = None) -> dict[str, Any]:
    msg: dict[str, Any] = {"jsonrpc": "2.0", "id": rid}
    if error is not None:
        msg["error"] = error
    else:
        msg["result"] = result
    return msg


def _meta_dirs(params: dict[str, Any]) -> list[str]:
    meta = params.get("_meta")
    if not isinstance(meta, dict):
        return []
    dirs = meta.get("allowed_dirs")
    if not isinstance(dirs, list):
        return []
    return [d for d in dirs if isinstance(d, str)]


class StdioServer:
    """Line-delimited JSON-RPC front end for a ToolRegistry.

    Requests are handled one at a time: a reply is written before the next
    line is read.
    """

    def __init__(self, registry: ToolRegistry, allowed_dirs: Sequence[str] = (), events: EventStore | None = None):
        self.registry = registry
        self.allowed_dirs = list(allowed_dirs)
        self.events = events

    def handle(self, req: dict[str, Any]) -> dict[str, Any] | None:
        rid = req.get("id")
        method = req.get("method")
        params = req.get("params")
        if not isinstance(params, dict):
            params = {}

        if method == "initialize":
            return _reply(rid, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {
                    "name": SERVER_NAME,
                    "version": SERVER_VERSION,
                    "contextSchema": CONTEXT_SCHEMA,
                },
            })
        if method == "notifications/initialized":
            return None
        if method == "tools/list":
            return _reply(rid, {"tools": [s.to_mcp() for s in self.registry.list_specs()]})
        if method == "tools/call":
            name = params.get("name")
            args = params.get("arguments")
            # per-call directories extend the static sandbox for this call only
            allowed = self.allowed_dirs + _meta_dirs(params)
            res = self.registry.call(name if isinstance(name, str) else "", args, allowed)
            return _reply(rid, res.to_mcp())

        if "id" not in req:
            return None
        return _reply(rid, error={"code": METHOD_NOT_FOUND, "message": f"method not found: {method}"})

    def handle_line(self, line: str) -> str | None:
        line = line.strip()
        if not line:
            return None
        try:
            req = json.loads(line)
        except ValueError:
            req = None
        if not isinstance(req, dict):
            return json.dumps(_reply(None, error={"code": PARSE_ERROR, "message": "parse error"}))
        resp = self.handle(req)
        if resp is None:
            return None
        return json.dumps(resp, ensure_ascii=False)

    def serve(self, stdin: IO[str], stdout: IO[str]) -> None:
        if self.events:
            self.events.append("server.start", {"allowed_dirs": self.allowed_dirs})
        for line in stdin:
            out = self.handle_line(line)
            if out is None:
                continue
            stdout.write(out + "\n")
            stdout.flush()
