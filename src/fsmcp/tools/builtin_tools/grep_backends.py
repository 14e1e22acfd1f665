"""Content-search backends for fs_grep.

Two interchangeable implementations of one contract: given a GrepQuery, return
the files with at least one matching line, in path order, each with the
1-based numbers of its matching lines and the text of every line within
``context`` lines of a match. Formatting and head_limit live in the tool, so
both backends produce identical output for the inputs they both support.
"""

from __future__ import annotations

import base64
import fnmatch
import json
import os
import re
import shutil
from dataclasses import dataclass, field
from typing import Any, Protocol

from ...util.fs import is_binary
from ...util.subprocess import run_cmd

# Directory names never descended into by the built-in walker.
SKIP_DIRS = {"node_modules", "__pycache__"}

RG_TIMEOUT_SECONDS = 30


class SearchError(RuntimeError):
    pass


@dataclass
class GrepQuery:
    pattern: str
    path: str
    glob: str | None = None
    file_type: str | None = None
    context: int = 0


@dataclass
class FileHits:
    path: str
    matched: list[int] = field(default_factory=list)
    lines: dict[int, str] = field(default_factory=dict)


class Searcher(Protocol):
    name: str
    def search(self, query: GrepQuery) -> list[FileHits]: ...


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    # a trailing newline terminates the last line, it does not start a new one
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class PythonSearcher:
    """Walks the tree itself and matches with the ``re`` module."""

    name = "python"

    def _accept(self, filename: str, query: GrepQuery) -> bool:
        if query.file_type and not filename.endswith("." + query.file_type):
            return False
        if query.glob and not fnmatch.fnmatch(filename, query.glob):
            return False
        return True

    def _walk(self, query: GrepQuery) -> list[str]:
        if os.path.isfile(query.path):
            return [query.path]
        files: list[str] = []

        # depth-first, entries by name, symlinks not followed (rg --sort path order)
        def visit(d: str) -> None:
            try:
                entries = sorted(os.scandir(d), key=lambda e: e.name)
            except OSError:
                return
            for e in entries:
                if e.name.startswith("."):
                    continue
                if e.is_dir(follow_symlinks=False):
                    if e.name not in SKIP_DIRS:
                        visit(e.path)
                elif e.is_file(follow_symlinks=False) and self._accept(e.name, query):
                    files.append(e.path)

        visit(query.path)
        return files

    def search(self, query: GrepQuery) -> list[FileHits]:
        try:
            rx = re.compile(query.pattern)
        except re.error:
            raise SearchError(f"invalid regex: {query.pattern}")

        results: list[FileHits] = []
        for f in self._walk(query):
            try:
                with open(f, "rb") as fh:
                    data = fh.read()
            except OSError:
                continue
            if is_binary(data):
                continue
            lines = _split_lines(data.decode("utf-8", errors="replace"))
            matched = [i + 1 for i, line in enumerate(lines) if rx.search(line)]
            if not matched:
                continue
            hits = FileHits(path=f, matched=matched)
            for m in matched:
                lo = max(1, m - query.context)
                hi = min(len(lines), m + query.context)
                for n in range(lo, hi + 1):
                    hits.lines[n] = lines[n - 1]
            results.append(hits)
        return results


def _rg_text(obj: dict[str, Any] | None) -> str:
    if not obj:
        return ""
    if "text" in obj:
        return obj["text"]
    return base64.b64decode(obj.get("bytes", "")).decode("utf-8", errors="replace")


class RipgrepSearcher:
    """Delegates to ``rg --json`` and rebuilds per-file hits from its event stream."""

    name = "ripgrep"

    def __init__(self, executable: str = "rg"):
        self.executable = executable

    def build_args(self, query: GrepQuery) -> list[str]:
        # the built-in walker reads no ignore files, so rg must not either
        args = [self.executable, "--json", "--sort", "path", "--no-ignore"]
        if query.context:
            args += ["-C", str(query.context)]
        if query.glob:
            args += ["--glob", query.glob]
        if query.file_type:
            # extension shorthand, not rg's named type table
            args += ["--type-add", f"fsmcpext:*.{query.file_type}", "--type", "fsmcpext"]
        # later globs win in rg, so the exclusions come after the caller's filter
        for name in sorted(SKIP_DIRS):
            args += ["--glob", f"!{name}"]
        args += ["--", query.pattern, query.path]
        return args

    def parse(self, output: str) -> list[FileHits]:
        results: list[FileHits] = []
        current: FileHits | None = None
        for raw in output.splitlines():
            if not raw.strip():
                continue
            try:
                msg = json.loads(raw)
            except ValueError:
                continue
            kind = msg.get("type")
            data = msg.get("data") or {}
            if kind == "begin":
                current = FileHits(path=_rg_text(data.get("path")))
            elif kind in ("match", "context") and current is not None:
                n = data.get("line_number")
                if n is None:
                    continue
                current.lines[n] = _rg_text(data.get("lines")).rstrip("\n")
                if kind == "match":
                    current.matched.append(n)
            elif kind == "end" and current is not None:
                if current.matched:
                    results.append(current)
                current = None
        return results

    def search(self, query: GrepQuery) -> list[FileHits]:
        res = run_cmd(self.build_args(query), timeout=RG_TIMEOUT_SECONDS)
        if res.timed_out:
            raise SearchError(f"grep error: rg timed out after {RG_TIMEOUT_SECONDS}s")
        # rg exits 1 when nothing matched
        if res.returncode == 1:
            return []
        hits = self.parse(res.stdout)
        # 2 = error; with partial results (e.g. an unreadable file) keep what matched
        if res.returncode not in (0, 1) and not hits:
            raise SearchError(f"grep error: {res.stderr.strip() or f'rg exited {res.returncode}'}")
        return hits


def select_searcher(preference: str = "auto") -> Searcher:
    """Pick a backend: "ripgrep", "python", or "auto" (ripgrep when it is on PATH)."""
    if preference == "python":
        return PythonSearcher()
    rg = shutil.which("rg")
    if preference == "ripgrep":
        if rg is None:
            raise RuntimeError("grep backend 'ripgrep' requested but rg is not on PATH")
        return RipgrepSearcher(rg)
    if preference != "auto":
        raise ValueError(f"unknown grep backend: {preference}")
    return RipgrepSearcher(rg) if rg else PythonSearcher()
