"""Tests for the typer command line."""

import json
import os

import pytest
from typer.testing import CliRunner

from fsmcp.config import loader
from fsmcp.events.store import EventStore
from fsmcp.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_global_config(monkeypatch):
    monkeypatch.setattr(loader, "_global_candidate_paths", lambda: [])


def test_tools_lists_every_tool(sandbox):
    result = runner.invoke(app, ["tools", "--grep-backend", "python"])
    assert result.exit_code == 0
    for name in ("fs_read", "fs_write", "fs_edit", "fs_glob", "fs_grep", "fs_bash"):
        assert name in result.stdout


def test_call_prints_raw_result(sandbox):
    p = os.path.join(sandbox, "a.txt")
    with open(p, "w") as f:
        f.write("hello")
    result = runner.invoke(
        app,
        ["call", "fs_read", "--args", json.dumps({"file_path": p}), "--allowed-dir", sandbox, "--cwd", sandbox],
    )
    assert result.exit_code == 0
    assert result.stdout == "1\thello\n"


def test_call_error_exits_one(sandbox, outside):
    args = json.dumps({"file_path": os.path.join(outside, "b.txt")})
    result = runner.invoke(app, ["call", "fs_read", "--args", args, "--allowed-dir", sandbox, "--cwd", sandbox])
    assert result.exit_code == 1


def test_call_rejects_bad_json(sandbox):
    result = runner.invoke(app, ["call", "fs_read", "--args", "{nope", "--cwd", sandbox])
    assert result.exit_code == 2


def test_bad_grep_backend(sandbox):
    result = runner.invoke(app, ["tools", "--grep-backend", "sed"])
    assert result.exit_code == 2


def test_events_filtered_by_type(tmp_path):
    es = EventStore.open("20250101-000000-abcdef", directory=tmp_path)
    es.append("server.start", {"allowed_dirs": ["/srv"]})
    es.append("tool.call", {"tool": "fs_read"})
    result = runner.invoke(app, ["events", "--events-dir", str(tmp_path), "--type", "tool.call"])
    assert result.exit_code == 0
    assert "fs_read" in result.stdout
    assert "server.start" not in result.stdout


def test_events_list_runs(tmp_path):
    EventStore.open("20250101-000000-abcdef", directory=tmp_path).append("server.start", {})
    result = runner.invoke(app, ["events", "--events-dir", str(tmp_path), "--list"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "20250101-000000-abcdef"


def test_events_unknown_run(tmp_path):
    result = runner.invoke(app, ["events", "--events-dir", str(tmp_path), "--run", "nope"])
    assert result.exit_code == 1


def test_missing_config_file(sandbox):
    result = runner.invoke(
        app, ["call", "fs_glob", "--args", "{}", "--cwd", sandbox, "--config", os.path.join(sandbox, "nope.json")]
    )
    assert result.exit_code == 2
