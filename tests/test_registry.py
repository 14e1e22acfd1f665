"""Tests for the tool registry, argument validation and the event log."""

from dataclasses import dataclass
from typing import Any

import pytest

from fsmcp.events.store import EventStore, list_runs
from fsmcp.tools.base import ToolContext, ToolResult, ToolSpec
from fsmcp.tools.registry import ToolRegistry
from fsmcp.tools.schema import (
    ArgumentError,
    bool_prop,
    enum_prop,
    int_prop,
    object_schema,
    string_prop,
    validate_arguments,
)


@dataclass
class EchoTool:
    spec: ToolSpec = ToolSpec(
        name="echo",
        description="Echo text back.",
        parameters=object_schema({"text": string_prop("Text")}, ["text"]),
        read_only=True,
        category="Test",
    )

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        return ToolResult(f"{args['text']}|{','.join(ctx.allowed_dirs)}")


@dataclass
class BoomTool:
    spec: ToolSpec = ToolSpec(name="boom", description="Always fails.", parameters=object_schema({}))

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        raise RuntimeError("kaboom")


class TestValidateArguments:
    SCHEMA = object_schema(
        {
            "s": string_prop("s"),
            "n": int_prop("n"),
            "b": bool_prop("b"),
            "mode": enum_prop("m", ["a", "b"]),
        },
        ["s"],
    )

    def test_missing_required(self):
        with pytest.raises(ArgumentError, match="missing required parameter 's'"):
            validate_arguments(self.SCHEMA, {})

    def test_null_counts_as_missing(self):
        with pytest.raises(ArgumentError, match="missing required parameter 's'"):
            validate_arguments(self.SCHEMA, {"s": None})

    def test_wrong_string_type(self):
        with pytest.raises(ArgumentError, match="'s' must be a string"):
            validate_arguments(self.SCHEMA, {"s": 3})

    def test_bool_is_not_an_integer(self):
        with pytest.raises(ArgumentError, match="'n' must be an integer"):
            validate_arguments(self.SCHEMA, {"s": "x", "n": True})

    def test_integral_float_becomes_int(self):
        out = validate_arguments(self.SCHEMA, {"s": "x", "n": 5.0})
        assert out["n"] == 5 and isinstance(out["n"], int)

    def test_fractional_float_rejected(self):
        with pytest.raises(ArgumentError):
            validate_arguments(self.SCHEMA, {"s": "x", "n": 5.5})

    def test_enum_violation(self):
        with pytest.raises(ArgumentError, match="must be one of: a, b"):
            validate_arguments(self.SCHEMA, {"s": "x", "mode": "c"})

    def test_boolean_type(self):
        with pytest.raises(ArgumentError, match="'b' must be a boolean"):
            validate_arguments(self.SCHEMA, {"s": "x", "b": "yes"})

    def test_unknown_parameters_pass_through(self):
        assert validate_arguments(self.SCHEMA, {"s": "x", "extra": 1}) == {"s": "x", "extra": 1}

    def test_arguments_must_be_an_object(self):
        with pytest.raises(ArgumentError, match="must be an object"):
            validate_arguments(self.SCHEMA, ["s"])


class TestToolRegistry:
    def test_list_specs_sorted_by_name(self):
        reg = ToolRegistry()
        reg.register(EchoTool())
        reg.register(BoomTool())
        assert [s.name for s in reg.list_specs()] == ["boom", "echo"]

    def test_register_same_name_overwrites(self):
        reg = ToolRegistry()
        reg.register(EchoTool())
        replacement = EchoTool(spec=ToolSpec(name="echo", description="v2", parameters=object_schema({})))
        reg.register(replacement)
        assert len(reg.list_specs()) == 1
        assert reg.get("echo") is replacement

    def test_unknown_tool_is_error_result(self):
        res = ToolRegistry().call("nope", {}, [])
        assert res.is_error
        assert res.content == "unknown tool: nope"

    def test_handler_exception_becomes_error_result(self):
        reg = ToolRegistry()
        reg.register(BoomTool())
        res = reg.call("boom", {}, [])
        assert res.is_error
        assert res.content == "kaboom"

    def test_invalid_arguments_never_reach_handler(self):
        reg = ToolRegistry()
        reg.register(EchoTool())
        res = reg.call("echo", {}, [])
        assert res.is_error
        assert "missing required parameter 'text'" in res.content

    def test_allowed_dirs_reach_handler(self):
        reg = ToolRegistry()
        reg.register(EchoTool())
        res = reg.call("echo", {"text": "hi"}, ["/a", "/b"])
        assert not res.is_error
        assert res.content == "hi|/a,/b"

    def test_spec_to_mcp(self):
        d = EchoTool().spec.to_mcp()
        assert d["name"] == "echo"
        assert d["inputSchema"]["required"] == ["text"]
        assert d["annotations"] == {"readOnlyHint": True}
        assert d["category"] == "Test"
        assert "annotations" not in BoomTool().spec.to_mcp()

    def test_result_to_mcp(self):
        assert ToolResult("ok").to_mcp() == {"content": [{"type": "text", "text": "ok"}]}
        assert ToolResult("bad", is_error=True).to_mcp()["isError"] is True


class TestEventLog:
    def test_calls_are_recorded(self, tmp_path):
        events = EventStore.open("run1", directory=tmp_path)
        reg = ToolRegistry(events=events)
        reg.register(EchoTool())
        reg.register(BoomTool())
        reg.call("echo", {"text": "hi"}, [])
        reg.call("boom", {}, [])

        evs = list(events.iter_events())
        assert [e.type for e in evs] == ["tool.call", "tool.call"]
        assert evs[0].data["tool"] == "echo" and evs[0].data["is_error"] is False
        assert evs[1].data["tool"] == "boom" and evs[1].data["is_error"] is True

    def test_corrupt_lines_are_skipped(self, tmp_path):
        events = EventStore.open("run2", directory=tmp_path)
        events.append("a", {"x": 1})
        with events.path.open("a", encoding="utf-8") as f:
            f.write("{not json\n")
        events.append("b", {})
        with events.path.open("a", encoding="utf-8") as f:
            f.write('{"ts": 1, "data": {}}\n')
        assert [e.type for e in events.iter_events()] == ["a", "b"]

    def test_filter_by_type(self, tmp_path):
        events = EventStore.open("run3", directory=tmp_path)
        events.append("server.start", {"allowed_dirs": []})
        events.append("tool.call", {"tool": "fs_read"})
        events.append("tool.call", {"tool": "fs_glob"})
        calls = list(events.iter_events(["tool.call"]))
        assert [e.data["tool"] for e in calls] == ["fs_read", "fs_glob"]

    def test_missing_log_yields_nothing(self, tmp_path):
        assert list(EventStore.open("never", directory=tmp_path).iter_events()) == []

    def test_runs_listed_newest_first(self, tmp_path):
        for rid in ("20240101-000000-aaaaaa", "20250101-000000-bbbbbb"):
            EventStore.open(rid, directory=tmp_path).append("server.start", {})
        assert list_runs(tmp_path) == ["20250101-000000-bbbbbb", "20240101-000000-aaaaaa"]
        assert EventStore.latest(tmp_path).run_id == "20250101-000000-bbbbbb"

    def test_latest_without_runs(self, tmp_path):
        assert EventStore.latest(tmp_path / "empty") is None
