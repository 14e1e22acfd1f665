from __future__ import annotations

import json
import time
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from platformdirs import user_data_dir

APP_NAME = "fsmcp"
SUFFIX = ".jsonl"


def events_dir(directory: Path | None = None) -> Path:
    d = directory if directory is not None else Path(user_data_dir(APP_NAME)) / "events"
    d.mkdir(parents=True, exist_ok=True)
    return d


def new_run_id() -> str:
    # sortable by start time
    return time.strftime("%Y%m%d-%H%M%S") + "-" + uuid.uuid4().hex[:6]


def list_runs(directory: Path | None = None) -> list[str]:
    """Run ids with a log file, newest first."""
    return sorted((p.stem for p in events_dir(directory).glob(f"*{SUFFIX}")), reverse=True)


@dataclass
class Event:
    ts: float
    type: str
    data: dict[str, Any]

    @staticmethod
    def from_obj(obj: Any) -> "Event | None":
        if not isinstance(obj, dict) or not isinstance(obj.get("type"), str):
            return None
        data = obj.get("data")
        try:
            ts = float(obj.get("ts", 0.0))
        except (TypeError, ValueError):
            return None
        return Event(ts=ts, type=obj["type"], data=data if isinstance(data, dict) else {})


@dataclass
class EventStore:
    """Append-only JSONL log for one server run.

    Every tool call and server lifecycle step is one line. Readers skip lines
    that do not decode, so a crash mid-write loses at most one record.
    """

    run_id: str
    path: Path

    @staticmethod
    def open(run_id: str | None = None, directory: Path | None = None) -> "EventStore":
        rid = run_id or new_run_id()
        return EventStore(run_id=rid, path=events_dir(directory) / f"{rid}{SUFFIX}")

    @staticmethod
    def latest(directory: Path | None = None) -> "EventStore | None":
        runs = list_runs(directory)
        return EventStore.open(runs[0], directory) if runs else None

    def append(self, event_type: str, data: dict[str, Any]) -> None:
        ev = Event(ts=time.time(), type=event_type, data=data)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(ev), ensure_ascii=False, default=str) + "\n")

    def iter_events(self, types: Iterable[str] | None = None) -> Iterator[Event]:
        """Yield recorded events in order, optionally only those of the given types."""
        wanted = set(types) if types else None
        if not self.path.exists():
            return
        with self.path.open(encoding="utf-8", errors="replace") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    ev = Event.from_obj(json.loads(line))
                except ValueError:
                    continue
                if ev is None or (wanted is not None and ev.type not in wanted):
                    continue
                yield ev
