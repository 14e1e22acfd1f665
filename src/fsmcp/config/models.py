from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

GrepBackend = Literal["auto", "ripgrep", "python"]
GREP_BACKENDS = ("auto", "ripgrep", "python")


@dataclass
class ServerConfig:
    """Server config loaded from JSON or YAML.

    allowed_dirs is the static sandbox; callers may add directories per call.
    """

    allowed_dirs: list[str] = field(default_factory=list)
    record_events: bool = False
    grep_backend: GrepBackend = "auto"

    loaded_from: Path | None = None

    def extend_allowed(self, dirs: list[str]) -> None:
        for d in dirs:
            if d not in self.allowed_dirs:
                self.allowed_dirs.append(d)
