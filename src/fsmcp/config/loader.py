from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_dir

from .models import ServerConfig, GREP_BACKENDS

APP_NAME = "fsmcp"


def _candidate_paths(cwd: Path) -> list[Path]:
    # project-level (higher priority)
    return [
        cwd / ".fsmcp.json",
        cwd / "fsmcp.json",
        cwd / ".fsmcp.yaml",
        cwd / "fsmcp.yaml",
    ]


def _global_candidate_paths() -> list[Path]:
    cfg_dir = Path(user_config_dir(APP_NAME))
    return [
        cfg_dir / "fsmcp.json",
        cfg_dir / "fsmcp.yaml",
    ]


def _load_file(p: Path) -> dict[str, Any] | None:
    try:
        text = p.read_text(encoding="utf-8")
        if p.suffix in {".yaml", ".yml"}:
            obj = yaml.safe_load(text)
        else:
            obj = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError):
        return None
    return obj if isinstance(obj, dict) else None


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge_dicts(out[k], v)  # type: ignore
        else:
            out[k] = v
    return out


def absolute_dir(d: str, base: Path) -> str:
    p = Path(d).expanduser()
    if not p.is_absolute():
        p = base / p
    return os.path.normpath(str(p))


def _anchor_dirs(obj: dict[str, Any], base: Path) -> dict[str, Any]:
    # relative sandbox entries are anchored at the file that declared them
    dirs = obj.get("allowed_dirs")
    if isinstance(dirs, list):
        obj = dict(obj)
        obj["allowed_dirs"] = [absolute_dir(d, base) for d in dirs if isinstance(d, str) and d.strip()]
    return obj


def load_server_config(*, cwd: Path, explicit_path: Path | None = None) -> ServerConfig:
    """Load server config.

    Merge order: global < project < explicit_path.
    """
    merged: dict[str, Any] = {}
    loaded_from: Path | None = None

    for p in _global_candidate_paths():
        if p.exists() and p.is_file():
            obj = _load_file(p)
            if obj is not None:
                merged = _merge_dicts(merged, _anchor_dirs(obj, p.parent))
                loaded_from = p

    for p in _candidate_paths(cwd):
        if p.exists() and p.is_file():
            obj = _load_file(p)
            if obj is not None:
                merged = _merge_dicts(merged, _anchor_dirs(obj, p.parent))
                loaded_from = p
                break  # first match wins for project-level

    if explicit_path is not None:
        p = explicit_path.expanduser().resolve()
        if not p.is_file():
            raise FileNotFoundError(f"Config file not found: {p}")
        obj = _load_file(p)
        if obj is None:
            raise ValueError(f"Config file must contain a mapping: {p}")
        merged = _merge_dicts(merged, _anchor_dirs(obj, p.parent))
        loaded_from = p

    cfg = ServerConfig()
    cfg.loaded_from = loaded_from

    dirs = merged.get("allowed_dirs", [])
    if isinstance(dirs, list):
        cfg.extend_allowed([d for d in dirs if isinstance(d, str)])

    rec = merged.get("record_events")
    if isinstance(rec, bool):
        cfg.record_events = rec

    gb = merged.get("grep_backend")
    if isinstance(gb, str) and gb in GREP_BACKENDS:
        cfg.grep_backend = gb  # type: ignore[assignment]

    return cfg
