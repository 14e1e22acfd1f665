from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .app_context import AppContext
from .config.models import GREP_BACKENDS
from .events.store import EventStore, list_runs

app = typer.Typer(add_completion=False, help="fsmcp: sandboxed file and shell tools over stdio JSON-RPC.")
# stdout carries protocol traffic in `serve`; everything human-facing goes to stderr.
console = Console(stderr=True)
out = Console()


def _resolve_cwd(cwd: Path | None) -> Path:
    cwd = Path(str(cwd or Path.cwd())).expanduser()
    if not cwd.is_absolute():
        cwd = (Path.cwd() / cwd).resolve()
    else:
        cwd = cwd.resolve()
    if not cwd.is_dir():
        raise typer.BadParameter(f"--cwd must be an existing directory: {cwd}")
    return cwd


def _check_backend(value: str | None) -> str | None:
    if value is not None and value not in GREP_BACKENDS:
        raise typer.BadParameter(f"--grep-backend must be one of: {', '.join(GREP_BACKENDS)}")
    return value


def _context(
    cwd: Path | None,
    allowed_dir: list[str] | None,
    config: Path | None,
    record_events: bool | None,
    grep_backend: str | None,
) -> AppContext:
    try:
        return AppContext.from_env(
            cwd=_resolve_cwd(cwd),
            allowed_dirs=allowed_dir or [],
            config_path=config,
            record_events=record_events,
            grep_backend=_check_backend(grep_backend),
        )
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        console.print(f"[red]error:[/red] {e}")
        raise typer.Exit(code=2)


@app.command()
def serve(
    allowed_dir: list[str] = typer.Option(None, "--allowed-dir", help="Directory tools may touch. Repeatable."),
    cwd: Path = typer.Option(None, "--cwd", help="Starting directory for the shell tool. Defaults to current directory."),
    config: Path = typer.Option(None, "--config", help="Explicit config file (JSON or YAML)."),
    record_events: Optional[bool] = typer.Option(None, "--record-events/--no-record-events", help="Write a JSONL event log for this run."),
    grep_backend: str = typer.Option(None, "--grep-backend", help="auto | ripgrep | python"),
):
    """Serve the tools over line-delimited JSON-RPC on stdin/stdout."""
    ctx = _context(cwd, allowed_dir, config, record_events, grep_backend)

    table = Table.grid(padding=(0, 2))
    table.add_row("[bold green]cwd[/bold green]", f"[bright_cyan]{ctx.cwd}[/bright_cyan]")
    table.add_row("[bold green]allowed_dirs[/bold green]", f"[bright_cyan]{', '.join(ctx.allowed_dirs) or '(unrestricted)'}[/bright_cyan]")
    table.add_row("[bold green]config[/bold green]", f"[bright_cyan]{ctx.config.loaded_from or '(none)'}[/bright_cyan]")
    table.add_row("[bold green]grep[/bold green]", f"[bright_cyan]{ctx.tools.get('fs_grep').searcher.name}[/bright_cyan]")
    table.add_row("[bold green]events[/bold green]", f"[bright_cyan]{ctx.events.path if ctx.events else '(off)'}[/bright_cyan]")
    console.print(Panel(table, title="[bold magenta]fsmcp[/bold magenta]", border_style="bright_blue"))
    if not ctx.allowed_dirs:
        console.print("[yellow]warning:[/yellow] no --allowed-dir given; any absolute path is reachable")

    try:
        ctx.server().serve(sys.stdin, sys.stdout)
    except KeyboardInterrupt:
        pass
    finally:
        ctx.close()


@app.command()
def tools(
    grep_backend: str = typer.Option(None, "--grep-backend", help="auto | ripgrep | python"),
):
    """List the registered tools and their parameters."""
    ctx = _context(None, None, None, False, grep_backend)
    table = Table(title="fsmcp tools")
    table.add_column("name", style="bold")
    table.add_column("category")
    table.add_column("read-only")
    table.add_column("parameters")
    for spec in ctx.tools.list_specs():
        required = set(spec.parameters.get("required", []))
        params = ", ".join(
            f"{k}*" if k in required else k for k in spec.parameters.get("properties", {})
        )
        table.add_row(spec.name, spec.category or "", "yes" if spec.read_only else "", params)
    out.print(table)


@app.command()
def call(
    name: str = typer.Argument(..., help="Tool name, e.g. fs_read."),
    args: str = typer.Option("{}", "--args", "-a", help="Tool arguments as a JSON object."),
    allowed_dir: list[str] = typer.Option(None, "--allowed-dir", help="Directory tools may touch. Repeatable."),
    cwd: Path = typer.Option(None, "--cwd", help="Starting directory for the shell tool."),
    config: Path = typer.Option(None, "--config", help="Explicit config file (JSON or YAML)."),
    grep_backend: str = typer.Option(None, "--grep-backend", help="auto | ripgrep | python"),
):
    """Run a single tool call locally and print the result."""
    try:
        parsed = json.loads(args)
    except ValueError as e:
        raise typer.BadParameter(f"--args is not valid JSON: {e}")
    ctx = _context(cwd, allowed_dir, config, None, grep_backend)
    res = ctx.tools.call(name, parsed, ctx.allowed_dirs)
    if res.is_error:
        console.print(Panel(Text(res.content), title=f"{name} [red]error[/red]", border_style="red"))
        raise typer.Exit(code=1)
    # raw text: rich would expand tabs and wrap long lines
    typer.echo(res.content)


@app.command()
def events(
    run: str = typer.Option(None, "--run", help="Run id (file name under the events directory, without .jsonl). Defaults to the latest run."),
    event_type: list[str] = typer.Option(None, "--type", help="Only show events of this type, e.g. tool.call. Repeatable."),
    tail: int = typer.Option(200, "--tail", help="Show last N events."),
    list_only: bool = typer.Option(False, "--list", help="List recorded runs instead of showing events."),
    events_dir: Path = typer.Option(None, "--events-dir", help="Events directory. Defaults to the user data dir."),
):
    """Show recorded tool-call events for a server run."""
    if list_only:
        runs = list_runs(events_dir)
        if not runs:
            console.print("No recorded runs.")
            return
        for rid in runs:
            out.print(rid, markup=False, highlight=False)
        return

    es = EventStore.open(run, events_dir) if run else EventStore.latest(events_dir)
    if es is None or not es.path.exists():
        console.print(f"[red]error:[/red] no events recorded{f' for run {run}' if run else ''}")
        raise typer.Exit(code=1)
    evs = list(es.iter_events(event_type or None))
    evs = evs[-tail:] if tail and tail > 0 else evs
    out.print(Panel.fit(f"run: {es.run_id}\nfile: {es.path}\nevents: {len(evs)}", title="Events"))
    for e in evs:
        ts = datetime.fromtimestamp(e.ts).strftime("%Y-%m-%d %H:%M:%S")
        out.print(Panel.fit(Text(json.dumps(e.data, ensure_ascii=False, indent=2)[:4000]), title=f"{ts}  {e.type}"))


if __name__ == "__main__":
    app()
