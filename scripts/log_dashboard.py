#!/usr/bin/env python3
"""Terminal view of recent map builds from the run log.

Usage:
    python scripts/log_dashboard.py              # last 20 runs
    python scripts/log_dashboard.py --tail 50
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

from rich.console import Console  # noqa: E402
from rich.table import Table  # noqa: E402

from policy_subject_map.run_log import get_log_path, load_recent_runs  # noqa: E402


def _t(s: str) -> str:
    """Shorten an ISO timestamp to local month/day time."""
    try:
        return datetime.fromisoformat(s).astimezone().strftime("%m/%d %H:%M")
    except ValueError:
        return s[:16]


def _fmt_dur(s: float | None) -> str:
    if s is None:
        return "-"
    if s >= 60:
        return f"{s / 60:.1f}m"
    return f"{s:.1f}s"


def main() -> int:
    parser = argparse.ArgumentParser(description="View recent build_map runs.")
    parser.add_argument("--tail", "-n", type=int, default=20, help="Runs to show (default: 20).")
    parser.add_argument("--task", default=None, help="Filter by task name.")
    args = parser.parse_args()

    console = Console()
    path = get_log_path()
    runs = load_recent_runs(args.tail, task=args.task, log_path=path)
    if not runs:
        console.print(f"[dim]No runs in {path}. Run scripts/build_map.py first.[/dim]")
        return 0

    table = Table(title=f"Run log ({len(runs)} newest)")
    table.add_column("Started")
    table.add_column("Run")
    table.add_column("Status")
    table.add_column("Total", justify="right")
    table.add_column("Slowest phase")
    table.add_column("Files", justify="right")
    table.add_column("Areas", justify="right")

    for r in runs:
        slowest = max(r.phases, key=lambda p: p.get("duration_s") or 0, default=None)
        slowest_txt = f"{slowest['name']} {_fmt_dur(slowest.get('duration_s'))}" if slowest else ""
        status = f"[green]{r.status}[/green]" if r.status == "ok" else f"[red]{r.status}[/red]"
        files = ""
        if "files_parsed" in r.meta:
            files = f"{r.meta.get('files_contributing', 0)}/{r.meta['files_parsed']}"
        table.add_row(
            _t(r.started_at),
            f"#{r.run_id}",
            status,
            _fmt_dur(r.duration_s),
            slowest_txt,
            files,
            str(r.meta.get("policy_areas", "")),
        )
        if r.error:
            table.add_row("", "", f"[red]{r.error}[/red]", "", "", "", "")

    console.print(table)
    console.print(f"[dim]Log file: {path}[/dim]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
