"""Append-only JSONL history of map builds.

Each run of the pipeline writes one JSON object per line: run id, start/end
timestamps, per-phase durations, status and task-specific meta (congresses,
thresholds, file counts).  ``scripts/log_dashboard.py`` reads it back to show
where time goes.

Usage:
    from policy_subject_map.run_log import RunLogger

    with RunLogger("build_map", meta={"congresses": [119]}) as log:
        with log.phase_ctx("Download"):
            ...
        log.phase("Cluster", duration_s=0.4, detail="32 policy areas")
    # On exit (ok or error) the run is appended to .run_log.jsonl
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

LOGGER = logging.getLogger(__name__)

DEFAULT_LOG_PATH = Path(".run_log.jsonl")


def get_log_path() -> Path:
    return Path(os.environ.get("PSM_RUN_LOG", str(DEFAULT_LOG_PATH)))


@dataclass
class RunRecord:
    """One line in the run log."""

    run_id: str
    task: str
    started_at: str  # ISO, UTC
    ended_at: str | None = None
    duration_s: float | None = None
    status: str = "running"  # ok | error | running
    phases: list[dict] = field(default_factory=list)  # [{name, duration_s, detail}]
    error: str | None = None
    meta: dict = field(default_factory=dict)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    @classmethod
    def from_json_line(cls, line: str) -> RunRecord | None:
        line = line.strip()
        if not line:
            return None
        try:
            d = json.loads(line)
        except json.JSONDecodeError:
            return None
        if not isinstance(d, dict):
            return None
        return cls(
            run_id=str(d.get("run_id", "")),
            task=str(d.get("task", "")),
            started_at=str(d.get("started_at", "")),
            ended_at=d.get("ended_at"),
            duration_s=d.get("duration_s"),
            status=d.get("status", "ok"),
            phases=list(d.get("phases") or []),
            error=d.get("error"),
            meta=dict(d.get("meta") or {}),
        )


class RunLogger:
    """Context manager that times phases and appends the finished run."""

    def __init__(self, task: str, *, log_path: Path | None = None, meta: dict | None = None):
        self.task = task
        self.log_path = log_path if log_path is not None else get_log_path()
        self.meta = dict(meta or {})
        self.run_id = uuid.uuid4().hex[:8]
        self._started_at: str | None = None
        self._t0: float | None = None
        self._phases: list[dict] = []

    def start(self) -> None:
        self._started_at = datetime.now(timezone.utc).isoformat()
        self._t0 = time.perf_counter()
        self._phases = []

    def phase(self, name: str, *, duration_s: float, detail: str | None = None) -> None:
        self._phases.append({"name": name, "duration_s": round(duration_s, 2), "detail": detail})

    @contextmanager
    def phase_ctx(self, name: str, detail: str | None = None):
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.phase(name, duration_s=time.perf_counter() - t0, detail=detail)

    def end(self, status: str = "ok", error: str | None = None) -> RunRecord | None:
        if self._t0 is None:
            return None
        record = RunRecord(
            run_id=self.run_id,
            task=self.task,
            started_at=self._started_at or "",
            ended_at=datetime.now(timezone.utc).isoformat(),
            duration_s=round(time.perf_counter() - self._t0, 2),
            status=status,
            phases=self._phases,
            error=error,
            meta=self.meta,
        )
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(record.to_json_line() + "\n")
        except OSError as e:
            LOGGER.warning("Run log append failed: %s", e)
        return record

    def __enter__(self) -> RunLogger:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.end("ok")
        else:
            error = f"{exc_type.__name__}: {exc_val}" if exc_val else exc_type.__name__
            self.end("error", error)
        return None  # do not suppress


def load_recent_runs(
    n: int = 20, *, task: str | None = None, log_path: Path | None = None
) -> list[RunRecord]:
    """The last *n* runs, newest first, optionally filtered by task."""
    path = log_path if log_path is not None else get_log_path()
    if not path.exists():
        return []
    records: list[RunRecord] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            rec = RunRecord.from_json_line(line)
            if rec is not None and (task is None or rec.task == task):
                records.append(rec)
    return records[::-1][:n]
