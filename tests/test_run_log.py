from __future__ import annotations

from pathlib import Path

import pytest

from policy_subject_map.run_log import RunLogger, RunRecord, load_recent_runs


class TestRunLogger:
    def test_ok_run_appended_with_phases(self, tmp_path: Path) -> None:
        log_path = tmp_path / "runs.jsonl"
        with RunLogger("build_map", log_path=log_path, meta={"congresses": [119]}) as log:
            with log.phase_ctx("Aggregate", detail="2/2 files"):
                pass
            log.phase("Cluster", duration_s=0.123)
            log.meta["policy_areas"] = 2

        [run] = load_recent_runs(log_path=log_path)
        assert run.task == "build_map"
        assert run.status == "ok"
        assert run.error is None
        assert [p["name"] for p in run.phases] == ["Aggregate", "Cluster"]
        assert run.phases[0]["detail"] == "2/2 files"
        assert run.phases[1]["duration_s"] == 0.12
        assert run.meta == {"congresses": [119], "policy_areas": 2}

    def test_error_recorded_and_not_suppressed(self, tmp_path: Path) -> None:
        log_path = tmp_path / "runs.jsonl"
        with pytest.raises(OSError):
            with RunLogger("build_map", log_path=log_path):
                raise OSError("disk full")

        [run] = load_recent_runs(log_path=log_path)
        assert run.status == "error"
        assert run.error == "OSError: disk full"

    def test_end_without_start_writes_nothing(self, tmp_path: Path) -> None:
        log_path = tmp_path / "runs.jsonl"
        assert RunLogger("x", log_path=log_path).end() is None
        assert not log_path.exists()


class TestLoadRecentRuns:
    def test_newest_first_with_limit_and_filter(self, tmp_path: Path) -> None:
        log_path = tmp_path / "runs.jsonl"
        for task in ["a", "b", "a", "a"]:
            with RunLogger(task, log_path=log_path, meta={"task": task}):
                pass

        runs = load_recent_runs(2, task="a", log_path=log_path)
        assert len(runs) == 2
        assert all(r.task == "a" for r in runs)
        assert runs[0].started_at >= runs[1].started_at

        assert len(load_recent_runs(10, log_path=log_path)) == 4

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_recent_runs(log_path=tmp_path / "nope.jsonl") == []

    def test_bad_lines_skipped(self, tmp_path: Path) -> None:
        log_path = tmp_path / "runs.jsonl"
        good = RunRecord(run_id="abc", task="build_map", started_at="2025-01-01T00:00:00+00:00")
        log_path.write_text("not json\n[1, 2]\n\n" + good.to_json_line() + "\n", encoding="utf-8")
        [run] = load_recent_runs(log_path=log_path)
        assert run.run_id == "abc"
