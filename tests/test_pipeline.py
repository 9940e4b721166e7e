"""End-to-end runs of the pipeline against stubbed bulk data."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path

import pytest

from policy_subject_map.config import Settings
from policy_subject_map.pipeline import print_summary, run_pipeline
from policy_subject_map.run_log import load_recent_runs

EXPECTED_TWO_DOC_MAP = {"Energy": ["Gas", "Oil"], "Environment": ["Conservation", "Gas"]}


class TestFromCache:
    def test_two_document_scenario(self, settings: Settings, write_bill, tmp_path: Path) -> None:
        write_bill("doc1.xml", "Energy", ["Oil", "Gas"])
        write_bill("doc2.xml", "Environment", ["Gas", "Conservation"])

        result = run_pipeline(settings, skip_download=True, log_path=tmp_path / "runs.jsonl")

        assert result.download is None
        assert result.output_path == settings.output_path
        assert json.loads(settings.output_path.read_text(encoding="utf-8")) == EXPECTED_TWO_DOC_MAP
        assert result.build is not None
        assert result.build.files_parsed == 2
        assert result.build.files_contributing == 2

    def test_rerun_is_byte_identical(self, settings: Settings, write_bill, tmp_path: Path) -> None:
        write_bill("doc1.xml", "Energy", ["Oil", "Gas"])
        write_bill("doc2.xml", "Environment", ["Gas", "Conservation"])
        log_path = tmp_path / "runs.jsonl"

        run_pipeline(settings, skip_download=True, log_path=log_path)
        first = settings.output_path.read_bytes()
        run_pipeline(settings, skip_download=True, log_path=log_path)
        assert settings.output_path.read_bytes() == first

    def test_empty_cache_still_writes_map(self, settings: Settings, tmp_path: Path) -> None:
        result = run_pipeline(settings, skip_download=True, log_path=tmp_path / "runs.jsonl")
        assert result.build is not None
        assert result.build.files_parsed == 0
        assert json.loads(settings.output_path.read_text(encoding="utf-8")) == {}

    def test_unwritable_output_is_fatal_and_logged(
        self, settings: Settings, write_bill, tmp_path: Path
    ) -> None:
        write_bill("doc1.xml", "Energy", ["Oil"])
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        log_path = tmp_path / "runs.jsonl"
        bad = dataclasses.replace(settings, output=blocker / "map.json")

        with pytest.raises(OSError):
            run_pipeline(bad, skip_download=True, log_path=log_path)

        [run] = load_recent_runs(log_path=log_path)
        assert run.status == "error"
        assert run.error is not None


class TestWithDownload:
    def test_download_then_build(
        self, settings: Settings, make_fetcher, corpus, bill_xml, tmp_path: Path
    ) -> None:
        responses = corpus(
            {
                "BILLSTATUS-119hr1.xml": bill_xml("Energy", ["Oil", "Gas"]),
                "BILLSTATUS-119hr2.xml": bill_xml("Environment", ["Gas", "Conservation"]),
            }
        )
        log_path = tmp_path / "runs.jsonl"

        result = run_pipeline(settings, fetcher=make_fetcher(responses), log_path=log_path)

        assert result.download is not None
        assert result.download.downloaded == 2
        assert json.loads(settings.output_path.read_text(encoding="utf-8")) == EXPECTED_TWO_DOC_MAP

        [run] = load_recent_runs(log_path=log_path)
        assert run.status == "ok"
        assert [p["name"] for p in run.phases] == ["Download", "Aggregate", "Cluster", "Export"]
        assert run.meta["files_contributing"] == 2
        assert run.meta["policy_areas"] == 2

    def test_skipped_files_are_not_fatal(
        self, settings: Settings, make_fetcher, corpus, bill_xml, tmp_path: Path
    ) -> None:
        responses = corpus(
            {
                "BILLSTATUS-119hr1.xml": bill_xml("Energy", ["Oil"]),
                "BILLSTATUS-119hr2.xml": b"<billStatus><bill/></billStatus>",
            }
        )
        wide = dataclasses.replace(settings, bill_types=("hr", "sres"))

        result = run_pipeline(
            wide, fetcher=make_fetcher(responses), log_path=tmp_path / "runs.jsonl"
        )

        assert result.download is not None
        assert result.download.scopes_skipped == 1
        assert result.build is not None
        assert result.build.missing_policy == 1
        assert json.loads(wide.output_path.read_text(encoding="utf-8")) == {"Energy": ["Oil"]}

    def test_download_only_writes_no_map(
        self, settings: Settings, make_fetcher, corpus, bill_xml, tmp_path: Path
    ) -> None:
        responses = corpus({"BILLSTATUS-119hr1.xml": bill_xml("Energy", ["Oil"])})
        result = run_pipeline(
            settings,
            download_only=True,
            fetcher=make_fetcher(responses),
            log_path=tmp_path / "runs.jsonl",
        )
        assert result.build is None
        assert not settings.output_path.exists()
        assert (settings.data_dir / "119" / "hr" / "BILLSTATUS-119hr1.xml").is_file()


class TestPrintSummary:
    def test_renders_without_error(
        self, settings: Settings, write_bill, tmp_path: Path, capsys
    ) -> None:
        write_bill("doc1.xml", "Energy", ["Oil"])
        result = run_pipeline(settings, skip_download=True, log_path=tmp_path / "runs.jsonl")
        print_summary(result)
        out = capsys.readouterr().out
        assert "Files contributing" in out
        assert "Energy" in out
