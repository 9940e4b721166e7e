"""Orchestration: Download → Aggregate → Cluster → Export.

A strictly linear, one-shot batch job.  The only state carried between runs
is the XML cache under ``settings.data_dir``; the matrices are rebuilt from
scratch every time.  Each run is recorded in the run log.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

import aiohttp
from rich.console import Console
from rich.table import Table

from .clustering import ClusterMap, build_clusters
from .config import Settings
from .downloader import CorpusDownloader
from .exporter import write_clusters
from .fetch import FetchClient, Fetcher, ResilientFetcher
from .matrix import CooccurrenceMatrix, build_matrix_from_cache
from .models import BuildStats, CorpusScope, DownloadStats
from .run_log import RunLogger

LOGGER = logging.getLogger(__name__)

console = Console()


@dataclass
class PipelineResult:
    download: DownloadStats | None
    build: BuildStats | None
    clusters: ClusterMap | None
    output_path: Path | None


async def download_corpus(settings: Settings, *, fetcher: Fetcher | None = None) -> DownloadStats:
    """Mirror every sitemap-listed document for the configured scope.

    *fetcher* replaces the real HTTP stack (tests pass a stub).  Otherwise an
    ``aiohttp`` session is opened for the duration of the download.
    """
    scope = CorpusScope(settings.congresses, settings.bill_types)
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if fetcher is not None:
        downloader = CorpusDownloader(
            fetcher,
            settings.data_dir,
            sitemap_base=settings.sitemap_base,
            max_concurrency=settings.max_concurrency,
        )
        return await downloader.download(scope)

    connector = aiohttp.TCPConnector(limit=settings.max_concurrency)
    async with aiohttp.ClientSession(connector=connector) as session:
        client = FetchClient(session, timeout_s=settings.timeout_s)
        resilient = ResilientFetcher(
            client, attempts=settings.retries, backoff_s=settings.backoff_s
        )
        downloader = CorpusDownloader(
            resilient,
            settings.data_dir,
            sitemap_base=settings.sitemap_base,
            max_concurrency=settings.max_concurrency,
        )
        return await downloader.download(scope)


def aggregate(settings: Settings) -> tuple[CooccurrenceMatrix, BuildStats]:
    return build_matrix_from_cache(settings.data_dir, settings.congresses)


def run_pipeline(
    settings: Settings,
    *,
    skip_download: bool = False,
    download_only: bool = False,
    fetcher: Fetcher | None = None,
    log_path: Path | None = None,
) -> PipelineResult:
    """Run every stage in order.  ``OSError`` from the cache or output is fatal."""
    meta = {
        "congresses": list(settings.congresses),
        "bill_types": list(settings.bill_types),
        "min_support": settings.min_support,
        "threshold": settings.threshold,
    }
    result = PipelineResult(download=None, build=None, clusters=None, output_path=None)

    with RunLogger("build_map", meta=meta, log_path=log_path) as log:
        if not skip_download:
            t0 = time.perf_counter()
            result.download = asyncio.run(download_corpus(settings, fetcher=fetcher))
            log.phase(
                "Download",
                duration_s=time.perf_counter() - t0,
                detail=f"{result.download.downloaded} new, {result.download.cached} cached",
            )
            log.meta["downloaded"] = result.download.downloaded
            log.meta["download_failed"] = result.download.failed
        if download_only:
            return result

        t0 = time.perf_counter()
        matrix, result.build = aggregate(settings)
        log.phase(
            "Aggregate",
            duration_s=time.perf_counter() - t0,
            detail=f"{result.build.files_contributing}/{result.build.files_parsed} files",
        )
        log.meta["files_parsed"] = result.build.files_parsed
        log.meta["files_contributing"] = result.build.files_contributing

        with log.phase_ctx("Cluster"):
            result.clusters = build_clusters(
                matrix, min_support=settings.min_support, threshold=settings.threshold
            )

        with log.phase_ctx("Export", detail=str(settings.output_path)):
            result.output_path = write_clusters(result.clusters, settings.output_path)
        log.meta["policy_areas"] = len(result.clusters)

    return result


def print_summary(result: PipelineResult) -> None:
    """Rich summary of what the run downloaded, parsed and clustered."""
    counts = Table(title="Run summary", show_header=False)
    counts.add_column("Metric", style="cyan")
    counts.add_column("Value", justify="right")
    if result.download is not None:
        d = result.download
        counts.add_row("Sitemaps skipped", f"{d.scopes_skipped}/{d.scopes}")
        counts.add_row("Files listed", str(d.discovered))
        counts.add_row("Downloaded", str(d.downloaded))
        counts.add_row("Already cached", str(d.cached))
        counts.add_row("Failed", str(d.failed))
    if result.build is not None:
        b = result.build
        counts.add_row("Files parsed", str(b.files_parsed))
        counts.add_row("Files contributing", str(b.files_contributing))
        counts.add_row("Term hits", str(b.term_hits))
        counts.add_row("No policy area", str(b.missing_policy))
        counts.add_row("No subject terms", str(b.empty_terms))
        counts.add_row("Malformed", str(b.malformed))
    console.print(counts)

    clusters = result.clusters
    if clusters:
        areas = Table(title="Policy areas")
        areas.add_column("Policy area")
        areas.add_column("Terms", justify="right")
        for policy in sorted(clusters, key=lambda p: (-len(clusters[p]), p)):
            areas.add_row(policy, str(len(clusters[policy])))
        console.print(areas)

    if result.output_path is not None:
        console.print(f"[green]Wrote {result.output_path}[/green]")
