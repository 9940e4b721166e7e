"""Corpus downloader: govinfo BILLSTATUS sitemaps → local XML cache.

For each (congress, bill type) pair:

1. Fetch ``{base}/{congress}{type}/sitemap.xml`` and pull every
   ``<loc>....xml</loc>`` out of it with a regex (no XML parse needed).
   If the sitemap can't be fetched the pair is skipped with a warning;
   not every bill type exists in every Congress.
2. Download each listed document that is not already cached.  At most
   ``max_concurrency`` requests are in flight at once (one semaphore shared
   by every pair), and each download finishes independently of the others.
3. A document whose retries are exhausted is logged and skipped.  Filesystem
   errors are not caught: a cache we can't write is fatal.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from .cache import is_cached, write_bytes_atomic
from .fetch import FetchError, Fetcher
from .models import CorpusScope, DocumentRef, DownloadStats

LOGGER = logging.getLogger(__name__)

_RE_LOC = re.compile(r"<loc>\s*([^<\s]+\.xml)\s*</loc>", re.IGNORECASE)


def sitemap_url(base: str, congress: int, bill_type: str) -> str:
    return f"{base.rstrip('/')}/{congress}{bill_type}/sitemap.xml"


def parse_sitemap(payload: str) -> list[str]:
    """Return the document URLs embedded in a sitemap, de-duplicated in order."""
    return list(dict.fromkeys(m.group(1) for m in _RE_LOC.finditer(payload)))


class CorpusDownloader:
    def __init__(
        self,
        fetcher: Fetcher,
        data_dir: Path,
        *,
        sitemap_base: str,
        max_concurrency: int = 12,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.fetcher = fetcher
        self.data_dir = data_dir
        self.sitemap_base = sitemap_base
        self.max_concurrency = max_concurrency

    async def discover(self, congress: int, bill_type: str) -> list[DocumentRef] | None:
        """Document refs listed in the sitemap, or ``None`` if it is unavailable."""
        url = sitemap_url(self.sitemap_base, congress, bill_type)
        try:
            payload = await self.fetcher.fetch(url)
        except FetchError as exc:
            LOGGER.warning("No sitemap for %s%s, skipping (%s)", congress, bill_type, exc)
            return None
        urls = parse_sitemap(payload.decode("utf-8", errors="replace"))
        return [DocumentRef(url=u, congress=congress, bill_type=bill_type) for u in urls]

    async def _download_one(
        self, ref: DocumentRef, stats: DownloadStats, sem: asyncio.Semaphore
    ) -> None:
        dst = ref.cache_path(self.data_dir)
        if is_cached(dst):
            stats.cached += 1
            return
        async with sem:
            try:
                body = await self.fetcher.fetch(ref.url)
            except FetchError as exc:
                LOGGER.warning("Giving up on %s: %s", ref.url, exc)
                stats.failed += 1
                return
        await asyncio.to_thread(write_bytes_atomic, dst, body)
        stats.downloaded += 1

    async def download_scope(
        self, congress: int, bill_type: str, sem: asyncio.Semaphore | None = None
    ) -> DownloadStats:
        stats = DownloadStats(scopes=1)
        refs = await self.discover(congress, bill_type)
        if refs is None:
            stats.scopes_skipped = 1
            return stats

        (self.data_dir / str(congress) / bill_type).mkdir(parents=True, exist_ok=True)
        stats.discovered = len(refs)
        LOGGER.info("%s%s: %d files listed", congress, bill_type, len(refs))

        if sem is None:
            sem = asyncio.Semaphore(self.max_concurrency)
        await asyncio.gather(*(self._download_one(ref, stats, sem) for ref in refs))
        LOGGER.info(
            "%s%s: %d downloaded, %d cached, %d failed",
            congress,
            bill_type,
            stats.downloaded,
            stats.cached,
            stats.failed,
        )
        return stats

    async def download(self, scope: CorpusScope) -> DownloadStats:
        total = DownloadStats()
        sem = asyncio.Semaphore(self.max_concurrency)
        for congress, bill_type in scope.pairs():
            total.merge(await self.download_scope(congress, bill_type, sem))
        LOGGER.info(
            "Download done: %d listed, %d new, %d cached, %d failed, %d/%d scopes skipped",
            total.discovered,
            total.downloaded,
            total.cached,
            total.failed,
            total.scopes_skipped,
            total.scopes,
        )
        return total
