from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse


@dataclass(frozen=True)
class CorpusScope:
    congresses: tuple[int, ...]  # e.g. (116, 117, 118, 119)
    bill_types: tuple[str, ...]  # e.g. ("hr", "s", "hjres")

    def pairs(self) -> Iterator[tuple[int, str]]:
        for congress in self.congresses:
            for bill_type in self.bill_types:
                yield congress, bill_type


@dataclass(frozen=True)
class DocumentRef:
    url: str
    congress: int
    bill_type: str

    @property
    def basename(self) -> str:
        return Path(urlparse(self.url).path).name

    def cache_path(self, data_dir: Path) -> Path:
        """``{data_dir}/{congress}/{bill_type}/{basename}``."""
        return data_dir / str(self.congress) / self.bill_type / self.basename


@dataclass
class DownloadStats:
    scopes: int = 0
    scopes_skipped: int = 0  # sitemap missing or unreachable
    discovered: int = 0
    cached: int = 0  # already on disk, no request made
    downloaded: int = 0
    failed: int = 0  # retries exhausted, file skipped

    def merge(self, other: DownloadStats) -> None:
        self.scopes += other.scopes
        self.scopes_skipped += other.scopes_skipped
        self.discovered += other.discovered
        self.cached += other.cached
        self.downloaded += other.downloaded
        self.failed += other.failed


@dataclass
class BuildStats:
    files_parsed: int = 0
    files_contributing: int = 0  # yielded a policy area and at least one term
    term_hits: int = 0
    missing_policy: int = 0
    empty_terms: int = 0
    malformed: int = 0
