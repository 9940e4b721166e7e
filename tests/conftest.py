from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from policy_subject_map.config import Settings
from policy_subject_map.fetch import FetchError

SITEMAP_BASE = "https://bulk.example.test/sitemap/bulkdata/BILLSTATUS"
DOC_BASE = "https://bulk.example.test/bulkdata/BILLSTATUS"


# ── BILLSTATUS markup ─────────────────────────────────────────────────────────


def _bill_xml(policy: str | None, terms: Iterable[str]) -> bytes:
    policy_xml = f"<policyArea><name>{policy}</name></policyArea>" if policy else ""
    items = "".join(f"<item><name>{t}</name></item>" for t in terms)
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<billStatus><bill>"
        "<number>1</number><type>HR</type>"
        f"{policy_xml}"
        f"<subjects><legislativeSubjects>{items}</legislativeSubjects></subjects>"
        "</bill></billStatus>"
    ).encode("utf-8")


@pytest.fixture
def bill_xml() -> Callable[..., bytes]:
    """``bill_xml("Energy", ["Oil", "Gas"])`` → BILLSTATUS document bytes."""
    return _bill_xml


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture
def write_bill(data_dir: Path) -> Callable[..., Path]:
    """Drop a document straight into the cache as if it had been downloaded."""

    def _write(
        name: str,
        policy: str | None,
        terms: Iterable[str],
        *,
        congress: int = 119,
        bill_type: str = "hr",
    ) -> Path:
        path = data_dir / str(congress) / bill_type / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(_bill_xml(policy, terms))
        return path

    return _write


@pytest.fixture
def settings(tmp_path: Path, data_dir: Path) -> Settings:
    return Settings(
        congresses=(119,),
        bill_types=("hr",),
        min_support=1,
        threshold=0.5,
        max_concurrency=4,
        retries=2,
        backoff_s=0.0,
        timeout_s=1.0,
        data_dir=data_dir,
        sitemap_base=SITEMAP_BASE,
        output=tmp_path / "map.json",
    )


# ── Network stubs ─────────────────────────────────────────────────────────────


def sitemap_payload(urls: Iterable[str]) -> bytes:
    locs = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{locs}</urlset>'
    ).encode("utf-8")


class StubFetcher:
    """Serves canned bodies by URL, records every call and peak concurrency.

    A URL missing from *responses*, or mapped to an exception, fails with
    ``FetchError``.
    """

    def __init__(self, responses: dict[str, bytes | Exception], *, delay_s: float = 0.0) -> None:
        self.responses = responses
        self.delay_s = delay_s
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay_s:
                await asyncio.sleep(self.delay_s)
            result = self.responses.get(url)
            if result is None:
                raise FetchError(url, status=404)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1

    def document_calls(self) -> list[str]:
        return [u for u in self.calls if not u.endswith("/sitemap.xml")]


@pytest.fixture
def make_fetcher() -> type[StubFetcher]:
    return StubFetcher


@pytest.fixture
def corpus() -> Callable[..., dict[str, bytes | Exception]]:
    """Build a responses map: one hr sitemap for 119 listing *docs* (name → bytes)."""

    def _build(docs: dict[str, bytes | Exception], *, congress: int = 119, bill_type: str = "hr"):
        urls = {f"{DOC_BASE}/{congress}/{bill_type}/{name}": body for name, body in docs.items()}
        responses: dict[str, bytes | Exception] = dict(urls)
        responses[f"{SITEMAP_BASE}/{congress}{bill_type}/sitemap.xml"] = sitemap_payload(urls)
        return responses

    return _build
