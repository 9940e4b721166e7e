"""HTTP fetching for govinfo bulk data.

``FetchClient`` performs exactly one GET per call and classifies the outcome:
a 2xx response returns the body bytes, anything else (non-2xx status,
connection error, timeout) raises ``FetchError``.

``ResilientFetcher`` wraps a client with bounded attempts and a linear
backoff between them (1 x base, 2 x base, ...).  When every attempt fails
the last ``FetchError`` is re-raised; deciding whether that aborts anything
is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

import aiohttp

LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """A single GET that did not produce a 2xx body."""

    def __init__(self, url: str, *, status: int | None = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else reason or "request failed"
        super().__init__(f"{detail}: {url}")


class Fetcher(Protocol):
    async def fetch(self, url: str) -> bytes: ...


class FetchClient:
    """One GET per call over a shared ``aiohttp.ClientSession``."""

    def __init__(self, session: aiohttp.ClientSession, *, timeout_s: float) -> None:
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)

    async def fetch(self, url: str) -> bytes:
        try:
            async with self.session.get(url, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    raise FetchError(url, status=resp.status)
                return await resp.read()
        except asyncio.TimeoutError as exc:
            raise FetchError(url, reason="timed out") from exc
        except aiohttp.ClientError as exc:
            raise FetchError(url, reason=f"{type(exc).__name__}: {exc}") from exc


class ResilientFetcher:
    """Retry a ``Fetcher`` up to ``attempts`` times with linear backoff."""

    def __init__(
        self,
        client: Fetcher,
        *,
        attempts: int = 3,
        backoff_s: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        self.client = client
        self.attempts = attempts
        self.backoff_s = backoff_s
        self._sleep = sleep

    async def fetch(self, url: str) -> bytes:
        for attempt in range(1, self.attempts + 1):
            try:
                return await self.client.fetch(url)
            except FetchError as exc:
                if attempt == self.attempts:
                    raise
                LOGGER.warning("Retry %d/%d for %s (%s)", attempt, self.attempts - 1, url, exc)
                await self._sleep(self.backoff_s * attempt)
        raise AssertionError("unreachable")
