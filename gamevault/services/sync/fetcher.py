"""Rate-limited HTTP fetching for sync runs.

The upstream catalog allows only a few requests at a time and answers
``429 Too Many Requests`` when pushed harder. :class:`RateLimitedFetcher`
bounds concurrency with a semaphore, spaces calls out with a fixed delay
taken inside the slot, and backs off on throttling responses using the
server's ``Retry-After`` hint or an exponential schedule. The slot is given
back before any backoff sleep so other requests can proceed.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable

import httpx

from gamevault.infrastructure.observability import (
    Timer,
    get_logger,
    record_fetch,
    record_throttle,
)
from gamevault.services.errors import FetchError, FetchExhausted
from gamevault.services.progress import ProgressTracker

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

TOO_MANY_REQUESTS = 429
FETCH_DURATION = "fetch_duration_seconds"


def _redact(url: str) -> str:
    """Drop the API key from a URL before it reaches a log line."""
    try:
        return str(httpx.URL(url).copy_remove_param("key"))
    except (TypeError, ValueError):
        return url


def parse_retry_after(value: str | None) -> float | None:
    """Parse a ``Retry-After`` header given as delta seconds or an HTTP date."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class RateLimitedFetcher:
    """Fetch URLs under a shared concurrency bound with throttle backoff."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_concurrent_requests: int = 3,
        min_delay_seconds: float = 1.0,
        max_retries: int = 15,
        backoff_base_seconds: float = 30.0,
        progress: ProgressTracker | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._client = client
        self.max_concurrent_requests = max(1, max_concurrent_requests)
        self.min_delay_seconds = max(0.0, min_delay_seconds)
        self.max_retries = max(1, max_retries)
        self.backoff_base_seconds = max(0.0, backoff_base_seconds)
        self._progress = progress
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(self.max_concurrent_requests)

    def _backoff_delay(self, retry_count: int) -> float:
        return self.backoff_base_seconds * (2**retry_count)

    async def _attempt(self, url: str) -> httpx.Response:
        async with self._semaphore:
            if self.min_delay_seconds > 0:
                await self._sleep(self.min_delay_seconds)
            try:
                with Timer(FETCH_DURATION, help_text="Outbound catalog request latency"):
                    response = await self._client.get(url)
            except httpx.HTTPError as exc:
                record_fetch("error")
                raise FetchError(f"Request to {_redact(url)} failed: {exc}", url=url) from exc
        record_fetch(str(response.status_code))
        return response

    async def fetch(self, url: str, operation_id: str | None = None) -> str:
        """Return the response body for ``url``.

        Raises :class:`FetchExhausted` once ``max_retries`` throttling
        responses have been seen and :class:`FetchError` for any other
        non-success status or transport failure.
        """
        retry_count = 0
        while True:
            response = await self._attempt(url)
            if response.status_code == TOO_MANY_REQUESTS:
                record_throttle()
                retry_count += 1
                if retry_count >= self.max_retries:
                    logger.error(
                        "Giving up on %s after %d throttled attempts",
                        _redact(url),
                        retry_count,
                    )
                    raise FetchExhausted(url, retry_count)
                wait = parse_retry_after(response.headers.get("Retry-After"))
                if wait is None:
                    wait = self._backoff_delay(retry_count)
                logger.warning(
                    "Throttled on %s, retry %d/%d in %.1f seconds",
                    _redact(url),
                    retry_count,
                    self.max_retries,
                    wait,
                )
                if operation_id and self._progress is not None:
                    self._progress.mark_rate_limited(
                        operation_id,
                        wait,
                        f"Rate limited by upstream, retrying in {wait:.0f} seconds",
                    )
                await self._sleep(wait)
                continue
            if not response.is_success:
                raise FetchError(
                    f"HTTP {response.status_code} for {_redact(url)}",
                    url=url,
                    status=response.status_code,
                )
            return response.text


__all__ = ["RateLimitedFetcher", "parse_retry_after"]
