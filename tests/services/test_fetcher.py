"""Tests for the rate-limited fetcher."""

import asyncio
from email.utils import format_datetime
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from gamevault.infrastructure.observability import get_counter_value, get_metrics_summary
from gamevault.services.errors import FetchError, FetchExhausted
from gamevault.services.progress import ProgressTracker
from gamevault.services.sync.fetcher import RateLimitedFetcher, parse_retry_after

URL = "https://store.example.com/api/appdetails?appids=1"


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _sequence_transport(responses):
    """Serve the given responses in order, repeating the last one."""
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    return httpx.MockTransport(handler)


def _fetcher(transport, sleep, **kwargs) -> RateLimitedFetcher:
    kwargs.setdefault("min_delay_seconds", 0.0)
    return RateLimitedFetcher(httpx.AsyncClient(transport=transport), sleep=sleep, **kwargs)


class TestRetries:
    def test_throttles_then_success_returns_body(self):
        sleep = RecordingSleep()
        transport = _sequence_transport(
            [httpx.Response(429), httpx.Response(429), httpx.Response(200, text="ok")]
        )

        async def run():
            fetcher = _fetcher(transport, sleep, max_retries=3, backoff_base_seconds=30.0)
            return await fetcher.fetch(URL)

        assert asyncio.run(run()) == "ok"
        assert sleep.calls == [60.0, 120.0]
        assert get_counter_value("fetch_throttled_total") == 2
        assert get_counter_value("fetch_requests_total", {"status": "200"}) == 1
        latency = get_metrics_summary()["histograms"]["fetch_duration_seconds"]["default"]
        assert latency["count"] == 3

    def test_hitting_the_bound_raises_exhausted(self):
        sleep = RecordingSleep()
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429)

        async def run():
            fetcher = _fetcher(httpx.MockTransport(handler), sleep, max_retries=3)
            await fetcher.fetch(URL)

        with pytest.raises(FetchExhausted) as excinfo:
            asyncio.run(run())
        assert isinstance(excinfo.value, FetchError)
        assert len(calls) == 3
        assert len(sleep.calls) == 2

    def test_retry_after_header_overrides_backoff(self):
        sleep = RecordingSleep()
        transport = _sequence_transport(
            [httpx.Response(429, headers={"Retry-After": "7"}), httpx.Response(200, text="ok")]
        )

        async def run():
            return await _fetcher(transport, sleep).fetch(URL)

        assert asyncio.run(run()) == "ok"
        assert sleep.calls == [7.0]

    @pytest.mark.parametrize("status", [400, 403, 404, 500, 503])
    def test_other_errors_fail_immediately(self, status):
        sleep = RecordingSleep()
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(status)

        async def run():
            await _fetcher(httpx.MockTransport(handler), sleep).fetch(URL)

        with pytest.raises(FetchError) as excinfo:
            asyncio.run(run())
        assert excinfo.value.status == status
        assert len(calls) == 1
        assert sleep.calls == []

    def test_transport_error_becomes_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def run():
            await _fetcher(httpx.MockTransport(handler), RecordingSleep()).fetch(URL)

        with pytest.raises(FetchError):
            asyncio.run(run())
        assert get_counter_value("fetch_requests_total", {"status": "error"}) == 1


def test_min_delay_is_applied_before_each_call():
    sleep = RecordingSleep()
    transport = _sequence_transport([httpx.Response(200, text="ok")])

    async def run():
        fetcher = _fetcher(transport, sleep, min_delay_seconds=1.0)
        await fetcher.fetch(URL)
        await fetcher.fetch(URL)

    asyncio.run(run())
    assert sleep.calls == [1.0, 1.0]


def test_throttle_reports_rate_limited_progress():
    progress = ProgressTracker()
    progress.set_progress("op-1", 42.0, "Processing Items", "Processed 5/10 items")
    seen = []

    async def sleep(seconds):
        seen.append(progress.try_get_progress("op-1"))

    transport = _sequence_transport([httpx.Response(429), httpx.Response(200, text="ok")])

    async def run():
        fetcher = _fetcher(transport, sleep, progress=progress, backoff_base_seconds=5.0)
        await fetcher.fetch(URL, operation_id="op-1")

    asyncio.run(run())
    info = seen[0]
    assert info.phase == "Rate Limited"
    assert info.percent == 42.0
    assert info.retry_after_seconds == 10.0
    assert "10" in info.message


def test_backoff_sleep_does_not_hold_the_slot():
    in_flight = 0
    peak = 0
    throttled_once: set[str] = set()
    gate = None

    async def run():
        nonlocal gate
        gate = asyncio.Event()

        async def slow_sleep(seconds):
            # Backoff waits block until every other request has gone through.
            if seconds > 1:
                await gate.wait()

        class CountingTransport(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                url = str(request.url)
                if url.endswith("=0") and url not in throttled_once:
                    throttled_once.add(url)
                    return httpx.Response(429)
                return httpx.Response(200, text=url)

        fetcher = RateLimitedFetcher(
            httpx.AsyncClient(transport=CountingTransport()),
            max_concurrent_requests=1,
            min_delay_seconds=0.0,
            backoff_base_seconds=5.0,
            sleep=slow_sleep,
        )
        urls = [f"https://store.example.com/api/appdetails?appids={i}" for i in range(6)]
        throttled = asyncio.create_task(fetcher.fetch(urls[0]))
        others = await asyncio.wait_for(
            asyncio.gather(*(fetcher.fetch(url) for url in urls[1:])), timeout=5
        )
        gate.set()
        return await throttled, others

    first, others = asyncio.run(run())
    assert first.endswith("=0")
    assert len(others) == 5
    assert peak == 1


@pytest.mark.parametrize(
    "value,expected",
    [(None, None), ("", None), ("12", 12.0), ("-3", 0.0), ("soon", None)],
)
def test_parse_retry_after_seconds(value, expected):
    assert parse_retry_after(value) == expected


def test_parse_retry_after_http_date():
    when = datetime.now(timezone.utc) + timedelta(seconds=120)

    wait = parse_retry_after(format_datetime(when, usegmt=True))

    assert wait is not None
    assert 100 <= wait <= 121


def test_in_flight_requests_are_bounded_by_slots():
    in_flight = 0
    peak = 0

    class CountingTransport(httpx.AsyncBaseTransport):
        async def handle_async_request(self, request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200, text="ok")

    async def run():
        fetcher = RateLimitedFetcher(
            httpx.AsyncClient(transport=CountingTransport()),
            max_concurrent_requests=3,
            min_delay_seconds=0.0,
        )
        return await asyncio.gather(*(fetcher.fetch(URL) for _ in range(10)))

    assert asyncio.run(run()) == ["ok"] * 10
    assert peak == 3
