"""Tests for exchange-rate lookups and price normalization."""

import asyncio

import httpx
import pytest

from gamevault.domain.models import PriceQuote
from gamevault.infrastructure.http import CatalogEndpoints
from gamevault.services.sync.currency import CurrencyNormalizer
from gamevault.services.sync.fetcher import RateLimitedFetcher


def _normalizer(handler, no_sleep, **kwargs) -> CurrencyNormalizer:
    fetcher = RateLimitedFetcher(
        httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        min_delay_seconds=0.0,
        sleep=no_sleep,
    )
    return CurrencyNormalizer(
        fetcher,
        CatalogEndpoints(exchange_rate_base_url="https://rates.example.com/v4/latest"),
        sleep=no_sleep,
        **kwargs,
    )


def _rates_handler(*rates, calls=None):
    """Answer successive lookups with the given USD rates, repeating the last."""
    queue = list(rates)

    def handler(request):
        if calls is not None:
            calls.append(str(request.url))
        rate = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(200, json={"rates": {"USD": rate, "EUR": 1.0}})

    return handler


def test_first_plausible_rate_is_returned(no_sleep):
    calls = []
    normalizer = _normalizer(_rates_handler(1.08, 2.0, calls=calls), no_sleep)

    rate = asyncio.run(normalizer.get_rate("EUR", "USD"))

    assert rate == 1.08
    assert calls == ["https://rates.example.com/v4/latest/EUR"]


def test_all_attempts_implausible_returns_zero(no_sleep):
    calls = []
    normalizer = _normalizer(_rates_handler(15000.0, calls=calls), no_sleep)

    assert asyncio.run(normalizer.get_rate("EUR", "USD")) == 0.0
    assert len(calls) == 5


def test_implausible_rate_is_retried_until_plausible(no_sleep):
    normalizer = _normalizer(_rates_handler(5000.0, 0.0, 1.1), no_sleep)

    assert asyncio.run(normalizer.get_rate("EUR", "USD")) == 1.1


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"rates": {"GBP": 0.8}}),
        httpx.Response(200, json={"result": "error"}),
        httpx.Response(200, text="not json"),
        httpx.Response(500),
    ],
)
def test_lookup_problems_mean_do_not_convert(response, no_sleep):
    normalizer = _normalizer(lambda request: response, no_sleep)

    assert asyncio.run(normalizer.get_rate("EUR", "USD")) == 0.0


def test_same_currency_needs_no_lookup(no_sleep):
    def handler(request):  # pragma: no cover - must not be called
        raise AssertionError("unexpected lookup")

    assert asyncio.run(_normalizer(handler, no_sleep).get_rate("usd", "USD")) == 1.0


def test_normalize_quote_converts_in_place(no_sleep):
    normalizer = _normalizer(_rates_handler(1.25), no_sleep)
    quote = PriceQuote(currency="EUR", initial=2000, final=1000, discount_percent=50)

    converted = asyncio.run(normalizer.normalize_quote(quote))

    assert converted is True
    assert (quote.currency, quote.initial, quote.final) == ("USD", 2500, 1250)
    assert quote.final_formatted == "$12.50"
    assert quote.discount_percent == 50


def test_reference_currency_quote_is_untouched(no_sleep):
    def handler(request):  # pragma: no cover - must not be called
        raise AssertionError("unexpected lookup")

    quote = PriceQuote(currency="USD", initial=999, final=999, final_formatted="$9.99")

    assert asyncio.run(_normalizer(handler, no_sleep).normalize_quote(quote)) is False
    assert quote.final == 999


def test_quote_kept_when_no_rate(no_sleep):
    normalizer = _normalizer(_rates_handler(99999.0), no_sleep)
    quote = PriceQuote(currency="EUR", initial=1000, final=1000, final_formatted="10,00€")

    assert asyncio.run(normalizer.normalize_quote(quote)) is False
    assert quote.currency == "EUR"
    assert quote.final_formatted == "10,00€"
