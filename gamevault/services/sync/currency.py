"""Conversion of price quotes into the reference currency.

The exchange-rate service occasionally answers with absurd values (a stale
or malformed response reporting e.g. 15000 USD per EUR). Such rates are
rejected and the lookup retried a few times; if no plausible rate shows up
the quote is stored in its original currency rather than corrupted.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping

from gamevault.domain.models import REFERENCE_CURRENCY, PriceQuote
from gamevault.infrastructure.http import CatalogEndpoints
from gamevault.infrastructure.observability import get_logger
from gamevault.services.errors import FetchError

from .fetcher import RateLimitedFetcher, SleepFunc

logger = get_logger(__name__)

NO_RATE = 0.0


class CurrencyNormalizer:
    def __init__(
        self,
        fetcher: RateLimitedFetcher,
        endpoints: CatalogEndpoints | None = None,
        *,
        implausible_rate_threshold: float = 1000.0,
        max_attempts: int = 5,
        retry_delay_seconds: float = 0.5,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._endpoints = endpoints or CatalogEndpoints()
        self.implausible_rate_threshold = implausible_rate_threshold
        self.max_attempts = max(1, max_attempts)
        self.retry_delay_seconds = max(0.0, retry_delay_seconds)
        self._sleep = sleep

    def _is_plausible(self, rate: float) -> bool:
        return 0 < rate < self.implausible_rate_threshold

    async def get_rate(
        self,
        from_currency: str,
        to_currency: str = REFERENCE_CURRENCY,
        operation_id: str | None = None,
    ) -> float:
        """Return the multiplier from ``from_currency`` to ``to_currency``.

        Returns ``0.0`` when no plausible rate could be obtained, meaning
        "do not convert".
        """
        source = from_currency.upper()
        target = to_currency.upper()
        if source == target:
            return 1.0

        url = self._endpoints.exchange_rates(source)
        for attempt in range(1, self.max_attempts + 1):
            try:
                payload = json.loads(await self._fetcher.fetch(url, operation_id))
                rates = payload.get("rates") if isinstance(payload, Mapping) else None
                if not isinstance(rates, Mapping) or target not in rates:
                    logger.warning("No %s rate in exchange response for %s", target, source)
                    return NO_RATE
                rate = float(rates[target])
            except (FetchError, ValueError, TypeError) as exc:
                logger.warning("Exchange rate lookup %s->%s failed: %s", source, target, exc)
                return NO_RATE

            if self._is_plausible(rate):
                return rate
            logger.warning(
                "Implausible exchange rate %s->%s = %s (attempt %d/%d)",
                source,
                target,
                rate,
                attempt,
                self.max_attempts,
            )
            if attempt < self.max_attempts:
                await self._sleep(self.retry_delay_seconds)

        logger.error(
            "No plausible %s->%s rate after %d attempts", source, target, self.max_attempts
        )
        return NO_RATE

    async def normalize_quote(
        self,
        quote: PriceQuote,
        reference_currency: str = REFERENCE_CURRENCY,
        operation_id: str | None = None,
    ) -> bool:
        """Convert ``quote`` in place. Returns True if it was converted."""
        if quote.currency.upper() == reference_currency.upper():
            return False
        rate = await self.get_rate(quote.currency, reference_currency, operation_id)
        if rate <= 0:
            logger.info("Keeping price in %s, no usable rate", quote.currency)
            return False
        quote.convert(rate, reference_currency)
        return True


__all__ = ["CurrencyNormalizer", "NO_RATE"]
