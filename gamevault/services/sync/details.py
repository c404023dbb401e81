"""Catalog detail and owner-list lookups.

Detail lookups never raise: every outcome is reported as a
:class:`DetailLookup` so a single bad item cannot unwind a sync run.
Owner-list lookups do raise; the orchestrator absorbs failures per owner.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from gamevault.domain.models import REFERENCE_CURRENCY, ItemRecord, PriceQuote
from gamevault.infrastructure.http import CatalogEndpoints
from gamevault.infrastructure.observability import get_logger
from gamevault.services.errors import FetchError

from .currency import CurrencyNormalizer
from .fetcher import RateLimitedFetcher

logger = get_logger(__name__)

LookupStatus = Literal["found", "not_found", "failed", "mismatch"]


@dataclass(frozen=True)
class DetailLookup:
    """Result of looking up one item in the catalog."""

    item_id: int
    status: LookupStatus
    record: ItemRecord | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.status == "found" and self.record is not None


def _entry_for(body: str, item_id: int) -> Mapping[str, Any] | None:
    """Return the ``{"success": .., "data": ..}`` entry for ``item_id``."""
    payload = json.loads(body)
    if not isinstance(payload, Mapping):
        raise ValueError("catalog response is not an object")
    entry = payload.get(str(item_id))
    return entry if isinstance(entry, Mapping) else None


class ItemDetailFetcher:
    def __init__(
        self,
        fetcher: RateLimitedFetcher,
        normalizer: CurrencyNormalizer | None = None,
        endpoints: CatalogEndpoints | None = None,
        *,
        reference_currency: str = REFERENCE_CURRENCY,
    ) -> None:
        self._fetcher = fetcher
        self._normalizer = normalizer
        self._endpoints = endpoints or CatalogEndpoints()
        self.reference_currency = reference_currency

    async def _normalize(self, quote: PriceQuote | None, operation_id: str | None) -> None:
        if quote is None or self._normalizer is None:
            return
        await self._normalizer.normalize_quote(quote, self.reference_currency, operation_id)

    async def fetch_details(self, item_id: int, operation_id: str | None = None) -> DetailLookup:
        url = self._endpoints.item_details(item_id)
        try:
            entry = _entry_for(await self._fetcher.fetch(url, operation_id), item_id)
            if entry is None or not entry.get("success") or not isinstance(
                entry.get("data"), Mapping
            ):
                logger.info("Item %s not found in catalog", item_id)
                return DetailLookup(item_id, "not_found")
            record = ItemRecord.from_store_payload(entry["data"])
        except FetchError as exc:
            logger.warning("Fetching details for item %s failed: %s", item_id, exc)
            return DetailLookup(item_id, "failed", error=str(exc))
        except (ValueError, TypeError) as exc:
            logger.warning("Could not parse details for item %s: %s", item_id, exc)
            return DetailLookup(item_id, "failed", error=f"parse error: {exc}")

        if record.item_id != int(item_id):
            logger.warning(
                "Requested item %s but catalog returned %s; item %s likely needs "
                "to be blacklisted",
                item_id,
                record.item_id,
                item_id,
            )
            return DetailLookup(
                item_id,
                "mismatch",
                error=f"catalog returned item {record.item_id}",
            )

        await self._normalize(record.price, operation_id)
        return DetailLookup(item_id, "found", record=record)

    async def fetch_price(
        self, item_id: int, operation_id: str | None = None
    ) -> tuple[LookupStatus, PriceQuote | None]:
        """Fetch only the price of an item.

        Returns ``("found", quote)`` where ``quote`` may be ``None`` for free
        or unpriced items.
        """
        url = self._endpoints.item_details(item_id, price_only=True)
        try:
            entry = _entry_for(await self._fetcher.fetch(url, operation_id), item_id)
        except FetchError as exc:
            logger.warning("Fetching price for item %s failed: %s", item_id, exc)
            return "failed", None
        except (ValueError, TypeError) as exc:
            logger.warning("Could not parse price for item %s: %s", item_id, exc)
            return "failed", None
        if entry is None or not entry.get("success"):
            return "not_found", None
        data = entry.get("data")
        # Items without a price answer with an empty list instead of an object.
        quote = PriceQuote.from_payload(data.get("price_overview")) if isinstance(data, Mapping) else None
        await self._normalize(quote, operation_id)
        return "found", quote


class OwnerListFetcher:
    """Look up the item ids owned by one identity."""

    def __init__(
        self,
        fetcher: RateLimitedFetcher,
        api_key: str,
        endpoints: CatalogEndpoints | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._api_key = api_key
        self._endpoints = endpoints or CatalogEndpoints()

    async def fetch_owned_item_ids(
        self, owner_id: str, operation_id: str | None = None
    ) -> list[int] | None:
        """Return the owned ids, or ``None`` if the response lists no games.

        Raises :class:`FetchError` or ``ValueError`` when the lookup fails.
        """
        url = self._endpoints.owned_items(self._api_key, owner_id)
        payload = json.loads(await self._fetcher.fetch(url, operation_id))
        response = payload.get("response") if isinstance(payload, Mapping) else None
        games = response.get("games") if isinstance(response, Mapping) else None
        if not isinstance(games, list):
            logger.warning("No games listed for owner %s (private profile?)", owner_id)
            return None

        item_ids: list[int] = []
        for game in games:
            app_id = game.get("appid") if isinstance(game, Mapping) else None
            if app_id is None:
                logger.warning("Skipping entry without appid for owner %s", owner_id)
                continue
            try:
                item_ids.append(int(app_id))
            except (TypeError, ValueError):
                logger.warning("Skipping invalid appid %r for owner %s", app_id, owner_id)
        return item_ids


__all__ = ["DetailLookup", "ItemDetailFetcher", "LookupStatus", "OwnerListFetcher"]
