"""Price refresh runs over every stored item.

Only ``price_overview`` and ``last_modified`` of a stored record change;
ownership and the remaining metadata are left exactly as stored.
"""

from __future__ import annotations

import asyncio
import sqlite3
import time
from typing import Any

from gamevault.domain.models import PriceUpdateResult
from gamevault.infrastructure.db import DatabaseError, iso_utcnow
from gamevault.infrastructure.db.repositories import ItemRepository, SyncRunRepository
from gamevault.infrastructure.observability import (
    get_logger,
    log_context,
    log_exception,
    record_sync_run,
)
from gamevault.services.base import BaseService, ConnectionFactory
from gamevault.services.blacklist import BlacklistCache
from gamevault.services.progress import (
    PHASE_COMPLETED,
    PHASE_FAILED,
    PHASE_INITIALIZING,
    PHASE_PROCESSING_ITEMS,
    PHASE_WRITING,
    ProgressTracker,
    SyncResultStore,
)

from .details import ItemDetailFetcher

logger = get_logger(__name__)

RUN_KIND = "prices"

PROCESSING_END = 90.0


def _patch_prices(conn: sqlite3.Connection, refreshed: list[dict[str, Any]]) -> int:
    """Apply only the price fields of ``refreshed`` onto the documents stored now."""
    repository = ItemRepository(conn)
    patched: list[dict[str, Any]] = []
    for document in refreshed:
        current = repository.get(document["item_id"])
        if current is None:
            continue
        current["price_overview"] = document["price_overview"]
        current["last_modified"] = document["last_modified"]
        patched.append(current)
    return repository.bulk_upsert(patched)


class PriceRefresher(BaseService):
    def __init__(
        self,
        connection_factory: ConnectionFactory,
        *,
        details: ItemDetailFetcher,
        blacklist: BlacklistCache,
        progress: ProgressTracker,
        results: SyncResultStore,
    ) -> None:
        super().__init__(connection_factory)
        self._details = details
        self._blacklist = blacklist
        self._progress = progress
        self._results = results

    def prepare(self, operation_id: str) -> None:
        self._blacklist.refresh()
        self._with_connection(lambda conn: SyncRunRepository(conn).start(operation_id, RUN_KIND))
        self._progress.set_progress(operation_id, 0, PHASE_INITIALIZING, "Starting price refresh")

    async def _refresh_one(
        self, operation_id: str, item_id: int
    ) -> tuple[str, dict[str, Any] | None]:
        if await asyncio.to_thread(self._blacklist.is_blacklisted, item_id):
            return "skipped", None
        status, quote = await self._details.fetch_price(item_id, operation_id)
        if status != "found":
            return "failed", None
        document = await self._run_with_connection(lambda conn: ItemRepository(conn).get(item_id))
        if document is None:
            return "failed", None
        new_price = quote.to_dict() if quote else None
        if document.get("price_overview") == new_price:
            return "skipped", None
        document["price_overview"] = new_price
        document["last_modified"] = iso_utcnow()
        return "updated", document

    async def run(self, operation_id: str) -> PriceUpdateResult:
        """Refresh all stored prices. Never raises."""
        updated: list[int] = []
        skipped: list[int] = []
        failed: list[int] = []
        started = time.perf_counter()
        with log_context(operation_id=operation_id):
            try:
                item_ids = await self._run_with_connection(
                    lambda conn: ItemRepository(conn).list_ids()
                )
                queue: list[dict[str, Any]] = []
                total = len(item_ids)
                for index, item_id in enumerate(item_ids, start=1):
                    outcome, document = await self._refresh_one(operation_id, item_id)
                    if outcome == "updated" and document is not None:
                        queue.append(document)
                        updated.append(item_id)
                    elif outcome == "skipped":
                        skipped.append(item_id)
                    else:
                        failed.append(item_id)
                    self._progress.set_progress(
                        operation_id,
                        PROCESSING_END * index / total,
                        PHASE_PROCESSING_ITEMS,
                        f"Checked prices for {index}/{total} items",
                    )

                self._progress.set_progress(
                    operation_id, PROCESSING_END, PHASE_WRITING, f"Writing {len(queue)} price(s)"
                )
                if queue:
                    await self._run_with_connection(
                        lambda conn: _patch_prices(conn, queue)
                    )
                result = PriceUpdateResult(
                    operation_id, "completed", tuple(updated), tuple(skipped), tuple(failed)
                )
                self._progress.set_progress(
                    operation_id,
                    100,
                    PHASE_COMPLETED,
                    f"Updated {result.updated_count} of {result.total_count} prices",
                )
            except Exception as exc:
                log_exception(logger, "Price refresh failed", exc)
                result = PriceUpdateResult(
                    operation_id,
                    "failed",
                    tuple(updated),
                    tuple(skipped),
                    tuple(failed),
                    error=str(exc),
                )
                self._progress.set_progress(
                    operation_id, 100, PHASE_FAILED, f"Price refresh failed: {exc}"
                )

            self._results.set_result(operation_id, result)
            try:
                await self._run_with_connection(
                    lambda conn: SyncRunRepository(conn).finish(
                        operation_id,
                        status=result.status,
                        updated_count=result.updated_count,
                        skipped_count=result.skipped_count,
                        failed_count=result.failed_count,
                        notes=result.error,
                    )
                )
            except DatabaseError as exc:
                logger.warning("Could not record price run %s: %s", operation_id, exc)
            record_sync_run(
                RUN_KIND, result.status, time.perf_counter() - started, result.total_count
            )
        return result


__all__ = ["PriceRefresher"]
