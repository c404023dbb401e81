"""Outbound facade over the sync engine.

:class:`SyncService` wires the fetcher, lookups, reconciler and run
orchestrators together and exposes the operations used by the API and the
CLI. Long runs are accepted synchronously (validation and blacklist refresh
happen before an operation id is handed out) and then continue as background
asyncio tasks whose progress and result can be polled by operation id.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Coroutine, Iterable, Sequence
from typing import Any

import httpx

from gamevault.app.config import Settings, load_settings
from gamevault.domain.models import ItemRecord, PriceUpdateResult, SyncResult
from gamevault.infrastructure.db import iso_utcnow
from gamevault.infrastructure.db.repositories import ItemRepository, SyncRunRepository
from gamevault.infrastructure.http import CatalogEndpoints, build_async_client
from gamevault.infrastructure.observability import get_logger, log_context
from gamevault.services.base import ConnectionFactory, sqlite_connection_factory
from gamevault.services.blacklist import BlacklistCache
from gamevault.services.dto import EventPublisher, ItemSummaryDTO, noop_event_publisher
from gamevault.services.errors import BlacklistedItemError, FetchError, ItemNotFoundError
from gamevault.services.progress import (
    PHASE_INITIALIZING,
    ProgressInfo,
    ProgressTracker,
    SyncResultStore,
)
from gamevault.services.sync import (
    CurrencyNormalizer,
    ItemDetailFetcher,
    OwnerListFetcher,
    OwnershipReconciler,
    PriceRefresher,
    RateLimitedFetcher,
    SyncOrchestrator,
)
from gamevault.services.sync.fetcher import SleepFunc
from gamevault.services.user_mappings import UserMappingService

RunResult = SyncResult | PriceUpdateResult


def new_operation_id() -> str:
    return uuid.uuid4().hex


class SyncService:
    """Coordinate owned-item syncs, price refreshes and single-item updates."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        connection_factory: ConnectionFactory | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        event_publisher: EventPublisher | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.settings = settings or load_settings()
        self._connection_factory = connection_factory or sqlite_connection_factory(
            self.settings.db_path
        )
        self._owns_client = http_client is None
        self._client = http_client or build_async_client(
            timeout=self.settings.http_timeout_seconds, transport=transport
        )
        self._event_publisher = event_publisher or noop_event_publisher
        self._logger = get_logger(__name__)

        self.progress = ProgressTracker()
        self.results: SyncResultStore[RunResult] = SyncResultStore()
        self.blacklist = BlacklistCache(self._connection_factory)
        self.user_mappings = UserMappingService(self._connection_factory)

        endpoints = CatalogEndpoints(
            store_base_url=self.settings.store_base_url,
            web_api_base_url=self.settings.web_api_base_url,
            exchange_rate_base_url=self.settings.exchange_rate_base_url,
        )
        fetcher = RateLimitedFetcher(
            self._client,
            max_concurrent_requests=self.settings.max_concurrent_requests,
            min_delay_seconds=self.settings.min_delay_seconds,
            max_retries=self.settings.max_retries,
            backoff_base_seconds=self.settings.backoff_base_seconds,
            progress=self.progress,
            sleep=sleep,
        )
        normalizer = CurrencyNormalizer(
            fetcher,
            endpoints,
            implausible_rate_threshold=self.settings.implausible_rate_threshold,
            max_attempts=self.settings.rate_max_attempts,
            retry_delay_seconds=self.settings.rate_retry_delay_seconds,
            sleep=sleep,
        )
        self._details = ItemDetailFetcher(
            fetcher,
            normalizer,
            endpoints,
            reference_currency=self.settings.reference_currency,
        )
        self._orchestrator = SyncOrchestrator(
            self._connection_factory,
            owner_lists=OwnerListFetcher(fetcher, self.settings.steam_api_key, endpoints),
            reconciler=OwnershipReconciler(self._details),
            blacklist=self.blacklist,
            progress=self.progress,
            results=self.results,
        )
        self._prices = PriceRefresher(
            self._connection_factory,
            details=self._details,
            blacklist=self.blacklist,
            progress=self.progress,
            results=self.results,
        )
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        # Held for the whole of a run; runs never overlap.
        self._run_lock = asyncio.Lock()

    async def __aenter__(self) -> "SyncService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -------------------- background runs --------------------
    def _spawn(self, operation_id: str, coro: Coroutine[Any, Any, RunResult]) -> None:
        async def _run_and_publish() -> None:
            async with self._run_lock:
                result = await coro
            try:
                await self._event_publisher(
                    {"type": "sync_finished", "operation_id": operation_id, **result.to_dict()}
                )
            except Exception as exc:
                self._logger.warning("Event publishing failed for %s: %s", operation_id, exc)

        if self._run_lock.locked():
            self.progress.set_progress(
                operation_id, 0, PHASE_INITIALIZING, "Waiting for the running operation to finish"
            )
        with log_context(operation_id=operation_id):
            task = asyncio.create_task(_run_and_publish())
        self._tasks[operation_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(operation_id, None))

    async def wait_for(self, operation_id: str) -> RunResult | None:
        """Wait until a background run finishes and return its result."""
        task = self._tasks.get(operation_id)
        if task is not None:
            await asyncio.shield(task)
        return self.results.try_get_result(operation_id)

    def is_running(self, operation_id: str) -> bool:
        task = self._tasks.get(operation_id)
        return task is not None and not task.done()

    async def start_sync(
        self,
        owner_ids: Sequence[str],
        override_existing: bool = False,
        item_id_filter: Iterable[int] | None = None,
    ) -> str:
        """Accept a sync run and return its operation id.

        Raises :class:`InvalidSyncRequest` or :class:`DatabaseError` before
        anything is scheduled.
        """
        operation_id = new_operation_id()
        owners, id_filter = await asyncio.to_thread(
            self._orchestrator.prepare, operation_id, list(owner_ids), item_id_filter
        )
        self._logger.info("Accepted sync %s for %d owner(s)", operation_id, len(owners))
        self._spawn(
            operation_id,
            self._orchestrator.execute(operation_id, owners, override_existing, id_filter),
        )
        return operation_id

    async def start_price_update(self) -> str:
        operation_id = new_operation_id()
        await asyncio.to_thread(self._prices.prepare, operation_id)
        self._logger.info("Accepted price refresh %s", operation_id)
        self._spawn(operation_id, self._prices.run(operation_id))
        return operation_id

    def get_progress(self, operation_id: str) -> ProgressInfo | None:
        return self.progress.try_get_progress(operation_id)

    def get_result(self, operation_id: str) -> RunResult | None:
        return self.results.try_get_result(operation_id)

    # -------------------- single items --------------------
    async def update_single_item(self, item_id: int) -> ItemRecord:
        """Re-fetch one item's details, keeping its recorded owners."""
        item_id = int(item_id)
        if await asyncio.to_thread(self.blacklist.is_blacklisted, item_id):
            raise BlacklistedItemError(item_id)

        lookup = await self._details.fetch_details(item_id)
        if lookup.status == "not_found":
            raise ItemNotFoundError(item_id)
        if not lookup.found or lookup.record is None:
            raise FetchError(
                f"Could not refresh item {item_id}: {lookup.error or lookup.status}"
            )

        record = lookup.record
        record.last_modified = iso_utcnow()
        await asyncio.to_thread(self._store_refreshed, record)
        self._logger.info("Refreshed item %s", item_id)
        return record

    def _load_document(self, item_id: int) -> dict[str, Any] | None:
        with self._connection_factory() as conn:
            return ItemRepository(conn).get(item_id)

    def _store_refreshed(self, record: ItemRecord) -> None:
        """Replace the stored record, carrying over the owners stored right now."""
        with self._connection_factory() as conn:
            repository = ItemRepository(conn)
            current = repository.get(record.item_id)
            if current is not None:
                record.ownership = ItemRecord.from_document(current).ownership
            repository.replace(record.to_document())

    def list_items(self, limit: int | None = None) -> list[ItemSummaryDTO]:
        with self._connection_factory() as conn:
            documents = ItemRepository(conn).list_documents(limit)
        return [ItemSummaryDTO.from_document(document) for document in documents]

    def get_item(self, item_id: int) -> dict[str, Any] | None:
        return self._load_document(int(item_id))

    def recent_runs(self, limit: int = 20) -> list[dict[str, Any]]:
        with self._connection_factory() as conn:
            return SyncRunRepository(conn).list_recent(limit)


__all__ = ["RunResult", "SyncService", "new_operation_id"]
