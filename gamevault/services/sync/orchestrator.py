"""Owned-item synchronization runs.

A run moves through ``Initializing -> Fetching Owner Lists -> Processing
Items -> Writing -> Completed`` (or ``Failed``). :meth:`SyncOrchestrator.prepare`
performs the synchronous checks before a run is accepted;
:meth:`SyncOrchestrator.execute` is the background body. Items are handled
one at a time in ascending id order and nothing becomes durable until the
single bulk upsert in the writing phase.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Sequence

from gamevault.domain.models import ItemRecord, SyncResult, SyncTally
from gamevault.infrastructure.db import DatabaseError
from gamevault.infrastructure.db.repositories import ItemRepository, SyncRunRepository
from gamevault.infrastructure.observability import (
    get_logger,
    log_context,
    log_exception,
    record_sync_run,
)
from gamevault.services.base import BaseService, ConnectionFactory
from gamevault.services.blacklist import BlacklistCache
from gamevault.services.errors import FetchError, InvalidSyncRequest
from gamevault.services.progress import (
    PHASE_COMPLETED,
    PHASE_FAILED,
    PHASE_FETCHING_OWNER_LISTS,
    PHASE_INITIALIZING,
    PHASE_PROCESSING_ITEMS,
    PHASE_WRITING,
    ProgressTracker,
    SyncResultStore,
)

from .details import OwnerListFetcher
from .reconciler import OwnershipReconciler, index_owners

logger = get_logger(__name__)

RUN_KIND = "owned_items"

OWNER_LISTS_END = 10.0
PROCESSING_END = 90.0


def _clean_owner_ids(owner_ids: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for owner_id in owner_ids:
        text = str(owner_id).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


class SyncOrchestrator(BaseService):
    def __init__(
        self,
        connection_factory: ConnectionFactory,
        *,
        owner_lists: OwnerListFetcher,
        reconciler: OwnershipReconciler,
        blacklist: BlacklistCache,
        progress: ProgressTracker,
        results: SyncResultStore,
    ) -> None:
        super().__init__(connection_factory)
        self._owner_lists = owner_lists
        self._reconciler = reconciler
        self._blacklist = blacklist
        self._progress = progress
        self._results = results

    def prepare(
        self,
        operation_id: str,
        owner_ids: Sequence[str],
        item_id_filter: Iterable[int] | None = None,
    ) -> tuple[list[str], set[int] | None]:
        """Validate a request and ready the run.

        Raises :class:`InvalidSyncRequest` for bad input and
        :class:`DatabaseError` when the store is unavailable; in both cases no
        run exists afterwards.
        """
        id_filter: set[int] | None = None
        if item_id_filter is not None:
            try:
                id_filter = {int(item_id) for item_id in item_id_filter}
            except (TypeError, ValueError) as exc:
                raise InvalidSyncRequest(f"Invalid item id in filter: {exc}") from exc
            if not id_filter:
                raise InvalidSyncRequest("item_id_filter must not be empty when supplied")
        owners = _clean_owner_ids(owner_ids)
        if not owners:
            raise InvalidSyncRequest("At least one owner id is required")

        self._blacklist.refresh()
        self._with_connection(lambda conn: SyncRunRepository(conn).start(operation_id, RUN_KIND))
        self._progress.set_progress(
            operation_id, 0, PHASE_INITIALIZING, f"Starting sync for {len(owners)} owner(s)"
        )
        return owners, id_filter

    async def _fetch_owner_lists(
        self, operation_id: str, owner_ids: Sequence[str]
    ) -> dict[str, list[int]]:
        owner_lists: dict[str, list[int]] = {}
        total = len(owner_ids)
        for done, owner_id in enumerate(owner_ids, start=1):
            try:
                item_ids = await self._owner_lists.fetch_owned_item_ids(owner_id, operation_id)
            except (FetchError, ValueError) as exc:
                logger.warning("Could not fetch owned items for %s: %s", owner_id, exc)
                item_ids = None
            owner_lists[owner_id] = item_ids or []
            self._progress.set_progress(
                operation_id,
                OWNER_LISTS_END * done / total,
                PHASE_FETCHING_OWNER_LISTS,
                f"Fetched owner list {done}/{total} ({len(owner_lists[owner_id])} items)",
            )
        return owner_lists

    async def _load_existing(self, item_id: int) -> ItemRecord | None:
        document = await self._run_with_connection(lambda conn: ItemRepository(conn).get(item_id))
        return ItemRecord.from_document(document) if document else None

    async def _process_items(
        self,
        operation_id: str,
        owners_by_item: dict[int, set[str]],
        id_filter: set[int] | None,
        override_existing: bool,
        tally: SyncTally,
    ) -> list[ItemRecord]:
        queue: list[ItemRecord] = []
        item_ids = sorted(owners_by_item)
        total = len(item_ids)
        for index, item_id in enumerate(item_ids, start=1):
            if id_filter is not None and item_id not in id_filter:
                tally.not_in_update_list.append(item_id)
            elif await asyncio.to_thread(self._blacklist.is_blacklisted, item_id):
                tally.blacklisted.append(item_id)
            else:
                existing = await self._load_existing(item_id)
                outcome = await self._reconciler.reconcile(
                    item_id,
                    owners_by_item[item_id],
                    existing,
                    override_existing,
                    operation_id,
                )
                if outcome.action == "write" and outcome.record is not None:
                    queue.append(outcome.record)
                    tally.updated.append(item_id)
                elif outcome.action == "unchanged":
                    tally.unchanged.append(item_id)
                else:
                    tally.failed.append(item_id)

            span = PROCESSING_END - OWNER_LISTS_END
            self._progress.set_progress(
                operation_id,
                OWNER_LISTS_END + span * index / total,
                PHASE_PROCESSING_ITEMS,
                f"Processed {index}/{total} items",
            )
        return queue

    async def _write(self, operation_id: str, queue: list[ItemRecord]) -> int:
        self._progress.set_progress(
            operation_id, PROCESSING_END, PHASE_WRITING, f"Writing {len(queue)} item(s)"
        )
        if not queue:
            return 0
        documents = [record.to_document() for record in queue]
        return await self._run_with_connection(
            lambda conn: ItemRepository(conn).bulk_upsert(documents)
        )

    async def _finish_audit(self, result: SyncResult) -> None:
        try:
            await self._run_with_connection(
                lambda conn: SyncRunRepository(conn).finish(
                    result.operation_id,
                    status=result.status,
                    updated_count=result.updated_games_count,
                    skipped_count=result.skipped_games_count,
                    failed_count=result.failed_games_count,
                    notes=result.error,
                )
            )
        except DatabaseError as exc:
            logger.warning("Could not record sync run %s: %s", result.operation_id, exc)

    async def execute(
        self,
        operation_id: str,
        owner_ids: Sequence[str],
        override_existing: bool = False,
        item_id_filter: set[int] | None = None,
    ) -> SyncResult:
        """Run a prepared sync to completion. Never raises."""
        tally = SyncTally()
        started = time.perf_counter()
        with log_context(operation_id=operation_id):
            logger.info(
                "Sync started for %d owner(s), override=%s", len(owner_ids), override_existing
            )
            try:
                owner_lists = await self._fetch_owner_lists(operation_id, owner_ids)
                owners_by_item = index_owners(owner_lists)
                queue = await self._process_items(
                    operation_id, owners_by_item, item_id_filter, override_existing, tally
                )
                written = await self._write(operation_id, queue)
                result = tally.freeze(operation_id, "completed")
                self._progress.set_progress(
                    operation_id,
                    100,
                    PHASE_COMPLETED,
                    f"Updated {result.updated_games_count}, skipped "
                    f"{result.skipped_games_count}, failed {result.failed_games_count}",
                )
                logger.info("Sync completed, %d record(s) written", written)
            except Exception as exc:
                log_exception(logger, "Sync run failed", exc)
                result = tally.freeze(operation_id, "failed", error=str(exc))
                self._progress.set_progress(operation_id, 100, PHASE_FAILED, f"Sync failed: {exc}")

            self._results.set_result(operation_id, result)
            await self._finish_audit(result)
            record_sync_run(
                RUN_KIND, result.status, time.perf_counter() - started, result.total_items
            )
        return result


__all__ = ["RUN_KIND", "SyncOrchestrator"]
