"""Terminal summaries of synchronization and price refresh runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

RunStatus = Literal["completed", "failed"]


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one owned-item synchronization run.

    Every item id considered by the run lands in exactly one of the id tuples,
    so ``updated + skipped + failed`` always equals ``total_items``.
    """

    operation_id: str
    status: RunStatus
    updated_item_ids: tuple[int, ...] = ()
    skipped_unchanged: tuple[int, ...] = ()
    skipped_not_in_update_list: tuple[int, ...] = ()
    skipped_due_to_blacklist: tuple[int, ...] = ()
    failed_to_fetch_details: tuple[int, ...] = ()
    error: str | None = None

    @property
    def updated_games_count(self) -> int:
        return len(self.updated_item_ids)

    @property
    def skipped_games_count(self) -> int:
        return (
            len(self.skipped_unchanged)
            + len(self.skipped_not_in_update_list)
            + len(self.skipped_due_to_blacklist)
        )

    @property
    def failed_games_count(self) -> int:
        return len(self.failed_to_fetch_details)

    @property
    def total_items(self) -> int:
        return self.updated_games_count + self.skipped_games_count + self.failed_games_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "updated_games_count": self.updated_games_count,
            "skipped_games_count": self.skipped_games_count,
            "failed_games_count": self.failed_games_count,
            "updated_item_ids": list(self.updated_item_ids),
            "skipped_unchanged": list(self.skipped_unchanged),
            "skipped_not_in_update_list": list(self.skipped_not_in_update_list),
            "skipped_due_to_blacklist": list(self.skipped_due_to_blacklist),
            "failed_to_fetch_details": list(self.failed_to_fetch_details),
            "error": self.error,
        }


@dataclass
class SyncTally:
    """Mutable accumulator used while a run is in progress."""

    updated: list[int] = field(default_factory=list)
    unchanged: list[int] = field(default_factory=list)
    not_in_update_list: list[int] = field(default_factory=list)
    blacklisted: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return (
            len(self.updated)
            + len(self.unchanged)
            + len(self.not_in_update_list)
            + len(self.blacklisted)
            + len(self.failed)
        )

    def freeze(
        self, operation_id: str, status: RunStatus, error: str | None = None
    ) -> SyncResult:
        return SyncResult(
            operation_id=operation_id,
            status=status,
            updated_item_ids=tuple(self.updated),
            skipped_unchanged=tuple(self.unchanged),
            skipped_not_in_update_list=tuple(self.not_in_update_list),
            skipped_due_to_blacklist=tuple(self.blacklisted),
            failed_to_fetch_details=tuple(self.failed),
            error=error,
        )


@dataclass(frozen=True)
class PriceUpdateResult:
    """Outcome of a price refresh run over every stored item."""

    operation_id: str
    status: RunStatus
    updated_item_ids: tuple[int, ...] = ()
    skipped_item_ids: tuple[int, ...] = ()
    failed_item_ids: tuple[int, ...] = ()
    error: str | None = None

    @property
    def total_count(self) -> int:
        return self.updated_count + self.skipped_count + self.failed_count

    @property
    def updated_count(self) -> int:
        return len(self.updated_item_ids)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_item_ids)

    @property
    def failed_count(self) -> int:
        return len(self.failed_item_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "total_count": self.total_count,
            "updated_count": self.updated_count,
            "skipped_count": self.skipped_count,
            "failed_count": self.failed_count,
            "updated_item_ids": list(self.updated_item_ids),
            "skipped_item_ids": list(self.skipped_item_ids),
            "failed_item_ids": list(self.failed_item_ids),
            "error": self.error,
        }
