"""Ownership reconciliation for a single catalog item.

Decides, for one item seen during a run, whether its stored record has to be
written and with which owners:

* no stored record: fetch details, owners are the run's owners;
* stored record, no override: keep the details and merge the owners, writing
  only if the owner set actually grew;
* stored record with override: fetch details again and replace the record,
  owners are exactly the run's owners.

Owners are kept per provider namespace; namespaces other than the
reconciler's own are carried over untouched.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Callable, Literal

from gamevault.domain.models import ItemRecord
from gamevault.infrastructure.db import iso_utcnow
from gamevault.infrastructure.observability import get_logger

from .details import ItemDetailFetcher

logger = get_logger(__name__)

DEFAULT_PROVIDER = "steam"

ReconcileAction = Literal["write", "unchanged", "failed"]


@dataclass(frozen=True)
class ReconcileOutcome:
    item_id: int
    action: ReconcileAction
    record: ItemRecord | None = None
    reason: str | None = None


def index_owners(owner_lists: Mapping[str, Iterable[int]]) -> dict[int, set[str]]:
    """Invert ``{owner: [item ids]}`` into ``{item id: {owners}}``."""
    index: dict[int, set[str]] = {}
    for owner_id, item_ids in owner_lists.items():
        for item_id in item_ids:
            index.setdefault(int(item_id), set()).add(str(owner_id))
    return index


class OwnershipReconciler:
    def __init__(
        self,
        details: ItemDetailFetcher,
        *,
        provider: str = DEFAULT_PROVIDER,
        clock: Callable[[], str] = iso_utcnow,
    ) -> None:
        self._details = details
        self.provider = provider
        self._clock = clock

    async def reconcile(
        self,
        item_id: int,
        run_owners: Iterable[str],
        existing: ItemRecord | None,
        override_existing: bool,
        operation_id: str | None = None,
    ) -> ReconcileOutcome:
        owners = {str(owner) for owner in run_owners}

        if existing is not None and not override_existing:
            ownership = existing.ownership.copy()
            if not ownership.merge(self.provider, owners):
                return ReconcileOutcome(item_id, "unchanged", existing)
            record = dataclasses.replace(
                existing, ownership=ownership, last_modified=self._clock()
            )
            logger.debug("Item %s gained owners", item_id)
            return ReconcileOutcome(item_id, "write", record)

        lookup = await self._details.fetch_details(item_id, operation_id)
        if not lookup.found:
            return ReconcileOutcome(item_id, "failed", reason=lookup.error or lookup.status)

        record = lookup.record
        assert record is not None
        if existing is not None:
            record.ownership = existing.ownership.copy()
        record.ownership.replace(self.provider, owners)
        record.last_modified = self._clock()
        return ReconcileOutcome(item_id, "write", record)


__all__ = [
    "DEFAULT_PROVIDER",
    "OwnershipReconciler",
    "ReconcileAction",
    "ReconcileOutcome",
    "index_owners",
]
