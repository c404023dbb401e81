"""Tests for per-item ownership reconciliation."""

import asyncio

from gamevault.domain.models import ItemRecord, Ownership
from gamevault.services.sync.details import DetailLookup
from gamevault.services.sync.reconciler import OwnershipReconciler, index_owners

STAMP = "2024-01-01T00:00:00Z"


class StubDetails:
    def __init__(self, lookups=None) -> None:
        self.lookups = lookups or {}
        self.calls: list[int] = []

    async def fetch_details(self, item_id, operation_id=None):
        self.calls.append(item_id)
        return self.lookups.get(item_id, DetailLookup(item_id, "not_found"))


def _found(item_id, name):
    return DetailLookup(item_id, "found", record=ItemRecord(item_id=item_id, name=name))


def _reconciler(details) -> OwnershipReconciler:
    return OwnershipReconciler(details, clock=lambda: STAMP)


def test_index_owners_unions_owners_per_item():
    index = index_owners({"111": [42, 7], "222": [42], "333": []})

    assert index == {42: {"111", "222"}, 7: {"111"}}


def test_new_item_is_fetched_and_written():
    details = StubDetails({42: _found(42, "Fresh")})

    outcome = asyncio.run(_reconciler(details).reconcile(42, {"111", "222"}, None, False))

    assert outcome.action == "write"
    assert outcome.record.name == "Fresh"
    assert outcome.record.ownership.owners_for("steam") == {"111", "222"}
    assert outcome.record.last_modified == STAMP


def test_existing_item_merges_owners_without_fetching():
    details = StubDetails()
    existing = ItemRecord(
        item_id=42,
        name="Stored",
        last_modified="2020-01-01T00:00:00Z",
        ownership=Ownership.from_dict({"steam": ["A"]}),
    )

    outcome = asyncio.run(_reconciler(details).reconcile(42, {"A", "B"}, existing, False))

    assert details.calls == []
    assert outcome.action == "write"
    assert outcome.record.name == "Stored"
    assert outcome.record.ownership.owners_for("steam") == {"A", "B"}
    assert existing.ownership.owners_for("steam") == {"A"}


def test_existing_item_with_known_owners_is_unchanged():
    existing = ItemRecord(item_id=42, ownership=Ownership.from_dict({"steam": ["A", "B"]}))

    outcome = asyncio.run(_reconciler(StubDetails()).reconcile(42, {"B"}, existing, False))

    assert outcome.action == "unchanged"


def test_override_replaces_record_and_owners_but_keeps_other_providers():
    details = StubDetails({42: _found(42, "Refetched")})
    existing = ItemRecord(
        item_id=42,
        name="Stale",
        ownership=Ownership.from_dict({"steam": ["A", "OLD"], "epic": ["E1"]}),
    )

    outcome = asyncio.run(_reconciler(details).reconcile(42, {"A"}, existing, True))

    assert details.calls == [42]
    assert outcome.action == "write"
    assert outcome.record.name == "Refetched"
    assert outcome.record.ownership.owners_for("steam") == {"A"}
    assert outcome.record.ownership.owners_for("epic") == {"E1"}


def test_merge_keeps_other_providers():
    existing = ItemRecord(item_id=1, ownership=Ownership.from_dict({"epic": ["E1"]}))

    outcome = asyncio.run(_reconciler(StubDetails()).reconcile(1, {"A"}, existing, False))

    assert outcome.record.ownership.to_dict() == {"epic": ["E1"], "steam": ["A"]}


def test_lookup_failures_yield_failed_without_record():
    details = StubDetails(
        {
            1: DetailLookup(1, "failed", error="HTTP 500"),
            2: DetailLookup(2, "mismatch", error="catalog returned item 3"),
        }
    )
    reconciler = _reconciler(details)

    async def run():
        return [await reconciler.reconcile(item_id, {"A"}, None, False) for item_id in (1, 2, 4)]

    outcomes = asyncio.run(run())

    assert [o.action for o in outcomes] == ["failed", "failed", "failed"]
    assert all(o.record is None for o in outcomes)
    assert outcomes[0].reason == "HTTP 500"
    assert outcomes[2].reason == "not_found"
