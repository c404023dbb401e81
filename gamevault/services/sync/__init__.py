"""Sync services for reconciling owned items with the upstream catalog.

Public API:
  - RateLimitedFetcher – bounded, throttle-aware HTTP fetching
  - CurrencyNormalizer – conversion of price quotes to the reference currency
  - ItemDetailFetcher / DetailLookup – catalog detail lookups
  - OwnerListFetcher – owned item ids per identity
  - OwnershipReconciler / ReconcileOutcome / index_owners – per-item decisions
  - SyncOrchestrator – owned-item sync runs
  - PriceRefresher – price refresh runs

Internal modules should not be imported directly outside of tests.
"""

from .currency import CurrencyNormalizer
from .details import DetailLookup, ItemDetailFetcher, OwnerListFetcher
from .fetcher import RateLimitedFetcher, parse_retry_after
from .orchestrator import SyncOrchestrator
from .prices import PriceRefresher
from .reconciler import OwnershipReconciler, ReconcileOutcome, index_owners

__all__ = [
    # === HTTP & Fetching
    "RateLimitedFetcher",
    "parse_retry_after",
    # === Lookups
    "CurrencyNormalizer",
    "DetailLookup",
    "ItemDetailFetcher",
    "OwnerListFetcher",
    # === Reconciliation
    "OwnershipReconciler",
    "ReconcileOutcome",
    "index_owners",
    # === Runs
    "PriceRefresher",
    "SyncOrchestrator",
]
