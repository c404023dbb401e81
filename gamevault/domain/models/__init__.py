"""Domain models package.

This package contains the domain model classes for Gamevault.
"""

from .item import (
    REFERENCE_CURRENCY,
    ItemRecord,
    Ownership,
    Platforms,
    PriceQuote,
    format_minor_units,
)
from .sync import PriceUpdateResult, RunStatus, SyncResult, SyncTally

__all__ = [
    "REFERENCE_CURRENCY",
    "ItemRecord",
    "Ownership",
    "Platforms",
    "PriceQuote",
    "PriceUpdateResult",
    "RunStatus",
    "SyncResult",
    "SyncTally",
    "format_minor_units",
]
