"""Service layer modules for Gamevault."""

from .blacklist import BlacklistCache  # noqa: F401
from .errors import (  # noqa: F401
    BlacklistedItemError,
    FetchError,
    FetchExhausted,
    InvalidSyncRequest,
    ItemNotFoundError,
)
from .progress import ProgressInfo, ProgressTracker, SyncResultStore  # noqa: F401
from .sync_service import SyncService  # noqa: F401
from .user_mappings import UserMappingService  # noqa: F401

__all__ = [
    "BlacklistCache",
    "BlacklistedItemError",
    "FetchError",
    "FetchExhausted",
    "InvalidSyncRequest",
    "ItemNotFoundError",
    "ProgressInfo",
    "ProgressTracker",
    "SyncResultStore",
    "SyncService",
    "UserMappingService",
]
