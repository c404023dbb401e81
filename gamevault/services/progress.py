"""In-memory progress and result registries for long-running operations.

Both registries are keyed by operation id and live only in process memory.
Writers (the background run, the fetcher while throttled) and readers (the
polling endpoints) may touch them concurrently, so every access goes through
a :class:`threading.Lock`.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

PHASE_INITIALIZING = "Initializing"
PHASE_FETCHING_OWNER_LISTS = "Fetching Owner Lists"
PHASE_PROCESSING_ITEMS = "Processing Items"
PHASE_WRITING = "Writing"
PHASE_COMPLETED = "Completed"
PHASE_FAILED = "Failed"
PHASE_RATE_LIMITED = "Rate Limited"


@dataclass(frozen=True)
class ProgressInfo:
    """Snapshot of an operation's progress."""

    percent: float
    phase: str
    message: str
    retry_after_seconds: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ProgressTracker:
    """Last-write-wins progress map."""

    def __init__(self) -> None:
        self._entries: dict[str, ProgressInfo] = {}
        self._lock = threading.Lock()

    def set_progress(
        self,
        operation_id: str,
        percent: float,
        phase: str,
        message: str,
        retry_after_seconds: float | None = None,
    ) -> None:
        percent = min(100.0, max(0.0, float(percent)))
        info = ProgressInfo(percent, phase, message, retry_after_seconds)
        with self._lock:
            self._entries[operation_id] = info

    def try_get_progress(self, operation_id: str) -> ProgressInfo | None:
        with self._lock:
            return self._entries.get(operation_id)

    def mark_rate_limited(
        self, operation_id: str, retry_after_seconds: float, message: str
    ) -> None:
        """Switch to the rate-limited phase while keeping the current percent."""
        with self._lock:
            current = self._entries.get(operation_id)
            percent = current.percent if current else 0.0
            self._entries[operation_id] = ProgressInfo(
                percent, PHASE_RATE_LIMITED, message, retry_after_seconds
            )


class SyncResultStore(Generic[T]):
    """Terminal results keyed by operation id."""

    def __init__(self) -> None:
        self._results: dict[str, T] = {}
        self._lock = threading.Lock()

    def set_result(self, operation_id: str, result: T) -> None:
        with self._lock:
            self._results[operation_id] = result

    def try_get_result(self, operation_id: str) -> T | None:
        with self._lock:
            return self._results.get(operation_id)


__all__ = [
    "PHASE_COMPLETED",
    "PHASE_FAILED",
    "PHASE_FETCHING_OWNER_LISTS",
    "PHASE_INITIALIZING",
    "PHASE_PROCESSING_ITEMS",
    "PHASE_RATE_LIMITED",
    "PHASE_WRITING",
    "ProgressInfo",
    "ProgressTracker",
    "SyncResultStore",
]
