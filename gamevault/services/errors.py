"""Exception types raised by the service layer."""

from __future__ import annotations


class FetchError(Exception):
    """Raised when an outbound catalog request fails."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class FetchExhausted(FetchError):
    """Raised when a request is still throttled after the retry bound."""

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(
            f"Still throttled after {attempts} attempts: {url}", url=url, status=429
        )
        self.attempts = attempts


class BlacklistedItemError(Exception):
    """Raised when a single-item operation targets a blacklisted item."""

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Item {item_id} is blacklisted")
        self.item_id = item_id


class ItemNotFoundError(Exception):
    """Raised when the catalog or the store has no entry for an item."""

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class InvalidSyncRequest(ValueError):
    """Raised when a sync request is rejected before a run starts."""


__all__ = [
    "BlacklistedItemError",
    "FetchError",
    "FetchExhausted",
    "InvalidSyncRequest",
    "ItemNotFoundError",
]
