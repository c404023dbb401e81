"""Blacklist of item ids that sync runs must never touch.

The set of blacklisted ids is cached in memory and reloaded at the start of
every run. Point lookups fall through to the store on a cache miss so an id
blacklisted out-of-band is honoured before the next refresh.
"""

from __future__ import annotations

import threading
from typing import Any

from gamevault.infrastructure.db.repositories import BlacklistRepository

from .base import BaseService, ConnectionFactory


class BlacklistCache(BaseService):
    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)
        self._ids: set[int] = set()
        self._lock = threading.Lock()

    def refresh(self) -> int:
        """Replace the cached ids with the store's current contents."""
        ids = self._with_connection(lambda conn: BlacklistRepository(conn).list_ids())
        with self._lock:
            self._ids = set(ids)
        self._logger.debug("Loaded %d blacklisted items", len(ids))
        return len(ids)

    def is_blacklisted(self, item_id: int) -> bool:
        item_id = int(item_id)
        with self._lock:
            if item_id in self._ids:
                return True
        found = self._with_connection(
            lambda conn: BlacklistRepository(conn).contains(item_id)
        )
        if found:
            with self._lock:
                self._ids.add(item_id)
        return found

    def cached_ids(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._ids)

    def add(self, item_id: int) -> None:
        item_id = int(item_id)
        self._with_connection(lambda conn: BlacklistRepository(conn).add(item_id))
        with self._lock:
            self._ids.add(item_id)
        self._logger.info("Blacklisted item %s", item_id)

    def remove(self, item_id: int) -> bool:
        item_id = int(item_id)
        removed = self._with_connection(
            lambda conn: BlacklistRepository(conn).remove(item_id)
        )
        with self._lock:
            self._ids.discard(item_id)
        if removed:
            self._logger.info("Removed item %s from the blacklist", item_id)
        return removed

    def list_entries(self) -> list[dict[str, Any]]:
        return self._with_connection(lambda conn: BlacklistRepository(conn).list_entries())


__all__ = ["BlacklistCache"]
