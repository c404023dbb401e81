from __future__ import annotations

from typing import Any

from ..connection import iso_utcnow
from .base import BaseRepository


class BlacklistRepository(BaseRepository):
    def list_ids(self) -> set[int]:
        cur = self._execute("SELECT item_id FROM blacklisted_items")
        return {int(row[0]) for row in cur.fetchall()}

    def list_entries(self) -> list[dict[str, Any]]:
        return self._fetch_all_as_dicts(
            "SELECT item_id, last_modified FROM blacklisted_items ORDER BY item_id"
        )

    def contains(self, item_id: int) -> bool:
        return (
            self._fetch_scalar(
                "SELECT 1 FROM blacklisted_items WHERE item_id = ?", (int(item_id),)
            )
            is not None
        )

    def add(self, item_id: int) -> None:
        self._execute(
            "INSERT INTO blacklisted_items (item_id, last_modified) VALUES (?, ?) "
            "ON CONFLICT(item_id) DO UPDATE SET last_modified = excluded.last_modified",
            (int(item_id), iso_utcnow()),
        )
        self.conn.commit()

    def remove(self, item_id: int) -> bool:
        cur = self._execute(
            "DELETE FROM blacklisted_items WHERE item_id = ?", (int(item_id),)
        )
        self.conn.commit()
        return cur.rowcount > 0
