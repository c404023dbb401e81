"""Document storage for catalog items.

Each item is stored as one JSON document keyed by its numeric ``item_id``.
Only the columns needed for filtering and projections are broken out; the
document column is the source of truth.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from ..connection import iso_utcnow
from .base import BaseRepository

_UPSERT_SQL = """
    INSERT INTO items (item_id, name, document, last_modified)
    VALUES (?, ?, ?, ?)
    ON CONFLICT(item_id) DO UPDATE SET
        name = excluded.name,
        document = excluded.document,
        last_modified = excluded.last_modified
"""


def _row_params(document: dict[str, Any]) -> tuple[Any, ...]:
    item_id = document.get("item_id")
    if item_id is None:
        raise ValueError("Item document is missing 'item_id'")
    last_modified = document.get("last_modified") or iso_utcnow()
    return (
        int(item_id),
        document.get("name"),
        json.dumps(document, sort_keys=True),
        last_modified,
    )


class ItemRepository(BaseRepository):
    def get(self, item_id: int) -> dict[str, Any] | None:
        raw = self._fetch_scalar(
            "SELECT document FROM items WHERE item_id = ?", (int(item_id),)
        )
        return json.loads(raw) if raw else None

    def list_ids(self) -> list[int]:
        """Id-only projection over every stored item."""
        cur = self._execute("SELECT item_id FROM items ORDER BY item_id")
        return [int(row[0]) for row in cur.fetchall()]

    def list_documents(self, limit: int | None = None) -> list[dict[str, Any]]:
        query = "SELECT document FROM items ORDER BY item_id"
        params: tuple[Any, ...] = ()
        if limit is not None and limit > 0:
            query += " LIMIT ?"
            params = (limit,)
        return [json.loads(row[0]) for row in self._execute(query, params).fetchall()]

    def replace(self, document: dict[str, Any]) -> None:
        """Insert or fully replace one document."""
        self._execute(_UPSERT_SQL, _row_params(document))
        self.conn.commit()

    def bulk_upsert(self, documents: Iterable[dict[str, Any]]) -> int:
        """Upsert all documents in a single transaction.

        Applying the same batch twice leaves the table in the same state.
        Returns the number of documents written.
        """
        rows = [_row_params(document) for document in documents]
        if not rows:
            return 0
        with self.conn:
            self.conn.executemany(_UPSERT_SQL, rows)
        return len(rows)
