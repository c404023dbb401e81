from __future__ import annotations

from typing import Any

from ..connection import iso_utcnow
from .base import BaseRepository


class SyncRunRepository(BaseRepository):
    """Audit trail of sync runs, one row per operation id."""

    def start(self, operation_id: str, kind: str) -> None:
        self._execute(
            "INSERT INTO sync_runs (operation_id, kind, started_at, status) "
            "VALUES (?, ?, ?, ?)",
            (operation_id, kind, iso_utcnow(), "running"),
        )
        self.conn.commit()

    def finish(
        self,
        operation_id: str,
        *,
        status: str,
        updated_count: int,
        skipped_count: int,
        failed_count: int,
        notes: str | None = None,
    ) -> None:
        self._execute(
            """
            UPDATE sync_runs SET status = ?, finished_at = ?,
                updated_count = ?, skipped_count = ?, failed_count = ?, notes = ?
            WHERE operation_id = ?
            """,
            (status, iso_utcnow(), updated_count, skipped_count, failed_count,
             notes, operation_id),
        )
        self.conn.commit()

    def get(self, operation_id: str) -> dict[str, Any] | None:
        return self._fetch_one_as_dict(
            "SELECT * FROM sync_runs WHERE operation_id = ?", (operation_id,)
        )

    def list_recent(self, limit: int = 20) -> list[dict[str, Any]]:
        return self._fetch_all_as_dicts(
            "SELECT * FROM sync_runs ORDER BY id DESC LIMIT ?", (limit,)
        )
