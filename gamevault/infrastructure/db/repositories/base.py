"""Base repository class with shared database query helpers.

This module provides a base class for all repository implementations,
eliminating duplicate cursor→dict conversion logic.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from ..schema import ensure_schema


class BaseRepository:
    """Base class for all repository implementations.

    The schema is ensured on construction so a repository can be handed a
    fresh connection to an empty database file.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize repository with a database connection.

        Args:
            conn: SQLite database connection
        """
        self.conn = conn
        ensure_schema(self.conn)

    def _fetch_all_as_dicts(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query and return all rows as dictionaries.

        Example:
            >>> rows = self._fetch_all_as_dicts(
            ...     "SELECT owner_id, username FROM user_mappings WHERE nickname = ?",
            ...     ("Gabe",)
            ... )
            >>> rows[0]['username']
            'gaben'
        """
        cur = self.conn.execute(query, params or ())
        columns = [c[0] for c in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]

    def _fetch_one_as_dict(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> dict[str, Any] | None:
        """Execute query and return first row as dictionary, or None if no rows."""
        cur = self.conn.execute(query, params or ())
        row = cur.fetchone()
        if not row:
            return None
        columns = [c[0] for c in cur.description]
        return dict(zip(columns, row))

    def _fetch_scalar(self, query: str, params: tuple[Any, ...] | None = None) -> Any:
        """Execute query and return first column of first row.

        Example:
            >>> count = self._fetch_scalar("SELECT COUNT(*) FROM items")
            >>> count
            42
        """
        cur = self.conn.execute(query, params or ())
        row = cur.fetchone()
        return row[0] if row else None

    def _execute(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> sqlite3.Cursor:
        """Execute query and return cursor for custom processing."""
        return self.conn.execute(query, params or ())
