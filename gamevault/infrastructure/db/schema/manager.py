from __future__ import annotations

import sqlite3

from ..connection import iso_utcnow
from .tables import (
    SCHEMA_BLACKLIST_SQL,
    SCHEMA_ITEMS_SQL,
    SCHEMA_SYNC_RUNS_SQL,
    SCHEMA_USER_MAPPINGS_SQL,
    SCHEMA_VERSION_SQL,
)

# Increment when making structural changes.
CURRENT_SCHEMA_VERSION = 1


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    conn.executescript(SCHEMA_VERSION_SQL)
    row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
    return row[0] if row else None


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create every table used by the document store and stamp the version."""

    conn.executescript(SCHEMA_ITEMS_SQL)
    conn.executescript(SCHEMA_BLACKLIST_SQL)
    conn.executescript(SCHEMA_USER_MAPPINGS_SQL)
    conn.executescript(SCHEMA_SYNC_RUNS_SQL)
    current = get_schema_version(conn)
    if current is None or current < CURRENT_SCHEMA_VERSION:
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (CURRENT_SCHEMA_VERSION, iso_utcnow()),
        )
        conn.commit()
