from __future__ import annotations

SCHEMA_VERSION_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);
"""

SCHEMA_ITEMS_SQL = """
CREATE TABLE IF NOT EXISTS items (
    item_id INTEGER PRIMARY KEY,
    name TEXT,
    document TEXT NOT NULL,
    last_modified TEXT NOT NULL
);
"""

SCHEMA_BLACKLIST_SQL = """
CREATE TABLE IF NOT EXISTS blacklisted_items (
    item_id INTEGER PRIMARY KEY,
    last_modified TEXT NOT NULL
);
"""

SCHEMA_USER_MAPPINGS_SQL = """
CREATE TABLE IF NOT EXISTS user_mappings (
    owner_id TEXT PRIMARY KEY,
    username TEXT NOT NULL,
    nickname TEXT,
    discord_id TEXT
);
"""

SCHEMA_SYNC_RUNS_SQL = """
CREATE TABLE IF NOT EXISTS sync_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    operation_id TEXT NOT NULL UNIQUE,
    kind TEXT NOT NULL,
    started_at TEXT NOT NULL,
    finished_at TEXT,
    status TEXT,
    updated_count INTEGER DEFAULT 0,
    skipped_count INTEGER DEFAULT 0,
    failed_count INTEGER DEFAULT 0,
    notes TEXT
);
CREATE INDEX IF NOT EXISTS idx_sync_runs_started_at ON sync_runs (started_at);
"""
