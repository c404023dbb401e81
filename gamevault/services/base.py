"""Base service class with shared connection handling.

Services receive a connection factory instead of a connection so every unit
of work opens, uses and closes its own SQLite connection. Async callers run
that unit of work on a worker thread via :meth:`BaseService._run_with_connection`.
"""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Callable, TypeVar

from gamevault.infrastructure.db import get_connection
from gamevault.infrastructure.observability import get_logger

ConnectionFactory = Callable[[], AbstractContextManager[sqlite3.Connection]]
T = TypeVar("T")


def sqlite_connection_factory(db_path: str | Path | None = None) -> ConnectionFactory:
    """Return a factory opening a fresh connection to ``db_path`` on each call."""

    def connection_factory() -> AbstractContextManager[sqlite3.Connection]:
        return get_connection(db_path)

    return connection_factory


class BaseService:
    """Base class for services that talk to the document store.

    Example usage::

        service = BlacklistCache.from_sqlite_path("/path/to/gamevault.db")

        # Tests hand in their own factory
        service = BlacklistCache(lambda: get_connection(tmp_path / "test.db"))
    """

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._connection_factory = connection_factory
        self._logger = get_logger(self.__class__.__module__)

    @classmethod
    def from_sqlite_path(cls, db_path: str | Path | None = None):
        return cls(sqlite_connection_factory(db_path))

    def _with_connection(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Execute ``fn`` within a freshly opened connection."""
        with self._connection_factory() as conn:
            return fn(conn)

    async def _run_with_connection(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Like :meth:`_with_connection` but off the event loop thread."""
        return await asyncio.to_thread(self._with_connection, fn)


__all__ = ["BaseService", "ConnectionFactory", "sqlite_connection_factory"]
