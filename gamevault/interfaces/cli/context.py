"""Shared helpers for composing CLI command contexts.

Resolves settings from the config file, environment and command-line
overrides, and builds the services the commands run against.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path

from gamevault.app.config import Settings, load_settings
from gamevault.services.base import sqlite_connection_factory
from gamevault.services.blacklist import BlacklistCache
from gamevault.services.sync_service import SyncService


@dataclass(frozen=True)
class CLIContext:
    """Container for CLI configuration."""

    settings: Settings

    @property
    def db_path(self) -> Path:
        return self.settings.db_path


def build_cli_context(
    db_path: str | Path | None = None, config_path: str | Path | None = None
) -> CLIContext:
    settings = load_settings(config_path)
    if db_path is not None:
        settings = dataclasses.replace(settings, db_path=Path(db_path))
    return CLIContext(settings=settings)


def build_sync_service(cli_context: CLIContext) -> SyncService:
    return SyncService(settings=cli_context.settings)


def build_blacklist(cli_context: CLIContext) -> BlacklistCache:
    return BlacklistCache(sqlite_connection_factory(cli_context.db_path))


__all__ = ["CLIContext", "build_blacklist", "build_cli_context", "build_sync_service"]
