"""Tests for the user mapping service."""

from contextlib import contextmanager
from pathlib import Path

import pytest

from gamevault.infrastructure.db import DatabaseError
from gamevault.services.user_mappings import UserMappingService


def test_add_get_and_list(tmp_path: Path):
    service = UserMappingService.from_sqlite_path(tmp_path / "users.db")

    service.add_or_update("222", "bob")
    saved = service.add_or_update("111", "alice", nickname="Al", discord_id="99")

    assert saved.username == "alice"
    assert service.get("111").nickname == "Al"
    assert service.get("333") is None
    assert [m.owner_id for m in service.list_all()] == ["111", "222"]


def test_update_overwrites_existing(tmp_path: Path):
    service = UserMappingService.from_sqlite_path(tmp_path / "users.db")
    service.add_or_update("111", "alice", nickname="Al")

    service.add_or_update("111", "alice2")

    mapping = service.get("111")
    assert mapping.username == "alice2"
    assert mapping.nickname is None


def test_blank_username_is_rejected(tmp_path: Path):
    service = UserMappingService.from_sqlite_path(tmp_path / "users.db")

    with pytest.raises(ValueError):
        service.add_or_update("111", "  ")


def test_store_errors_are_reraised(caplog):
    @contextmanager
    def broken_factory():
        raise DatabaseError("disk on fire")
        yield  # pragma: no cover

    service = UserMappingService(broken_factory)

    with pytest.raises(DatabaseError):
        service.list_all()
    assert "disk on fire" in caplog.text
