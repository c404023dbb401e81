import importlib
import json

import pytest
from click.testing import CliRunner

from gamevault.infrastructure.db import get_connection
from gamevault.infrastructure.db.repositories import BlacklistRepository, ItemRepository
from gamevault.interfaces.cli import cli

cli_main = importlib.import_module("gamevault.interfaces.cli.__main__")
cli_context_module = importlib.import_module("gamevault.interfaces.cli.context")


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr(cli_main, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "cli.db"


@pytest.fixture
def offline_service(monkeypatch, make_service):
    def build(cli_context):
        return make_service(settings=cli_context.settings)

    monkeypatch.setattr(cli_context_module, "build_sync_service", build)


class TestBlacklistCommands:
    def test_list_empty(self, db_path):
        result = CliRunner().invoke(cli, ["--db", str(db_path), "blacklist", "list"])

        assert result.exit_code == 0
        assert "Blacklist is empty." in result.output

    def test_add_list_remove(self, db_path):
        runner = CliRunner()

        added = runner.invoke(cli, ["--db", str(db_path), "blacklist", "add", "13"])
        assert added.exit_code == 0
        assert "Blacklisted item 13" in added.output
        with get_connection(db_path) as conn:
            assert BlacklistRepository(conn).contains(13)

        listed = runner.invoke(cli, ["--db", str(db_path), "blacklist", "list"])
        assert "13" in listed.output

        removed = runner.invoke(cli, ["--db", str(db_path), "blacklist", "remove", "13"])
        assert removed.exit_code == 0
        assert "Removed item 13" in removed.output

    def test_remove_unknown_fails(self, db_path):
        result = CliRunner().invoke(cli, ["--db", str(db_path), "blacklist", "remove", "5"])

        assert result.exit_code == 1
        assert "is not blacklisted" in result.output


class TestSyncCommands:
    def test_sync_writes_items(self, db_path, catalog, offline_service):
        catalog.owned = {"111": [42], "222": [42]}
        catalog.add_item(42, "Shared Game")

        result = CliRunner().invoke(cli, ["--db", str(db_path), "sync", "111", "222"])

        assert result.exit_code == 0, result.output
        assert "Sync completed" in result.output
        with get_connection(db_path) as conn:
            document = ItemRepository(conn).get(42)
        assert document["owned_by"] == {"steam": ["111", "222"]}

    def test_sync_only_passes_filter(self, db_path, catalog, offline_service):
        catalog.owned = {"111": [1, 2]}
        catalog.add_item(1)
        catalog.add_item(2)

        result = CliRunner().invoke(
            cli, ["--db", str(db_path), "sync", "111", "--only", "2"]
        )

        assert result.exit_code == 0, result.output
        assert catalog.detail_requests() == [2]

    def test_blank_owner_is_rejected(self, db_path, offline_service):
        result = CliRunner().invoke(cli, ["--db", str(db_path), "sync", " "])

        assert result.exit_code == 2
        assert "Invalid request" in result.output

    def test_refresh_single_item(self, db_path, catalog, offline_service):
        catalog.add_item(7, "Seven")

        result = CliRunner().invoke(cli, ["--db", str(db_path), "refresh", "7"])

        assert result.exit_code == 0, result.output
        assert "Refreshed Seven" in result.output

    def test_refresh_blacklisted_item(self, db_path, offline_service):
        with get_connection(db_path) as conn:
            BlacklistRepository(conn).add(7)

        result = CliRunner().invoke(cli, ["--db", str(db_path), "refresh", "7"])

        assert result.exit_code == 1
        assert "blacklisted" in result.output

    def test_prices_on_empty_store(self, db_path, offline_service):
        result = CliRunner().invoke(cli, ["--db", str(db_path), "prices"])

        assert result.exit_code == 0, result.output
        assert "Price refresh completed: 0 updated" in result.output


def test_config_file_supplies_database(tmp_path, monkeypatch):
    monkeypatch.delenv("GAMEVAULT_DB_PATH", raising=False)
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"paths": {"db_path": "from-config.db"}}))

    result = CliRunner().invoke(
        cli, ["--config", str(config_path), "blacklist", "add", "3"]
    )

    assert result.exit_code == 0, result.output
    with get_connection(tmp_path / "from-config.db") as conn:
        assert BlacklistRepository(conn).contains(3)
