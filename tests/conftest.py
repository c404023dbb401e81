"""Shared fixtures: an in-memory upstream catalog served through httpx.MockTransport."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from gamevault.app.config import Settings
from gamevault.infrastructure.observability import reset_metrics
from gamevault.services.sync_service import SyncService


async def no_sleep(_seconds: float) -> None:
    return None


def steam_payload(
    item_id: int,
    name: str | None = None,
    *,
    price: dict[str, Any] | None = None,
    reported_id: int | None = None,
) -> dict[str, Any]:
    """A catalog ``data`` object shaped like the real store response."""
    payload: dict[str, Any] = {
        "type": "game",
        "name": name or f"Game {item_id}",
        "steam_appid": reported_id if reported_id is not None else item_id,
        "is_free": price is None,
        "short_description": f"Short description of {item_id}",
        "header_image": f"https://cdn.example.com/{item_id}/header.jpg",
        "developers": ["Dev Studio"],
        "publishers": ["Pub House"],
        "platforms": {"windows": True, "mac": False, "linux": True},
        "genres": [{"id": "1", "description": "Action"}],
        "categories": [{"id": 2, "description": "Single-player"}],
        "release_date": {"coming_soon": False, "date": "1 Jan, 2020"},
        "pc_requirements": {"minimum": "<strong>Minimum:</strong> 4 GB RAM"},
        "mac_requirements": [],
        "linux_requirements": [],
        "screenshots": [{"id": 0, "path_full": f"https://cdn.example.com/{item_id}/1.jpg"}],
        "ratings": {"esrb": {"rating": "t"}},
    }
    if price is not None:
        payload["price_overview"] = price
    return payload


def usd_price(final: int, initial: int | None = None) -> dict[str, Any]:
    initial = final if initial is None else initial
    return {
        "currency": "USD",
        "initial": initial,
        "final": final,
        "discount_percent": 0,
        "initial_formatted": f"${initial / 100:.2f}",
        "final_formatted": f"${final / 100:.2f}",
    }


class FakeCatalog:
    """Stand-in for the store, the web API and the exchange-rate service."""

    payload = staticmethod(steam_payload)
    usd_price = staticmethod(usd_price)

    def __init__(self) -> None:
        self.details: dict[int, dict[str, Any]] = {}
        self.owned: dict[str, list[Any] | None] = {}
        self.rates: dict[str, dict[str, float]] = {}
        self.failing_owners: set[str] = set()
        self.failing_items: set[int] = set()
        self.requests: list[httpx.Request] = []

    def add_item(self, item_id: int, name: str | None = None, **kwargs: Any) -> None:
        self.details[item_id] = steam_payload(item_id, name, **kwargs)

    def detail_requests(self) -> list[int]:
        return [
            int(request.url.params["appids"])
            for request in self.requests
            if request.url.path == "/api/appdetails"
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/appdetails":
            app_id = request.url.params["appids"]
            if int(app_id) in self.failing_items:
                return httpx.Response(500)
            data = self.details.get(int(app_id))
            if data is None:
                return httpx.Response(200, json={app_id: {"success": False}})
            if request.url.params.get("filters") == "price_overview":
                data = {"price_overview": data.get("price_overview", [])}
            return httpx.Response(200, json={app_id: {"success": True, "data": data}})
        if path == "/IPlayerService/GetOwnedGames/v0001/":
            owner_id = request.url.params["steamid"]
            if owner_id in self.failing_owners:
                return httpx.Response(500)
            games = self.owned.get(owner_id)
            if games is None:
                return httpx.Response(200, json={"response": {}})
            return httpx.Response(
                200,
                json={
                    "response": {
                        "game_count": len(games),
                        "games": [{"appid": game, "playtime_forever": 0} for game in games],
                    }
                },
            )
        if path.startswith("/v4/latest/"):
            currency = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200, json={"base": currency, "rates": self.rates.get(currency, {})}
            )
        return httpx.Response(404)


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture(name="no_sleep")
def no_sleep_fixture():
    return no_sleep


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "gamevault.db",
        steam_api_key="test-key",
        min_delay_seconds=0.0,
        max_retries=3,
    )


@pytest.fixture
def make_service(settings: Settings, catalog: FakeCatalog) -> Callable[..., SyncService]:
    def factory(**kwargs: Any) -> SyncService:
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("transport", httpx.MockTransport(catalog.handler))
        kwargs.setdefault("sleep", no_sleep)
        return SyncService(**kwargs)

    return factory
