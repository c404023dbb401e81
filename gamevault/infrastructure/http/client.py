"""HTTP plumbing for the upstream catalog, owner-list and exchange-rate APIs.

All outbound traffic goes through one shared :class:`httpx.AsyncClient`
built by :func:`build_async_client`. :class:`CatalogEndpoints` only knows how
to build URLs; rate limiting and retries live in
:mod:`gamevault.services.sync.fetcher`.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

DEFAULT_STORE_BASE_URL = "https://store.steampowered.com"
DEFAULT_WEB_API_BASE_URL = "https://api.steampowered.com"
DEFAULT_EXCHANGE_RATE_BASE_URL = "https://api.exchangerate-api.com/v4/latest"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class CatalogEndpoints:
    """URL builders for the three upstream services."""

    store_base_url: str = DEFAULT_STORE_BASE_URL
    web_api_base_url: str = DEFAULT_WEB_API_BASE_URL
    exchange_rate_base_url: str = DEFAULT_EXCHANGE_RATE_BASE_URL

    def item_details(self, item_id: int, *, price_only: bool = False) -> str:
        params: dict[str, str | int] = {"appids": int(item_id), "l": "english"}
        if price_only:
            params["filters"] = "price_overview"
        return str(httpx.URL(f"{self.store_base_url.rstrip('/')}/api/appdetails", params=params))

    def owned_items(self, api_key: str, owner_id: str) -> str:
        return str(
            httpx.URL(
                f"{self.web_api_base_url.rstrip('/')}/IPlayerService/GetOwnedGames/v0001/",
                params={"key": api_key, "steamid": owner_id, "format": "json"},
            )
        )

    def exchange_rates(self, currency: str) -> str:
        return f"{self.exchange_rate_base_url.rstrip('/')}/{currency.upper()}"


def _prepare_headers() -> dict[str, str]:
    from gamevault import __version__

    return {"User-Agent": f"gamevault/{__version__}", "Accept": "application/json"}


def build_async_client(
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared async client.

    ``transport`` lets tests plug in :class:`httpx.MockTransport`.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        headers=_prepare_headers(),
        transport=transport,
        follow_redirects=True,
    )


__all__ = [
    "DEFAULT_EXCHANGE_RATE_BASE_URL",
    "DEFAULT_STORE_BASE_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_WEB_API_BASE_URL",
    "CatalogEndpoints",
    "build_async_client",
]
