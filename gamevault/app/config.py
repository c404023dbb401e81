"""Configuration utilities for Gamevault.

Settings come from three layers, later ones winning: built-in defaults, the
``sync`` section of the optional JSON config file (``config.json`` or the
file named by ``GAMEVAULT_CONFIG``), and environment variables
(``STEAM_API_KEY``, ``GAMEVAULT_DB_PATH``).

Example config file::

    {
      "paths": {"db_path": "data/gamevault.db"},
      "steam_api_key": "...",
      "sync": {"max_concurrent_requests": 3, "max_retries": 15}
    }
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gamevault.domain.models import REFERENCE_CURRENCY
from gamevault.infrastructure.db import get_path_config, load_config
from gamevault.infrastructure.http.client import (
    DEFAULT_EXCHANGE_RATE_BASE_URL,
    DEFAULT_STORE_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_WEB_API_BASE_URL,
)

API_KEY_ENV_VAR = "STEAM_API_KEY"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    steam_api_key: str = ""
    store_base_url: str = DEFAULT_STORE_BASE_URL
    web_api_base_url: str = DEFAULT_WEB_API_BASE_URL
    exchange_rate_base_url: str = DEFAULT_EXCHANGE_RATE_BASE_URL
    http_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_concurrent_requests: int = 3
    min_delay_seconds: float = 1.0
    max_retries: int = 15
    backoff_base_seconds: float = 30.0
    reference_currency: str = REFERENCE_CURRENCY
    implausible_rate_threshold: float = 1000.0
    rate_max_attempts: int = 5
    rate_retry_delay_seconds: float = 0.5


def _coerce(name: str, value: Any, default: Any) -> Any:
    try:
        if isinstance(default, bool):
            return bool(value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for sync.{name}: {value!r}") from exc
    return str(value)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Build :class:`Settings` from defaults, the config file and the environment."""
    cfg = load_config(config_path)
    section = cfg.get("sync") if isinstance(cfg.get("sync"), dict) else {}
    overrides: dict[str, Any] = {}
    for fld in dataclasses.fields(Settings):
        if fld.name in ("db_path", "steam_api_key") or fld.name not in section:
            continue
        overrides[fld.name] = _coerce(fld.name, section[fld.name], fld.default)

    api_key = os.environ.get(API_KEY_ENV_VAR) or str(cfg.get("steam_api_key") or "")
    return Settings(
        db_path=get_path_config(config_path)["db_path"],
        steam_api_key=api_key,
        **overrides,
    )


__all__ = ["API_KEY_ENV_VAR", "Settings", "load_settings"]
