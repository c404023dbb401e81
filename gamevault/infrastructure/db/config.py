from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

DEFAULT_DB_TIMEOUT = 30.0

CONFIG_ENV_VAR = "GAMEVAULT_CONFIG"
DB_PATH_ENV_VAR = "GAMEVAULT_DB_PATH"
_DEFAULT_CONFIG_FILE = Path("config.json")


def _resolve_config_path(config_path: Path | str | None) -> Path:
    if config_path is not None:
        return Path(config_path)
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    return _DEFAULT_CONFIG_FILE


def load_config(config_path: Path | str | None = None) -> Dict[str, Any]:
    """Load the JSON config file if present and return it as a dictionary."""

    path = _resolve_config_path(config_path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, dict) else {}


def get_path_config(config_path: Path | str | None = None) -> Dict[str, Path]:
    """Return resolved filesystem paths from the project configuration.

    ``GAMEVAULT_DB_PATH`` wins over the ``paths.db_path`` config entry.
    Relative paths are resolved against the directory of the config file.
    """

    path = _resolve_config_path(config_path)
    cfg = load_config(path)
    root = path.parent
    paths_cfg = cfg.get("paths", {}) if isinstance(cfg.get("paths", {}), dict) else {}
    raw_db_path = os.environ.get(DB_PATH_ENV_VAR) or paths_cfg.get("db_path", "gamevault.db")
    db_path = Path(raw_db_path)
    if not db_path.is_absolute():
        db_path = (root / db_path).resolve()
    return {"db_path": db_path}


def get_default_timeout(config_path: Path | str | None = None) -> float:
    """Read the preferred database timeout from configuration."""

    cfg = load_config(config_path)
    try:
        return float(cfg.get("db_timeout_seconds", DEFAULT_DB_TIMEOUT))
    except (TypeError, ValueError):
        return DEFAULT_DB_TIMEOUT
