"""
Gamevault package initializer.

This package keeps a catalog of owned games in sync with the Steam store,
merging the game libraries of several accounts into one set of records.

The package exposes a ``__version__`` attribute indicating the installed
version of Gamevault. The version is read from pyproject.toml via
importlib.metadata – this is the single source of truth.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gamevault")
except PackageNotFoundError:
    # Package is not installed (running from source without pip install -e .)
    __version__ = "0.0.0.dev"

__all__: list[str] = ["__version__"]
