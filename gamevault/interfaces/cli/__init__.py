"""CLI interface for Gamevault.

This package is the home for all Click commands.
"""

from .__main__ import cli
from .blacklist import blacklist
from .sync import prices, refresh, sync

__all__ = ["blacklist", "cli", "prices", "refresh", "sync"]
