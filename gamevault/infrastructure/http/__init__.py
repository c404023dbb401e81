"""HTTP adapters."""

from .client import CatalogEndpoints, build_async_client

__all__ = ["CatalogEndpoints", "build_async_client"]
