"""Shared FastAPI dependencies for Gamevault application components."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from gamevault.services.blacklist import BlacklistCache
from gamevault.services.sync_service import SyncService
from gamevault.services.user_mappings import UserMappingService

__all__ = [
    "get_sync_service",
    "get_blacklist",
    "get_user_mapping_service",
    "close_sync_service",
    # Annotated dependency types
    "SyncServiceDep",
    "BlacklistDep",
    "UserMappingServiceDep",
]

_sync_service: SyncService | None = None


def get_sync_service() -> SyncService:
    """Return the process-wide sync service, creating it on first use."""
    global _sync_service
    if _sync_service is None:
        _sync_service = SyncService()
    return _sync_service


async def close_sync_service() -> None:
    global _sync_service
    if _sync_service is not None:
        await _sync_service.close()
        _sync_service = None


def get_blacklist(service: SyncService = Depends(get_sync_service)) -> BlacklistCache:
    return service.blacklist


def get_user_mapping_service(
    service: SyncService = Depends(get_sync_service),
) -> UserMappingService:
    return service.user_mappings


SyncServiceDep = Annotated[SyncService, Depends(get_sync_service)]
BlacklistDep = Annotated[BlacklistCache, Depends(get_blacklist)]
UserMappingServiceDep = Annotated[UserMappingService, Depends(get_user_mapping_service)]
