"""
Centralized DTOs and input/output models for Gamevault services.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict

# --- Event Publishing Types ---
EventPayload = dict[str, object]
EventPublisher = Callable[[EventPayload], Awaitable[None]]


async def noop_event_publisher(_: EventPayload) -> None:
    """Default no-op event publisher for services that don't need events."""
    pass


# --- Item DTOs ---
class ItemSummaryDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    item_id: int
    name: str | None = None
    item_type: str | None = None
    final_price: int | None = None
    currency: str | None = None
    owners: dict[str, list[str]] = {}
    last_modified: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "ItemSummaryDTO":
        price = document.get("price_overview") or {}
        return cls(
            item_id=int(document["item_id"]),
            name=document.get("name"),
            item_type=document.get("item_type"),
            final_price=price.get("final"),
            currency=price.get("currency"),
            owners=document.get("owned_by") or {},
            last_modified=document.get("last_modified"),
        )


# --- Blacklist DTOs ---
class BlacklistEntryDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    item_id: int
    last_modified: str


# --- User mapping DTOs ---
class UserMappingDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    owner_id: str
    username: str
    nickname: str | None = None
    discord_id: str | None = None


__all__ = [
    "BlacklistEntryDTO",
    "EventPayload",
    "EventPublisher",
    "ItemSummaryDTO",
    "UserMappingDTO",
    "noop_event_publisher",
]
