from __future__ import annotations

from gamevault.infrastructure.db import DatabaseError
from gamevault.infrastructure.db.repositories import UserMappingRepository

from .base import BaseService
from .dto import UserMappingDTO


class UserMappingService(BaseService):
    """Map owner identities to human-readable names."""

    def get(self, owner_id: str) -> UserMappingDTO | None:
        try:
            row = self._with_connection(lambda conn: UserMappingRepository(conn).get(owner_id))
        except DatabaseError as exc:
            self._logger.error("Failed to load user mapping %s: %s", owner_id, exc)
            raise
        return UserMappingDTO(**row) if row else None

    def add_or_update(
        self,
        owner_id: str,
        username: str,
        nickname: str | None = None,
        discord_id: str | None = None,
    ) -> UserMappingDTO:
        owner_id = str(owner_id).strip()
        if not owner_id or not username.strip():
            raise ValueError("owner_id and username are required")
        try:
            self._with_connection(
                lambda conn: UserMappingRepository(conn).upsert(
                    owner_id, username, nickname, discord_id
                )
            )
        except DatabaseError as exc:
            self._logger.error("Failed to save user mapping %s: %s", owner_id, exc)
            raise
        self._logger.info("Saved user mapping %s -> %s", owner_id, username)
        return UserMappingDTO(
            owner_id=owner_id, username=username, nickname=nickname, discord_id=discord_id
        )

    def list_all(self) -> list[UserMappingDTO]:
        try:
            rows = self._with_connection(lambda conn: UserMappingRepository(conn).list())
        except DatabaseError as exc:
            self._logger.error("Failed to list user mappings: %s", exc)
            raise
        return [UserMappingDTO(**row) for row in rows]


__all__ = ["UserMappingService"]
