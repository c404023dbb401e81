from __future__ import annotations

from typing import Any

from .base import BaseRepository


class UserMappingRepository(BaseRepository):
    def get(self, owner_id: str) -> dict[str, Any] | None:
        return self._fetch_one_as_dict(
            "SELECT owner_id, username, nickname, discord_id FROM user_mappings "
            "WHERE owner_id = ?",
            (owner_id,),
        )

    def list(self) -> list[dict[str, Any]]:
        return self._fetch_all_as_dicts(
            "SELECT owner_id, username, nickname, discord_id FROM user_mappings "
            "ORDER BY owner_id"
        )

    def upsert(
        self,
        owner_id: str,
        username: str,
        nickname: str | None = None,
        discord_id: str | None = None,
    ) -> None:
        self._execute(
            """
            INSERT INTO user_mappings (owner_id, username, nickname, discord_id)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(owner_id) DO UPDATE SET
                username = excluded.username,
                nickname = excluded.nickname,
                discord_id = excluded.discord_id
            """,
            (owner_id, username, nickname, discord_id),
        )
        self.conn.commit()
