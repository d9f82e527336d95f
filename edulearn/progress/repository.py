# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra access for video progress."""

from typing import TYPE_CHECKING
from uuid import UUID

from edulearn.core.database.errors import store_errors

from .models import ProgressRecord


if TYPE_CHECKING:
    from datetime import datetime

    from cassandra.cluster import Session


class ProgressRepository:
    """Reads and writes of the ``video_progress`` table."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        ks = self.keyspace
        self._upsert = self.session.prepare(f"""
            INSERT INTO {ks}.video_progress
            (user_id, video_id, id, last_position, completed, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)
        self._mark_completed = self.session.prepare(f"""
            UPDATE {ks}.video_progress
            SET completed = true, updated_at = ?
            WHERE user_id = ? AND video_id = ?
            IF EXISTS
        """)
        self._get = self.session.prepare(
            f"SELECT * FROM {ks}.video_progress WHERE user_id = ? AND video_id = ?"
        )
        self._list_by_user = self.session.prepare(
            f"SELECT * FROM {ks}.video_progress WHERE user_id = ?"
        )
        self._list_by_video = self.session.prepare(
            f"SELECT * FROM {ks}.video_progress WHERE video_id = ?"
        )
        self._delete = self.session.prepare(
            f"DELETE FROM {ks}.video_progress WHERE user_id = ? AND video_id = ? IF EXISTS"
        )

    async def upsert(self, record: ProgressRecord) -> None:
        """Write the record for its (user, video) key, replacing any previous one."""
        with store_errors("upsert_progress", video_id=str(record.video_id)):
            await self.session.aexecute(
                self._upsert,
                [
                    record.user_id,
                    record.video_id,
                    record.id,
                    record.last_position,
                    record.completed,
                    record.updated_at,
                ],
            )

    async def mark_completed(
        self, user_id: UUID, video_id: UUID, updated_at: "datetime"
    ) -> bool:
        """Set completed on an existing record.

        Returns:
            False if there is no record for the pair
        """
        with store_errors("mark_progress_completed", video_id=str(video_id)):
            result = await self.session.aexecute(
                self._mark_completed, [updated_at, user_id, video_id]
            )
        return bool(result.was_applied)

    async def get(self, user_id: UUID, video_id: UUID) -> ProgressRecord | None:
        with store_errors("get_progress", video_id=str(video_id)):
            row = (await self.session.aexecute(self._get, [user_id, video_id])).one()
        return ProgressRecord.from_row(row) if row else None

    async def list_by_user(self, user_id: UUID) -> list[ProgressRecord]:
        with store_errors("list_user_progress"):
            rows = await self.session.aexecute(self._list_by_user, [user_id])
        return [ProgressRecord.from_row(row) for row in rows]

    async def list_by_video(self, video_id: UUID) -> list[ProgressRecord]:
        with store_errors("list_video_progress", video_id=str(video_id)):
            rows = await self.session.aexecute(self._list_by_video, [video_id])
        return [ProgressRecord.from_row(row) for row in rows]

    async def delete(self, user_id: UUID, video_id: UUID) -> bool:
        """Delete the record for the pair.

        Returns:
            False if there was nothing to delete
        """
        with store_errors("delete_progress", video_id=str(video_id)):
            result = await self.session.aexecute(self._delete, [user_id, video_id])
        return bool(result.was_applied)


__all__ = ["ProgressRepository"]
