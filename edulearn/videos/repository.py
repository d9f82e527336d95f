# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra reads of the ``videos`` table."""

from typing import TYPE_CHECKING
from uuid import UUID

from edulearn.core.database.errors import store_errors

from .models import VideoAsset


if TYPE_CHECKING:
    from cassandra.cluster import Session


class VideoRepository:
    """Catalog lookups and counts."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._get = session.prepare(f"SELECT * FROM {keyspace}.videos WHERE id = ?")
        self._count = session.prepare(f"SELECT COUNT(*) FROM {keyspace}.videos")

    async def get(self, video_id: UUID) -> VideoAsset | None:
        with store_errors("get_video", video_id=str(video_id)):
            row = (await self.session.aexecute(self._get, [video_id])).one()
        return VideoAsset.from_row(row) if row else None

    async def count(self) -> int:
        with store_errors("count_videos"):
            row = (await self.session.aexecute(self._count)).one()
        return int(row[0]) if row else 0
