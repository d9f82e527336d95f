"""Database model for the video catalog.

Videos are published by teachers through the content tooling; this service
only reads them (existence checks and counts).
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class VideoSource(str, Enum):
    """Where the playable media lives."""

    EMBEDDED_LINK = "embedded-link"  # External player URL (e.g. YouTube)
    UPLOADED_FILE = "uploaded-file"  # File kept in object storage


VIDEOS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.videos (
    id UUID PRIMARY KEY,
    uploader_id UUID,
    title TEXT,
    subject TEXT,
    source_kind TEXT,
    created_at TIMESTAMP
)
"""

VIDEOS_TABLES_CQL = [VIDEOS_TABLE_CQL]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class VideoAsset:
    """A published video.

    Attributes:
        id: Unique identifier
        uploader_id: Teacher who published it
        title: Display title
        subject: Subject or course area
        source_kind: embedded-link or uploaded-file
        created_at: Publication timestamp
    """

    def __init__(
        self,
        id: UUID,
        uploader_id: UUID | None = None,
        title: str = "",
        subject: str = "",
        source_kind: str = VideoSource.EMBEDDED_LINK.value,
        created_at: datetime | None = None,
    ):
        self.id = id
        self.uploader_id = uploader_id
        self.title = title
        self.subject = subject
        self.source_kind = source_kind
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "VideoAsset":
        return cls(
            id=row.id,
            uploader_id=row.uploader_id,
            title=row.title or "",
            subject=row.subject or "",
            source_kind=row.source_kind or VideoSource.EMBEDDED_LINK.value,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<VideoAsset {self.id} {self.title!r}>"
