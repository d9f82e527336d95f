"""Database models for video progress tracking.

One row per (user, video) pair. The pair is the primary key, so a report is
a single keyed upsert: concurrent reports for the same pair overwrite each
other and can never create a second row.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import NAMESPACE_URL, UUID, uuid5


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition key: user_id, so a user's whole history is one partition read.
# Clustering: video_id, which makes (user_id, video_id) unique.
VIDEO_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.video_progress (
    user_id UUID,
    video_id UUID,
    id UUID,
    last_position DOUBLE,
    completed BOOLEAN,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id), video_id)
) WITH CLUSTERING ORDER BY (video_id ASC)
"""

# Serves per-video aggregates
VIDEO_PROGRESS_VIDEO_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS video_progress_video_idx
ON {keyspace}.video_progress (video_id)
"""

PROGRESS_TABLES_CQL = [
    VIDEO_PROGRESS_TABLE_CQL,
    VIDEO_PROGRESS_VIDEO_INDEX_CQL,
]


_PROGRESS_NAMESPACE = uuid5(NAMESPACE_URL, "edulearn:video-progress")


def progress_record_id(user_id: UUID, video_id: UUID) -> UUID:
    """Stable identifier for a (user, video) pair."""
    return uuid5(_PROGRESS_NAMESPACE, f"{user_id}:{video_id}")


class ProgressRecord:
    """Watch state of one user on one video.

    Attributes:
        user_id: Watching account
        video_id: Watched video
        last_position: Last reported playback position in seconds (fractional)
        completed: Whether the user finished the video
        updated_at: Time of the last report or completion
    """

    def __init__(
        self,
        user_id: UUID,
        video_id: UUID,
        last_position: float = 0.0,
        completed: bool = False,
        updated_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.video_id = video_id
        self.last_position = float(last_position)
        self.completed = completed
        self.updated_at = ensure_utc_aware(updated_at) or datetime.now(UTC)

    @property
    def id(self) -> UUID:
        return progress_record_id(self.user_id, self.video_id)

    @classmethod
    def from_row(cls, row: Any) -> "ProgressRecord":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            video_id=row.video_id,
            last_position=float(row.last_position or 0),
            completed=bool(row.completed),
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "video_id": self.video_id,
            "last_position": self.last_position,
            "completed": self.completed,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        state = "completed" if self.completed else f"at {self.last_position:g}s"
        return f"<ProgressRecord user={self.user_id} video={self.video_id} {state}>"
