"""Video progress service layer.

Business logic for:
- Progress reports from the player (keyed upsert, last writer wins)
- Marking a video completed
- Per-user views: all records, completed ids, in-progress records
- Per-video statistics
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import structlog

from edulearn.core.exceptions import NotFoundError, ValidationError
from edulearn.videos.service import VideoCatalogService, VideoNotFoundError

from .models import ProgressRecord
from .repository import ProgressRepository


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressNotFoundError(NotFoundError):
    """No progress record for this (user, video) pair."""

    default_message = "No progress recorded for this video"


class InvalidPositionError(ValidationError):
    """Playback position below zero."""

    default_message = "Position must be zero or greater"


@dataclass
class VideoStats:
    """Aggregate watch statistics for one video."""

    total_watches: int = 0
    completed: int = 0
    in_progress: int = 0
    avg_position: int = 0


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Per-(user, video) watch state and aggregates."""

    def __init__(
        self,
        progress: ProgressRepository,
        catalog: VideoCatalogService | None = None,
    ):
        """Initialize with progress storage.

        Args:
            progress: Progress storage
            catalog: When given, reports for unknown videos are refused
        """
        self.progress = progress
        self.catalog = catalog

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def report_progress(
        self,
        user_id: UUID,
        video_id: UUID,
        position: float,
        completed: bool = False,
    ) -> ProgressRecord:
        """Record the player's position for a (user, video) pair.

        Creates the record on the first report and overwrites it afterwards,
        in one keyed write.

        Raises:
            InvalidPositionError: If position is negative
            VideoNotFoundError: If a catalog is wired and the video is unknown
        """
        if position < 0:
            raise InvalidPositionError

        if self.catalog is not None and not await self.catalog.exists(video_id):
            raise VideoNotFoundError

        record = ProgressRecord(
            user_id=user_id,
            video_id=video_id,
            last_position=position,
            completed=completed,
            updated_at=datetime.now(UTC),
        )
        await self.progress.upsert(record)

        logger.debug(
            "progress_reported",
            video_id=str(video_id),
            position=position,
            completed=completed,
        )
        return record

    async def mark_completed(self, user_id: UUID, video_id: UUID) -> ProgressRecord:
        """Flag an existing record as completed.

        Raises:
            ProgressNotFoundError: If no progress was ever reported
        """
        now = datetime.now(UTC)
        if not await self.progress.mark_completed(user_id, video_id, now):
            raise ProgressNotFoundError

        record = await self.progress.get(user_id, video_id)
        if record is None:
            # Deleted between the two statements
            raise ProgressNotFoundError

        logger.info("video_completed", video_id=str(video_id))
        return record

    async def delete_progress(self, user_id: UUID, video_id: UUID) -> None:
        """Remove the user's record for a video.

        Raises:
            ProgressNotFoundError: If there is no record
        """
        if not await self.progress.delete(user_id, video_id):
            raise ProgressNotFoundError
        logger.info("progress_deleted", video_id=str(video_id))

    # ==========================================================================
    # Per-user reads
    # ==========================================================================

    async def get_progress(self, user_id: UUID, video_id: UUID) -> ProgressRecord | None:
        return await self.progress.get(user_id, video_id)

    async def list_user_progress(self, user_id: UUID) -> list[ProgressRecord]:
        """All of a user's records, most recently updated first."""
        records = await self.progress.list_by_user(user_id)
        return sorted(records, key=lambda r: r.updated_at, reverse=True)

    async def completed_video_ids(self, user_id: UUID) -> list[UUID]:
        records = await self.list_user_progress(user_id)
        return [r.video_id for r in records if r.completed]

    async def in_progress_videos(self, user_id: UUID) -> list[ProgressRecord]:
        """Started but not completed, most recently updated first."""
        records = await self.list_user_progress(user_id)
        return [r for r in records if not r.completed]

    # ==========================================================================
    # Per-video aggregates
    # ==========================================================================

    async def stats_for_video(self, video_id: UUID) -> VideoStats:
        """Aggregate all records for a video, recomputed on every call.

        ``avg_position`` is the mean of last positions rounded half up to whole
        seconds, 0 when nobody watched.
        """
        records = await self.progress.list_by_video(video_id)
        total = len(records)
        if total == 0:
            return VideoStats()

        completed = sum(1 for r in records if r.completed)
        avg = sum(r.last_position for r in records) / total
        return VideoStats(
            total_watches=total,
            completed=completed,
            in_progress=total - completed,
            avg_position=math.floor(avg + 0.5),
        )
