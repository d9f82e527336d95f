"""Pydantic schemas for video progress tracking."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from edulearn.core.schemas import MessageResponse

from .models import ProgressRecord
from .service import VideoStats


# ==============================================================================
# Requests
# ==============================================================================


class ReportProgressRequest(BaseModel):
    """Position report sent periodically by the player."""

    video_id: UUID = Field(
        ..., validation_alias=AliasChoices("video_id", "videoId")
    )
    position: float = Field(
        ..., allow_inf_nan=False, description="Playback position in seconds"
    )
    completed: bool = False


# ==============================================================================
# Responses
# ==============================================================================


class ProgressResponse(BaseModel):
    """One progress record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    video_id: UUID
    last_position: float
    completed: bool
    updated_at: datetime

    @classmethod
    def from_record(cls, record: ProgressRecord) -> "ProgressResponse":
        return cls(**record.to_dict())


class ProgressRecordResponse(MessageResponse):
    data: ProgressResponse | None = None


class ProgressListResponse(MessageResponse):
    data: list[ProgressResponse] = Field(default_factory=list)


class CompletedVideosResponse(MessageResponse):
    data: list[UUID] = Field(default_factory=list)


class VideoStatsData(BaseModel):
    total_watches: int = 0
    completed: int = 0
    in_progress: int = 0
    avg_position: int = 0

    @classmethod
    def from_stats(cls, stats: VideoStats) -> "VideoStatsData":
        return cls(
            total_watches=stats.total_watches,
            completed=stats.completed,
            in_progress=stats.in_progress,
            avg_position=stats.avg_position,
        )


class VideoStatsResponse(MessageResponse):
    data: VideoStatsData = Field(default_factory=VideoStatsData)
