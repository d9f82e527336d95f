"""Video catalog service (read-only)."""

from uuid import UUID

from edulearn.core.exceptions import NotFoundError

from .models import VideoAsset
from .repository import VideoRepository


class VideoNotFoundError(NotFoundError):
    """No video with this id."""

    default_message = "Video not found"


class VideoCatalogService:
    """Existence checks and counts over published videos."""

    def __init__(self, videos: VideoRepository):
        self.videos = videos

    async def get_video(self, video_id: UUID) -> VideoAsset:
        """Fetch a video.

        Raises:
            VideoNotFoundError: If the id is unknown
        """
        video = await self.videos.get(video_id)
        if video is None:
            raise VideoNotFoundError
        return video

    async def exists(self, video_id: UUID) -> bool:
        return await self.videos.get(video_id) is not None

    async def count(self) -> int:
        return await self.videos.count()
