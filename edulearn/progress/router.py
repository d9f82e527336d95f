"""Video progress API endpoints.

Routes:
- PUT /progress/video - Report playback position
- POST /progress/video/{video_id}/complete - Mark completed
- GET /progress/video/{video_id} - Own record for a video
- DELETE /progress/video/{video_id} - Remove own record
- GET /progress/me - All own records
- GET /progress/me/completed - Completed video ids
- GET /progress/me/in-progress - Started, not completed
- GET /progress/videos/{video_id}/stats - Aggregates (teacher or admin)
"""

from uuid import UUID

from fastapi import APIRouter

from edulearn.auth.dependencies import CurrentUser, TeacherUser
from edulearn.core.exceptions import AppError, StoreUnavailableError, to_http_exception
from edulearn.core.logging import get_logger
from edulearn.core.schemas import MessageResponse

from .dependencies import ProgressServiceDep
from .schemas import (
    CompletedVideosResponse,
    ProgressListResponse,
    ProgressRecordResponse,
    ProgressResponse,
    ReportProgressRequest,
    VideoStatsData,
    VideoStatsResponse,
)


logger = get_logger(__name__)

router = APIRouter(prefix="/progress", tags=["progress"])

UNAVAILABLE_MESSAGE = "Progress temporarily unavailable"


def _user_id(user: CurrentUser) -> UUID:
    return UUID(str(user.id))


# ==============================================================================
# Writes
# ==============================================================================


@router.put(
    "/video",
    response_model=ProgressRecordResponse,
    summary="Report video progress",
    responses={
        404: {"description": "Video not found"},
        422: {"description": "Negative position"},
        503: {"description": "Store unavailable"},
    },
)
async def report_progress(
    data: ReportProgressRequest,
    user: CurrentUser,
    service: ProgressServiceDep,
) -> ProgressRecordResponse:
    """Upsert the caller's record for a video."""
    try:
        record = await service.report_progress(
            _user_id(user), data.video_id, data.position, data.completed
        )
    except AppError as e:
        raise to_http_exception(e) from e
    return ProgressRecordResponse(
        message="Progress saved", data=ProgressResponse.from_record(record)
    )


@router.post(
    "/video/{video_id}/complete",
    response_model=ProgressRecordResponse,
    summary="Mark video completed",
    responses={404: {"description": "No progress reported yet"}},
)
async def mark_completed(
    video_id: UUID,
    user: CurrentUser,
    service: ProgressServiceDep,
) -> ProgressRecordResponse:
    try:
        record = await service.mark_completed(_user_id(user), video_id)
    except AppError as e:
        raise to_http_exception(e) from e
    return ProgressRecordResponse(
        message="Video marked as completed", data=ProgressResponse.from_record(record)
    )


@router.delete(
    "/video/{video_id}",
    response_model=MessageResponse,
    summary="Delete own progress for a video",
    responses={404: {"description": "No progress recorded"}},
)
async def delete_progress(
    video_id: UUID,
    user: CurrentUser,
    service: ProgressServiceDep,
) -> MessageResponse:
    try:
        await service.delete_progress(_user_id(user), video_id)
    except AppError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Progress deleted")


# ==============================================================================
# Reads (fail soft when the store is unreachable)
# ==============================================================================


@router.get(
    "/video/{video_id}",
    response_model=ProgressRecordResponse,
    summary="Get own progress for a video",
)
async def get_progress(
    video_id: UUID,
    user: CurrentUser,
    service: ProgressServiceDep,
) -> ProgressRecordResponse:
    """``data`` is null when the video was never watched."""
    try:
        record = await service.get_progress(_user_id(user), video_id)
    except StoreUnavailableError:
        logger.warning("progress_unavailable", video_id=str(video_id))
        return ProgressRecordResponse(message=UNAVAILABLE_MESSAGE)
    return ProgressRecordResponse(
        data=ProgressResponse.from_record(record) if record else None
    )


@router.get("/me", response_model=ProgressListResponse, summary="List own progress")
async def list_my_progress(
    user: CurrentUser,
    service: ProgressServiceDep,
) -> ProgressListResponse:
    try:
        records = await service.list_user_progress(_user_id(user))
    except StoreUnavailableError:
        logger.warning("progress_unavailable")
        return ProgressListResponse(message=UNAVAILABLE_MESSAGE)
    return ProgressListResponse(data=[ProgressResponse.from_record(r) for r in records])


@router.get(
    "/me/completed",
    response_model=CompletedVideosResponse,
    summary="List completed video ids",
)
async def list_completed(
    user: CurrentUser,
    service: ProgressServiceDep,
) -> CompletedVideosResponse:
    try:
        video_ids = await service.completed_video_ids(_user_id(user))
    except StoreUnavailableError:
        logger.warning("progress_unavailable")
        return CompletedVideosResponse(message=UNAVAILABLE_MESSAGE)
    return CompletedVideosResponse(data=video_ids)


@router.get(
    "/me/in-progress",
    response_model=ProgressListResponse,
    summary="List videos started but not completed",
)
async def list_in_progress(
    user: CurrentUser,
    service: ProgressServiceDep,
) -> ProgressListResponse:
    try:
        records = await service.in_progress_videos(_user_id(user))
    except StoreUnavailableError:
        logger.warning("progress_unavailable")
        return ProgressListResponse(message=UNAVAILABLE_MESSAGE)
    return ProgressListResponse(data=[ProgressResponse.from_record(r) for r in records])


@router.get(
    "/videos/{video_id}/stats",
    response_model=VideoStatsResponse,
    summary="Watch statistics for a video",
)
async def video_stats(
    video_id: UUID,
    _user: TeacherUser,
    service: ProgressServiceDep,
) -> VideoStatsResponse:
    """Totals over every viewer. Zeros when the store is unreachable."""
    try:
        stats = await service.stats_for_video(video_id)
    except StoreUnavailableError:
        logger.warning("video_stats_unavailable", video_id=str(video_id))
        return VideoStatsResponse(message="Statistics temporarily unavailable")
    return VideoStatsResponse(data=VideoStatsData.from_stats(stats))
