"""Admin dashboard endpoints.

All routes require the admin role and degrade to empty or zero results when
the store is unreachable.
"""

from fastapi import APIRouter, Query

from edulearn.auth.dependencies import AdminUser
from edulearn.auth.permissions import UserRole
from edulearn.auth.schemas import UserResponse
from edulearn.core.exceptions import StoreUnavailableError
from edulearn.core.logging import get_logger

from .dependencies import AdminServiceDep
from .schemas import (
    DashboardStatsData,
    DashboardStatsResponse,
    UserListResponse,
    UserStatsData,
    UserStatsResponse,
)


logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

UNAVAILABLE_MESSAGE = "Data temporarily unavailable"


@router.get("/stats", response_model=DashboardStatsResponse, summary="Dashboard counts")
async def dashboard_stats(
    _admin: AdminUser,
    service: AdminServiceDep,
) -> DashboardStatsResponse:
    """Students, teachers, videos and pending requests."""
    try:
        stats = await service.dashboard_stats()
    except StoreUnavailableError:
        logger.warning("dashboard_stats_unavailable")
        return DashboardStatsResponse(message=UNAVAILABLE_MESSAGE)
    return DashboardStatsResponse(data=DashboardStatsData.from_stats(stats))


@router.get("/user-stats", response_model=UserStatsResponse, summary="Accounts per role")
async def user_stats(
    _admin: AdminUser,
    service: AdminServiceDep,
) -> UserStatsResponse:
    try:
        stats = await service.user_stats()
    except StoreUnavailableError:
        logger.warning("user_stats_unavailable")
        return UserStatsResponse(message=UNAVAILABLE_MESSAGE)
    return UserStatsResponse(data=UserStatsData.from_stats(stats))


@router.get("/users", response_model=UserListResponse, summary="List accounts")
async def list_users(
    _admin: AdminUser,
    service: AdminServiceDep,
    role: UserRole | None = Query(None, description="Filter by role"),
    online: bool | None = Query(None, description="Filter by presence"),
) -> UserListResponse:
    try:
        accounts = await service.list_users(role=role, online=online)
    except StoreUnavailableError:
        logger.warning("user_list_unavailable")
        return UserListResponse(message=UNAVAILABLE_MESSAGE)
    return UserListResponse(
        data=[UserResponse.from_account(a) for a in accounts], total=len(accounts)
    )


@router.get("/users/search", response_model=UserListResponse, summary="Search accounts")
async def search_users(
    _admin: AdminUser,
    service: AdminServiceDep,
    q: str = Query("", max_length=100, description="Name, email or institution"),
    role: UserRole | None = Query(None, description="Filter by role"),
    limit: int = Query(50, ge=1, le=200),
) -> UserListResponse:
    """Case-insensitive substring match."""
    try:
        accounts = await service.search_users(q, role=role, limit=limit)
    except StoreUnavailableError:
        logger.warning("user_search_unavailable")
        return UserListResponse(message=UNAVAILABLE_MESSAGE)
    return UserListResponse(
        data=[UserResponse.from_account(a) for a in accounts], total=len(accounts)
    )
