"""Response models for the admin dashboard."""

from pydantic import BaseModel, Field

from edulearn.auth.schemas import UserResponse
from edulearn.core.schemas import MessageResponse

from .service import DashboardStats, UserStats


class DashboardStatsData(BaseModel):
    students: int = 0
    teachers: int = 0
    videos: int = 0
    pending: int = 0

    @classmethod
    def from_stats(cls, stats: DashboardStats) -> "DashboardStatsData":
        return cls(
            students=stats.students,
            teachers=stats.teachers,
            videos=stats.videos,
            pending=stats.pending,
        )


class DashboardStatsResponse(MessageResponse):
    data: DashboardStatsData = Field(default_factory=DashboardStatsData)


class RoleCountData(BaseModel):
    total: int = 0
    online: int = 0


class UserStatsData(BaseModel):
    total: int = 0
    online: int = 0
    by_role: dict[str, RoleCountData] = Field(default_factory=dict)

    @classmethod
    def from_stats(cls, stats: UserStats) -> "UserStatsData":
        return cls(
            total=stats.total,
            online=stats.online,
            by_role={
                role: RoleCountData(total=c.total, online=c.online)
                for role, c in stats.by_role.items()
            },
        )


class UserStatsResponse(MessageResponse):
    data: UserStatsData = Field(default_factory=UserStatsData)


class UserListResponse(MessageResponse):
    data: list[UserResponse] = Field(default_factory=list)
    total: int = 0
