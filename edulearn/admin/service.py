"""Admin dashboard service.

Aggregates counts from the account, signup and video stores. Every number is
recomputed on each call.
"""

from dataclasses import dataclass, field

import structlog

from edulearn.auth.models import Account
from edulearn.auth.permissions import UserRole
from edulearn.auth.service import AuthService
from edulearn.signup_requests.service import SignupRequestService
from edulearn.videos.service import VideoCatalogService


logger = structlog.get_logger(__name__)


@dataclass
class DashboardStats:
    students: int = 0
    teachers: int = 0
    videos: int = 0
    pending: int = 0


@dataclass
class RoleCount:
    total: int = 0
    online: int = 0


@dataclass
class UserStats:
    """Totals and online presence per role."""

    by_role: dict[str, RoleCount] = field(
        default_factory=lambda: {role.value: RoleCount() for role in UserRole}
    )

    @property
    def total(self) -> int:
        return sum(c.total for c in self.by_role.values())

    @property
    def online(self) -> int:
        return sum(c.online for c in self.by_role.values())


class AdminService:
    """Read-only views for administrators."""

    def __init__(
        self,
        auth_service: AuthService,
        signup_service: SignupRequestService,
        catalog: VideoCatalogService,
    ):
        self.auth_service = auth_service
        self.signup_service = signup_service
        self.catalog = catalog

    async def dashboard_stats(self) -> DashboardStats:
        """Students, teachers, published videos and pending signup requests.

        Raises:
            StoreUnavailableError: If any of the counts cannot be read
        """
        stats = DashboardStats(
            students=await self.auth_service.count_by_role(UserRole.STUDENT),
            teachers=await self.auth_service.count_by_role(UserRole.TEACHER),
            videos=await self.catalog.count(),
            pending=len(await self.signup_service.list_pending()),
        )
        logger.debug("dashboard_stats_computed", **stats.__dict__)
        return stats

    async def user_stats(self) -> UserStats:
        stats = UserStats()
        for role in UserRole:
            stats.by_role[role.value] = RoleCount(
                total=await self.auth_service.count_by_role(role),
                online=await self.auth_service.count_online_by_role(role),
            )
        return stats

    async def list_users(
        self,
        role: UserRole | None = None,
        online: bool | None = None,
    ) -> list[Account]:
        return await self.auth_service.list_accounts(role=role, online=online)

    async def search_users(
        self,
        query: str,
        role: UserRole | None = None,
        limit: int = 50,
    ) -> list[Account]:
        return await self.auth_service.search_accounts(query, role=role, limit=limit)
