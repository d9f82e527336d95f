"""Shared fixtures.

Services run over the in-memory repositories in ``tests.fakes``; HTTP tests
drive the real application with those services injected.
"""

import os
import tempfile
from collections.abc import Iterator
from uuid import uuid4

import pytest


# Must be set before edulearn.main configures logging at import
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="edulearn-test-logs-"))
os.environ.setdefault("LOG_REQUESTS", "false")

from fastapi.testclient import TestClient  # noqa: E402

from edulearn.admin.dependencies import set_admin_service_getter  # noqa: E402
from edulearn.admin.service import AdminService  # noqa: E402
from edulearn.auth.dependencies import set_auth_service_getter  # noqa: E402
from edulearn.auth.models import Account  # noqa: E402
from edulearn.auth.permissions import UserRole  # noqa: E402
from edulearn.auth.security import create_access_token, hash_password  # noqa: E402
from edulearn.auth.service import AuthService  # noqa: E402
from edulearn.progress.service import ProgressService  # noqa: E402
from edulearn.signup_requests.dependencies import (  # noqa: E402
    set_signup_service_getter,
)
from edulearn.signup_requests.service import SignupRequestService  # noqa: E402
from edulearn.videos.models import VideoAsset  # noqa: E402
from edulearn.videos.service import VideoCatalogService  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeAccountRepository,
    FakeProgressRepository,
    FakeRefreshTokenRepository,
    FakeSignupRequestRepository,
    FakeVideoRepository,
)


ADMIN_PASSWORD = "AdminPass123"


# ==============================================================================
# Services over in-memory stores
# ==============================================================================


@pytest.fixture
def auth_service() -> AuthService:
    return AuthService(FakeAccountRepository(), FakeRefreshTokenRepository())


@pytest.fixture
def signup_service(auth_service: AuthService) -> SignupRequestService:
    return SignupRequestService(FakeSignupRequestRepository(), auth_service)


@pytest.fixture
def video() -> VideoAsset:
    return VideoAsset(id=uuid4(), uploader_id=uuid4(), title="Cell Biology 101")


@pytest.fixture
def catalog(video: VideoAsset) -> VideoCatalogService:
    return VideoCatalogService(FakeVideoRepository([video]))


@pytest.fixture
def progress_service() -> ProgressService:
    """Progress service without a catalog: any video id is accepted."""
    return ProgressService(FakeProgressRepository())


@pytest.fixture
def admin_service(
    auth_service: AuthService,
    signup_service: SignupRequestService,
    catalog: VideoCatalogService,
) -> AdminService:
    return AdminService(auth_service, signup_service, catalog)


def seed_account(
    auth_service: AuthService,
    email: str,
    password: str,
    role: UserRole = UserRole.STUDENT,
    name: str = "Test Account",
    institution: str = "",
) -> Account:
    """Write an account straight into the in-memory store (no event loop)."""
    account = Account(
        email=email,
        name=name,
        role=role.value,
        institution=institution,
        password_hash=hash_password(password),
    )
    auth_service.accounts.rows[account.id] = account
    auth_service.accounts.email_claims[account.email] = account.id
    return account


@pytest.fixture
def admin_account(auth_service: AuthService) -> Account:
    return seed_account(
        auth_service,
        "admin@edulearn.dev",
        ADMIN_PASSWORD,
        role=UserRole.ADMIN,
        name="Platform Admin",
    )


# ==============================================================================
# HTTP
# ==============================================================================


@pytest.fixture
def client(
    auth_service: AuthService,
    signup_service: SignupRequestService,
    progress_service: ProgressService,
    admin_service: AdminService,
) -> Iterator[TestClient]:
    """Client over the real app with in-memory services.

    The lifespan is not entered, so no Cassandra or Redis connection is
    attempted; rate limiting fails open.
    """
    from edulearn.main import app

    set_auth_service_getter(lambda: auth_service)
    set_signup_service_getter(lambda: signup_service)
    set_admin_service_getter(lambda: admin_service)
    app.state.progress_service = progress_service

    yield TestClient(app)

    app.state.progress_service = None


def auth_headers(role: UserRole, account_id: str | None = None) -> dict[str, str]:
    """Bearer header for a token with the given role."""
    token = create_access_token(
        {
            "sub": account_id or str(uuid4()),
            "email": f"{role.value}@edulearn.dev",
            "role": role.value,
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_account: Account) -> dict[str, str]:
    return auth_headers(UserRole.ADMIN, str(admin_account.id))


@pytest.fixture
def teacher_headers() -> dict[str, str]:
    return auth_headers(UserRole.TEACHER)


@pytest.fixture
def student_id() -> str:
    return str(uuid4())


@pytest.fixture
def student_headers(student_id: str) -> dict[str, str]:
    return auth_headers(UserRole.STUDENT, student_id)
