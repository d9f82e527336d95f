"""Tests for the signup request workflow over in-memory stores."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from edulearn.auth.permissions import UserRole
from edulearn.auth.service import AuthService
from edulearn.core.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from edulearn.signup_requests.models import RequestStatus
from edulearn.signup_requests.service import (
    EmailRegisteredError,
    PendingRequestExistsError,
    RequestAlreadyDecidedError,
    SignupRequestNotFoundError,
    SignupRequestService,
)


async def _submit(
    service: SignupRequestService,
    email: str = "ana@college.edu",
    role: str = "student",
):
    return await service.submit(
        email=email, name="Ana Silva", role=role, institution="State College"
    )


async def _leftover_account(auth_service: AuthService, request):
    """Account written by an approval that died before the status flip."""
    return await auth_service.create_account(
        email=request.email,
        name=request.name,
        role=UserRole(request.role),
        institution=request.institution,
        password="Lost12345",
        signup_request_id=request.id,
    )


class TestSubmit:
    async def test_creates_pending_request_only(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)

        assert request.status == RequestStatus.PENDING
        assert [r.id for r in await signup_service.list_pending()] == [request.id]
        assert await auth_service.find_by_email("ana@college.edu") is None

    async def test_fields_are_normalized(
        self, signup_service: SignupRequestService
    ) -> None:
        request = await signup_service.submit(
            email=" Ana@College.EDU ",
            name="  Ana Silva ",
            role="teacher",
            institution=" State College ",
        )
        assert request.email == "ana@college.edu"
        assert request.name == "Ana Silva"
        assert request.institution == "State College"
        assert request.role == "teacher"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("email", "not-an-email"),
            ("name", "A"),
            ("institution", ""),
            ("role", "admin"),
            ("role", "principal"),
        ],
    )
    async def test_invalid_input_never_reaches_store(
        self, signup_service: SignupRequestService, field: str, value: str
    ) -> None:
        fields = {
            "email": "ana@college.edu",
            "name": "Ana Silva",
            "role": "student",
            "institution": "State College",
            field: value,
        }
        signup_service.requests.create = AsyncMock()

        with pytest.raises(ValidationError):
            await signup_service.submit(**fields)
        signup_service.requests.create.assert_not_called()

    async def test_duplicate_pending_request(
        self, signup_service: SignupRequestService
    ) -> None:
        await _submit(signup_service)
        with pytest.raises(PendingRequestExistsError):
            await _submit(signup_service, email="ANA@college.edu", role="teacher")
        assert len(await signup_service.list_pending()) == 1

    async def test_email_with_account(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        await auth_service.create_account(
            email="ana@college.edu",
            name="Ana Silva",
            role=UserRole.STUDENT,
            institution="State College",
            password="Welcome123",
        )
        with pytest.raises(EmailRegisteredError) as exc_info:
            await _submit(signup_service)
        assert isinstance(exc_info.value, ConflictError)

    async def test_resubmit_after_rejection(
        self, signup_service: SignupRequestService
    ) -> None:
        first = await _submit(signup_service)
        await signup_service.reject(first.id)

        second = await _submit(signup_service)
        assert second.id != first.id
        assert second.is_pending

    async def test_pending_listed_newest_first(
        self, signup_service: SignupRequestService
    ) -> None:
        older = await _submit(signup_service, "a@college.edu")
        newer = await _submit(signup_service, "b@college.edu")
        signup_service.requests.rows[older.id].created_at -= timedelta(minutes=5)

        assert [r.id for r in await signup_service.list_pending()] == [
            newer.id,
            older.id,
        ]


class TestApprove:
    async def test_approve_with_assigned_credential(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service, role="teacher")
        admin_id = uuid4()

        result = await signup_service.approve(
            request.id, credential="Temp12345", decided_by=admin_id
        )

        assert result.generated is False
        assert result.account.role == "teacher"
        assert result.account.signup_request_id == request.id

        stored = await signup_service.get(request.id)
        assert stored.status == RequestStatus.APPROVED
        assert stored.decided_by == admin_id
        assert stored.account_id == result.account.id
        assert await signup_service.list_pending() == []

    async def test_generated_credential_logs_in(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        result = await signup_service.approve(request.id)

        assert result.generated is True
        account = await auth_service.authenticate("ana@college.edu", result.credential)
        assert account.id == result.account.id

    async def test_second_approval_conflicts_without_second_account(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        await signup_service.approve(request.id, credential="Temp12345")

        with pytest.raises(RequestAlreadyDecidedError) as exc_info:
            await signup_service.approve(request.id, credential="Other12345")
        assert isinstance(exc_info.value, ConflictError)
        assert len(await auth_service.list_accounts()) == 1

    async def test_unknown_request(self, signup_service: SignupRequestService) -> None:
        with pytest.raises(SignupRequestNotFoundError) as exc_info:
            await signup_service.approve(uuid4())
        assert isinstance(exc_info.value, NotFoundError)

    async def test_short_assigned_credential_accepted(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        await signup_service.approve(request.id, credential="temp123")

        account = await auth_service.authenticate("ana@college.edu", "temp123")
        assert account.signup_request_id == request.id

    async def test_empty_assigned_credential(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        with pytest.raises(ValidationError):
            await signup_service.approve(request.id, credential="")

        assert (await signup_service.get(request.id)).is_pending
        assert await auth_service.find_by_email("ana@college.edu") is None

    async def test_concurrent_approvals_create_one_account(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)

        results = await asyncio.gather(
            signup_service.approve(request.id, credential="Temp12345"),
            signup_service.approve(request.id, credential="Temp12345"),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], ConflictError)
        assert len(await auth_service.list_accounts()) == 1

    async def test_lost_decision_removes_new_account(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        signup_service.requests.decide = AsyncMock(return_value=False)

        with pytest.raises(RequestAlreadyDecidedError):
            await signup_service.approve(request.id, credential="Temp12345")
        assert await auth_service.find_by_email("ana@college.edu") is None

    async def test_retry_completes_interrupted_approval(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        """Account created, status flip never happened."""
        request = await _submit(signup_service)
        account = await _leftover_account(auth_service, request)

        result = await signup_service.approve(request.id)

        assert result.completed_on_retry is True
        assert result.generated is True
        assert result.account.id == account.id

        stored = await signup_service.get(request.id)
        assert stored.status == RequestStatus.APPROVED
        assert stored.account_id == account.id
        assert len(await auth_service.list_accounts()) == 1

        # The credential from the interrupted attempt is replaced
        logged_in = await auth_service.authenticate(request.email, result.credential)
        assert logged_in.id == account.id
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate(request.email, "Lost12345")

    async def test_retry_after_completion_conflicts(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        await _leftover_account(auth_service, request)
        await signup_service.approve(request.id, credential="temp123")

        with pytest.raises(RequestAlreadyDecidedError):
            await signup_service.approve(request.id)
        assert len(await auth_service.list_accounts()) == 1

    async def test_retry_losing_decision_removes_account(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        """A reject landing between the read and the flip wins."""
        request = await _submit(signup_service)
        await _leftover_account(auth_service, request)
        signup_service.requests.decide = AsyncMock(return_value=False)

        with pytest.raises(RequestAlreadyDecidedError):
            await signup_service.approve(request.id)

        assert await auth_service.find_by_email(request.email) is None
        assert await auth_service.find_by_signup_request(request.id) is None


    async def test_retry_losing_to_approval_keeps_account(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        """Two admins click approve; the other click flips with the same account."""
        request = await _submit(signup_service)
        account = await _leftover_account(auth_service, request)
        approve_elsewhere = signup_service.requests.decide

        async def lose_to_same_account(*args, **kwargs) -> bool:
            await approve_elsewhere(*args, **kwargs)
            return False

        signup_service.requests.decide = lose_to_same_account

        with pytest.raises(RequestAlreadyDecidedError):
            await signup_service.approve(request.id)

        assert (await auth_service.find_by_signup_request(request.id)).id == account.id
        # The winner's credential is left untouched
        assert await auth_service.authenticate(request.email, "Lost12345")


class TestReject:
    async def test_reject_pending(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        rejected = await signup_service.reject(request.id, decided_by=uuid4())

        assert rejected.status == RequestStatus.REJECTED
        assert await signup_service.list_pending() == []
        assert await auth_service.list_accounts() == []

    async def test_reject_after_approve(
        self, signup_service: SignupRequestService
    ) -> None:
        request = await _submit(signup_service)
        await signup_service.approve(request.id, credential="Temp12345")

        with pytest.raises(RequestAlreadyDecidedError):
            await signup_service.reject(request.id)
        assert (await signup_service.get(request.id)).status == RequestStatus.APPROVED

    async def test_approve_after_reject(
        self, signup_service: SignupRequestService, auth_service: AuthService
    ) -> None:
        request = await _submit(signup_service)
        await signup_service.reject(request.id)

        with pytest.raises(RequestAlreadyDecidedError):
            await signup_service.approve(request.id, credential="Temp12345")
        assert await auth_service.list_accounts() == []

    async def test_reject_unknown(self, signup_service: SignupRequestService) -> None:
        with pytest.raises(SignupRequestNotFoundError):
            await signup_service.reject(uuid4())


async def test_teacher_signup_to_login(
    signup_service: SignupRequestService, auth_service: AuthService
) -> None:
    """Submit, list, approve with a credential, then log in."""
    request = await signup_service.submit(
        email="a@x.com", name="Ann Lee", role="teacher", institution="MIT"
    )
    assert request.id in [r.id for r in await signup_service.list_pending()]

    await signup_service.approve(request.id, credential="temp123")

    account = await auth_service.find_by_email("a@x.com")
    assert account is not None
    assert account.role == "teacher"

    logged_in = await auth_service.authenticate("a@x.com", "temp123")
    assert logged_in.role == "teacher"

    with pytest.raises(InvalidCredentialsError):
        await auth_service.authenticate("a@x.com", "wrong")
