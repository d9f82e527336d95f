"""Signup request service layer.

Business logic for:
- Submitting a request (public)
- Listing and fetching requests (admin)
- Approving a request, which creates the account
- Rejecting a request

Status only moves pending -> approved or pending -> rejected. The store
decides races: whichever decision's conditional update applies first wins,
and the loser gets a ConflictError.
"""

from dataclasses import dataclass
from uuid import UUID

from edulearn.auth.models import Account
from edulearn.auth.permissions import UserRole, is_signup_role
from edulearn.auth.security import generate_temporary_password
from edulearn.auth.service import AuthService
from edulearn.auth.validators import validate_email, validate_institution, validate_name
from edulearn.core.exceptions import ConflictError, NotFoundError, ValidationError
from edulearn.core.logging import get_logger

from .models import RequestStatus, SignupRequest
from .repository import SignupRequestRepository


logger = get_logger(__name__)


# ==============================================================================
# Exceptions
# ==============================================================================


class SignupRequestNotFoundError(NotFoundError):
    """No request with this id."""

    default_message = "Signup request not found"


class RequestAlreadyDecidedError(ConflictError):
    """The request is no longer pending."""

    default_message = "Signup request has already been processed"


class PendingRequestExistsError(ConflictError):
    """A pending request for this email already exists."""

    default_message = "A signup request for this email is already pending"


class EmailRegisteredError(ConflictError):
    """An account already uses this email."""

    default_message = "An account with this email already exists"


@dataclass
class ApprovalResult:
    """Outcome of an approval.

    Attributes:
        account: The account created from the request
        credential: Plain credential, shown to the admin exactly once
        generated: True when the system generated the credential
        completed_on_retry: True when an earlier interrupted attempt had
            already created the account
    """

    account: Account
    credential: str
    generated: bool
    completed_on_retry: bool = False


# ==============================================================================
# Service
# ==============================================================================


class SignupRequestService:
    """Admin-gated signup workflow."""

    def __init__(
        self,
        requests: SignupRequestRepository,
        auth_service: AuthService,
    ):
        """Initialize with request storage and the account service.

        Args:
            requests: Signup request storage
            auth_service: Creates and removes accounts
        """
        self.requests = requests
        self.auth_service = auth_service

    # ==========================================================================
    # Submission
    # ==========================================================================

    async def submit(
        self,
        email: str,
        name: str,
        role: str,
        institution: str,
    ) -> SignupRequest:
        """Record a new pending request. No account is created.

        Raises:
            ValidationError: If any field is invalid (checked before any
                store access)
            EmailRegisteredError: If an account already uses the email
            PendingRequestExistsError: If a request for the email is pending
        """
        email_check = validate_email(email)
        if not email_check.valid:
            raise ValidationError(email_check.message)
        name_check = validate_name(name)
        if not name_check.valid:
            raise ValidationError(name_check.message)
        institution_check = validate_institution(institution)
        if not institution_check.valid:
            raise ValidationError(institution_check.message)
        if not is_signup_role(role):
            raise ValidationError("Role must be teacher or student")

        request = SignupRequest(
            email=email_check.formatted or email,
            name=name_check.formatted or name,
            role=UserRole(role).value,
            institution=institution_check.formatted or institution,
        )

        if await self.auth_service.find_by_email(request.email) is not None:
            logger.info("signup_request_rejected_existing_account", role=request.role)
            raise EmailRegisteredError

        if not await self.requests.create(request):
            logger.info("signup_request_rejected_duplicate", role=request.role)
            raise PendingRequestExistsError

        logger.info(
            "signup_request_submitted",
            request_id=str(request.id),
            role=request.role,
        )
        return request

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def list_pending(self) -> list[SignupRequest]:
        """Pending requests, newest first."""
        pending = await self.requests.list_by_status(RequestStatus.PENDING)
        return sorted(pending, key=lambda r: r.created_at, reverse=True)

    async def get(self, request_id: UUID) -> SignupRequest:
        """Fetch one request.

        Raises:
            SignupRequestNotFoundError: If the id is unknown
        """
        request = await self.requests.get(request_id)
        if request is None:
            raise SignupRequestNotFoundError
        return request

    # ==========================================================================
    # Decisions
    # ==========================================================================

    async def approve(
        self,
        request_id: UUID,
        credential: str | None = None,
        decided_by: UUID | None = None,
    ) -> ApprovalResult:
        """Approve a pending request and create its account.

        The account is created first, then the request is flipped with a
        conditional update. If the flip loses to a concurrent decision the
        new account is deleted again, unless that decision approved the
        request with this same account. When an earlier attempt left the
        account behind, that account is reused with a freshly issued
        credential and no second account is created.

        Args:
            request_id: Request to approve
            credential: Admin-assigned password; generated when omitted
            decided_by: Approving admin

        Returns:
            ApprovalResult with the account and the plain credential

        Raises:
            SignupRequestNotFoundError: If the id is unknown
            RequestAlreadyDecidedError: If the request is not pending, or a
                concurrent decision won
            ConflictError: If an account already uses the email
            ValidationError: If the assigned credential is empty
        """
        if credential is not None and not credential:
            raise ValidationError("Password is required")

        request = await self.get(request_id)
        if not request.is_pending:
            raise RequestAlreadyDecidedError

        generated = credential is None
        plain = credential if credential is not None else generate_temporary_password()

        existing = await self.auth_service.find_by_signup_request(request.id)
        if existing is not None:
            return await self._complete_interrupted(
                request, existing, plain, generated, decided_by
            )

        account = await self.auth_service.create_account(
            email=request.email,
            name=request.name,
            role=UserRole(request.role),
            institution=request.institution,
            password=plain,
            signup_request_id=request.id,
            enforce_policy=False,
        )

        if not await self.requests.decide(
            request, RequestStatus.APPROVED, decided_by, account.id
        ):
            logger.warning(
                "signup_request_approval_lost_race",
                request_id=str(request.id),
                account_id=str(account.id),
            )
            await self._discard_unless_adopted(request, account)
            raise RequestAlreadyDecidedError

        logger.info(
            "signup_request_approved",
            request_id=str(request.id),
            account_id=str(account.id),
            role=account.role,
            generated_credential=generated,
        )
        return ApprovalResult(account=account, credential=plain, generated=generated)

    async def _complete_interrupted(
        self,
        request: SignupRequest,
        account: Account,
        plain: str,
        generated: bool,
        decided_by: UUID | None,
    ) -> ApprovalResult:
        """Finish an approval whose account exists but whose status never flipped.

        The earlier attempt's credential never reached the admin, so once the
        flip is won a new one is stored on the account.
        """
        if not await self.requests.decide(
            request, RequestStatus.APPROVED, decided_by, account.id
        ):
            logger.warning(
                "signup_request_retry_lost_race",
                request_id=str(request.id),
                account_id=str(account.id),
            )
            await self._discard_unless_adopted(request, account)
            raise RequestAlreadyDecidedError

        await self.auth_service.reset_credential(account, plain)

        logger.warning(
            "signup_request_approval_completed_on_retry",
            request_id=str(request.id),
            account_id=str(account.id),
        )
        return ApprovalResult(
            account=account,
            credential=plain,
            generated=generated,
            completed_on_retry=True,
        )

    async def _discard_unless_adopted(
        self, request: SignupRequest, account: Account
    ) -> None:
        """Remove an account after a lost flip, unless the winner approved it."""
        stored = await self.requests.get(request.id)
        if stored is not None and stored.account_id == account.id:
            return
        await self.auth_service.delete_account(account)

    async def reject(
        self,
        request_id: UUID,
        decided_by: UUID | None = None,
    ) -> SignupRequest:
        """Reject a pending request. No account is touched.

        Raises:
            SignupRequestNotFoundError: If the id is unknown
            RequestAlreadyDecidedError: If the request is not pending, or a
                concurrent decision won
        """
        request = await self.get(request_id)
        if not request.is_pending:
            raise RequestAlreadyDecidedError

        if not await self.requests.decide(request, RequestStatus.REJECTED, decided_by):
            raise RequestAlreadyDecidedError

        logger.info("signup_request_rejected", request_id=str(request.id))
        return request
