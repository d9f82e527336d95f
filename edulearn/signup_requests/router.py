"""FastAPI routers for signup requests.

Endpoints:
- POST /signup-request (Public, rate limited) - Submit a request
- GET /admin/pending-requests (Admin) - List pending requests
- POST /admin/approve-request (Admin) - Approve and create the account
- POST /admin/reject-request (Admin) - Reject
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from edulearn.auth.dependencies import AdminUser
from edulearn.auth.schemas import UserResponse
from edulearn.core.exceptions import AppError, StoreUnavailableError, to_http_exception
from edulearn.core.logging import get_logger
from edulearn.core.rate_limit import rate_limit_signup
from edulearn.core.schemas import MessageResponse

from .dependencies import SignupServiceDep
from .schemas import (
    ApprovalData,
    ApprovalResponse,
    ApproveRequestBody,
    PendingRequestsResponse,
    RejectRequestBody,
    SignupRequestCreate,
    SignupRequestResponse,
    SignupSubmittedResponse,
)


logger = get_logger(__name__)


# ==============================================================================
# Public Router
# ==============================================================================

router = APIRouter(tags=["signup"])


@router.post(
    "/signup-request",
    response_model=SignupSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit signup request",
    dependencies=[Depends(rate_limit_signup)],
    responses={
        409: {"description": "Email registered or request already pending"},
        422: {"description": "Validation error"},
        429: {"description": "Too many requests"},
    },
)
async def submit_signup_request(
    data: SignupRequestCreate,
    service: SignupServiceDep,
) -> SignupSubmittedResponse:
    """Ask for a teacher or student account. An admin must approve it."""
    try:
        request = await service.submit(
            email=data.email,
            name=data.name,
            role=data.role,
            institution=data.institution,
        )
    except AppError as e:
        raise to_http_exception(e) from e

    return SignupSubmittedResponse(
        message="Signup request submitted. An administrator will review it.",
        request_id=request.id,
    )


# ==============================================================================
# Admin Router
# ==============================================================================

admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get(
    "/pending-requests",
    response_model=PendingRequestsResponse,
    summary="List pending signup requests",
)
async def list_pending_requests(
    _admin: AdminUser,
    service: SignupServiceDep,
) -> PendingRequestsResponse:
    """Pending requests, newest first. Empty when the store is unreachable."""
    try:
        pending = await service.list_pending()
    except StoreUnavailableError:
        logger.warning("pending_requests_unavailable")
        return PendingRequestsResponse(message="Requests temporarily unavailable")

    return PendingRequestsResponse(
        data=[SignupRequestResponse.from_request(r) for r in pending]
    )


@admin_router.post(
    "/approve-request",
    response_model=ApprovalResponse,
    summary="Approve signup request",
    responses={
        404: {"description": "Unknown request"},
        409: {"description": "Already processed or email taken"},
    },
)
async def approve_request(
    data: ApproveRequestBody,
    admin: AdminUser,
    service: SignupServiceDep,
) -> ApprovalResponse:
    """Approve a pending request and create its account.

    When no password is supplied one is generated and returned once as
    ``temporary_password``.
    """
    try:
        result = await service.approve(
            data.request_id,
            credential=data.password,
            decided_by=UUID(str(admin.id)),
        )
    except AppError as e:
        raise to_http_exception(e) from e

    message = (
        "Approval completed for the existing account; credential re-issued"
        if result.completed_on_retry
        else "Request approved and account created"
    )
    return ApprovalResponse(
        message=message,
        data=ApprovalData(
            user=UserResponse.from_account(result.account),
            temporary_password=result.credential if result.generated else None,
        ),
    )


@admin_router.post(
    "/reject-request",
    response_model=MessageResponse,
    summary="Reject signup request",
    responses={
        404: {"description": "Unknown request"},
        409: {"description": "Already processed"},
    },
)
async def reject_request(
    data: RejectRequestBody,
    admin: AdminUser,
    service: SignupServiceDep,
) -> MessageResponse:
    """Reject a pending request."""
    try:
        await service.reject(data.request_id, decided_by=UUID(str(admin.id)))
    except AppError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Request rejected")
