"""Pydantic schemas for signup requests.

Request/Response models for:
- Submitting a request
- Listing pending requests
- Approving and rejecting
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from edulearn.auth.schemas import UserResponse
from edulearn.core.schemas import MessageResponse

from .models import SignupRequest


# ==============================================================================
# Request Schemas
# ==============================================================================


class SignupRequestCreate(BaseModel):
    """Public signup form.

    ``collegeName`` is accepted for ``institution`` for older clients.
    """

    email: EmailStr = Field(..., description="Email address")
    name: str = Field(..., description="Full name")
    role: str = Field(..., description="teacher or student")
    institution: str = Field(
        ...,
        validation_alias=AliasChoices("institution", "collegeName", "college_name"),
        description="College or school",
    )


class ApproveRequestBody(BaseModel):
    """Admin approval of a pending request."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: UUID = Field(
        ..., validation_alias=AliasChoices("requestId", "request_id")
    )
    password: str | None = Field(
        None,
        min_length=1,
        description="Credential to assign; generated when omitted",
    )


class RejectRequestBody(BaseModel):
    """Admin rejection of a pending request."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: UUID = Field(
        ..., validation_alias=AliasChoices("requestId", "request_id")
    )


# ==============================================================================
# Response Schemas
# ==============================================================================


class SignupRequestResponse(BaseModel):
    """Signup request as shown to admins."""

    id: UUID
    email: str
    name: str
    role: str
    institution: str
    status: str
    created_at: datetime
    decided_at: datetime | None = None

    @classmethod
    def from_request(cls, request: SignupRequest) -> "SignupRequestResponse":
        return cls(
            id=request.id,
            email=request.email,
            name=request.name,
            role=request.role,
            institution=request.institution,
            status=request.status.value,
            created_at=request.created_at,
            decided_at=request.decided_at,
        )


class SignupSubmittedResponse(MessageResponse):
    """Acknowledgement of a submitted request."""

    request_id: UUID


class PendingRequestsResponse(MessageResponse):
    """Pending requests, newest first."""

    data: list[SignupRequestResponse] = Field(default_factory=list)


class ApprovalData(BaseModel):
    """Created account plus the generated credential, if any."""

    user: UserResponse
    temporary_password: str | None = None


class ApprovalResponse(MessageResponse):
    data: ApprovalData
