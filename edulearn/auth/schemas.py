"""Pydantic schemas for authentication.

Request and response models for:
- Login (general and admin surfaces)
- Token rotation
- Current account and password change
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from edulearn.auth.permissions import UserRole
from edulearn.auth.validators import normalize_email, validate_password
from edulearn.core.schemas import MessageResponse


if TYPE_CHECKING:
    from edulearn.auth.models import Account


# ==============================================================================
# Request Schemas
# ==============================================================================


class LoginRequest(BaseModel):
    """Login request.

    ``role`` restricts the login to one role; a mismatch is reported exactly
    like a wrong password.
    """

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")
    role: UserRole | None = Field(None, description="Expected role")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class AdminLoginRequest(BaseModel):
    """Login request on the admin-only surface."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class ChangePasswordRequest(BaseModel):
    """Password change request."""

    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., min_length=8, description="New password")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        result = validate_password(v)
        if not result.valid:
            raise ValueError(result.message or "Invalid password")
        return v


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserResponse(BaseModel):
    """Account as exposed over HTTP (never includes the hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: str
    institution: str | None = None
    online: bool = False
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_account(cls, account: "Account") -> "UserResponse":
        return cls(
            id=account.id,
            email=account.email,
            name=account.name,
            role=account.role,
            institution=account.institution or None,
            online=account.online,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class TokenResponse(MessageResponse):
    """Access token issued after refresh."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token expiration in seconds")


class LoginResponse(TokenResponse):
    """Successful login: the account plus its access token."""

    user: UserResponse


class MeResponse(MessageResponse):
    """Current authenticated account."""

    user: UserResponse


# ==============================================================================
# Internal Schemas (not exposed in API)
# ==============================================================================


class TokenPayload(BaseModel):
    """JWT token payload."""

    sub: str  # Account ID
    email: str
    role: str
    exp: datetime
    iat: datetime
    type: str  # "access" or "refresh"
    jti: str | None = None  # Only for refresh tokens
