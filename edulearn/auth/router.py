"""Authentication API endpoints.

Provides routes for:
- Login (general surface and admin-only surface)
- Token refresh and logout
- Current account and password change
"""

import contextlib
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from edulearn.auth.dependencies import (
    AuthServiceDep,
    ClientInfo,
    CurrentUser,
    RefreshTokenCookie,
)
from edulearn.auth.models import Account
from edulearn.auth.permissions import UserRole
from edulearn.auth.schemas import (
    AdminLoginRequest,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    TokenResponse,
    UserResponse,
)
from edulearn.auth.service import AuthService, InvalidTokenError
from edulearn.config.settings import get_settings
from edulearn.core.exceptions import AppError, to_http_exception
from edulearn.core.rate_limit import rate_limit_login
from edulearn.core.schemas import MessageResponse


router = APIRouter(prefix="/auth", tags=["auth"])
admin_login_router = APIRouter(prefix="/admin", tags=["admin"])


# ==============================================================================
# Helpers
# ==============================================================================


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=refresh_token,
        httponly=settings.auth_cookie_httponly,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        max_age=settings.auth_refresh_token_expire_days * 24 * 60 * 60,
        path=settings.auth_cookie_path,
    )


def _clear_refresh_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(key=settings.auth_cookie_name, path=settings.auth_cookie_path)


async def _login(
    auth_service: AuthService,
    response: Response,
    client_info: tuple[str | None, str | None],
    email: str,
    password: str,
    required_role: UserRole | None,
) -> LoginResponse:
    """Authenticate, issue a session and set the refresh cookie."""
    user_agent, ip_address = client_info
    try:
        account: Account = await auth_service.authenticate(email, password, required_role)
        access_token, refresh_token = await auth_service.create_tokens(
            account, user_agent, ip_address
        )
    except AppError as e:
        raise to_http_exception(e) from e

    _set_refresh_cookie(response, refresh_token)
    return LoginResponse(
        message="Login successful",
        user=UserResponse.from_account(account),
        access_token=access_token,
        expires_in=get_settings().auth_access_token_expire_minutes * 60,
    )


# ==============================================================================
# Public Endpoints (No Auth Required)
# ==============================================================================


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    dependencies=[Depends(rate_limit_login)],
    responses={
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many attempts"},
    },
)
async def login(
    data: LoginRequest,
    response: Response,
    auth_service: AuthServiceDep,
    client_info: ClientInfo,
) -> LoginResponse:
    """Authenticate and return an access token.

    The refresh token is set in an httpOnly cookie. When ``role`` is given,
    only accounts with that role may log in here.
    """
    return await _login(
        auth_service, response, client_info, data.email, data.password, data.role
    )


@admin_login_router.post(
    "/login",
    response_model=LoginResponse,
    summary="Admin login",
    dependencies=[Depends(rate_limit_login)],
    responses={
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many attempts"},
    },
)
async def admin_login(
    data: AdminLoginRequest,
    response: Response,
    auth_service: AuthServiceDep,
    client_info: ClientInfo,
) -> LoginResponse:
    """Login surface restricted to admin accounts."""
    return await _login(
        auth_service, response, client_info, data.email, data.password, UserRole.ADMIN
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    responses={401: {"description": "Invalid or expired refresh token"}},
)
async def refresh(
    response: Response,
    auth_service: AuthServiceDep,
    client_info: ClientInfo,
    refresh_token: RefreshTokenCookie,
) -> TokenResponse:
    """Rotate the refresh token from the cookie and issue a new access token."""
    if not refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token not provided",
        )

    user_agent, ip_address = client_info
    try:
        _, access_token, new_refresh_token = await auth_service.refresh_tokens(
            refresh_token, user_agent, ip_address
        )
    except InvalidTokenError as e:
        _clear_refresh_cookie(response)
        raise to_http_exception(e) from e
    except AppError as e:
        raise to_http_exception(e) from e

    _set_refresh_cookie(response, new_refresh_token)
    return TokenResponse(
        message="Token refreshed",
        access_token=access_token,
        expires_in=get_settings().auth_access_token_expire_minutes * 60,
    )


@router.post("/logout", response_model=MessageResponse, summary="Logout")
async def logout(
    response: Response,
    auth_service: AuthServiceDep,
    refresh_token: RefreshTokenCookie,
) -> MessageResponse:
    """Revoke the session, mark the account offline and clear the cookie."""
    if refresh_token:
        try:
            with contextlib.suppress(InvalidTokenError):
                await auth_service.logout(refresh_token)
        except AppError as e:
            raise to_http_exception(e) from e

    _clear_refresh_cookie(response)
    return MessageResponse(message="Logged out")


# ==============================================================================
# Protected Endpoints (Auth Required)
# ==============================================================================


@router.get("/me", response_model=MeResponse, summary="Get current user")
async def get_me(user: CurrentUser, auth_service: AuthServiceDep) -> MeResponse:
    """Return the current account as stored (not just token claims)."""
    try:
        account = await auth_service.get_account(UUID(str(user.id)))
    except AppError as e:
        raise to_http_exception(e) from e
    return MeResponse(user=UserResponse.from_account(account))


@router.post(
    "/me/change-password",
    response_model=MessageResponse,
    summary="Change password",
)
async def change_password(
    data: ChangePasswordRequest,
    user: CurrentUser,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """Change the current account's password."""
    try:
        await auth_service.change_password(
            account_id=UUID(str(user.id)),
            current_password=data.current_password,
            new_password=data.new_password,
        )
    except AppError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Password changed successfully")
