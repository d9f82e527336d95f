"""FastAPI dependencies for authentication.

Provides dependency injection for:
- AuthService (getter installed by main.py)
- Current account extraction from the access token
- Role-based access control
- Client info for the session audit trail
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from edulearn.auth.permissions import UserRole, has_permission
from edulearn.auth.schemas import UserResponse
from edulearn.auth.security import decode_access_token
from edulearn.auth.service import AuthService
from edulearn.config.settings import get_settings
from edulearn.core.context import set_user_id, set_user_role
from edulearn.core.middleware import get_client_ip


# ==============================================================================
# Service Dependency Injection
# ==============================================================================

# Module-level reference to be overridden by main.py
_auth_service_getter: Callable[[], AuthService] | None = None


def set_auth_service_getter(getter: Callable[[], AuthService]) -> None:
    """Set the auth service getter function.

    Called by main.py during app initialization, and by tests.
    """
    global _auth_service_getter  # noqa: PLW0603 - Required for DI pattern
    _auth_service_getter = getter


def get_auth_service() -> AuthService:
    """Get AuthService instance.

    Raises:
        RuntimeError: If main.py did not install a getter
    """
    if _auth_service_getter is None:
        raise RuntimeError(
            "AuthService not configured - call set_auth_service_getter first"
        )
    return _auth_service_getter()


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


# ==============================================================================
# Token Extraction
# ==============================================================================


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def get_refresh_token_from_cookie(request: Request) -> str | None:
    """Extract refresh token from the httpOnly cookie."""
    return request.cookies.get(get_settings().auth_cookie_name)


async def get_client_info(request: Request) -> tuple[str | None, str | None]:
    """Extract client information for the audit trail.

    Returns:
        Tuple of (user_agent, ip_address)
    """
    ip_address = get_client_ip(request, get_settings().trusted_hosts)
    return request.headers.get("user-agent"), ip_address


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Validate the access token and return the account it names.

    The account fields come from the token claims; handlers needing fresh
    data (e.g. /auth/me) reload the account from the store.

    Raises:
        HTTPException(401): If the token is missing, invalid or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user = UserResponse(
            id=payload["sub"],
            email=payload["email"],
            role=payload["role"],
            name="",
            created_at=payload["iat"],
        )
    except (JWTError, KeyError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_user_id(user.id)
    set_user_role(user.role)
    return user


def require_role(*allowed_roles: UserRole):
    """Create dependency requiring one of the given roles (exact match).

    Example:
        @router.get("/admin-only")
        async def admin_endpoint(
            user: Annotated[UserResponse, Depends(require_role(UserRole.ADMIN))]
        ):
            ...
    """

    async def role_checker(
        user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> UserResponse:
        if user.role not in {role.value for role in allowed_roles}:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level.

    Uses hierarchical comparison: ADMIN >= TEACHER >= STUDENT
    """

    async def permission_checker(
        user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> UserResponse:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[UserResponse, Depends(get_current_user)]

AdminUser = Annotated[UserResponse, Depends(require_role(UserRole.ADMIN))]
TeacherUser = Annotated[UserResponse, Depends(require_permission(UserRole.TEACHER))]

ClientInfo = Annotated[tuple[str | None, str | None], Depends(get_client_info)]

RefreshTokenCookie = Annotated[str | None, Depends(get_refresh_token_from_cookie)]
