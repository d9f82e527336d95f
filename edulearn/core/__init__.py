# Core infrastructure
from edulearn.core.context import (
    RequestContext,
    clear_context,
    get_context,
    get_request_id,
    get_trace_id,
    get_user_id,
    get_user_role,
    set_request_id,
    set_trace_id,
    set_user_id,
    set_user_role,
)
from edulearn.core.exceptions import (
    AppError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from edulearn.core.logging import configure_structlog, get_logger
from edulearn.core.middleware import RequestContextMiddleware


__all__ = [
    "AppError",
    "ConflictError",
    "InvalidCredentialsError",
    "NotFoundError",
    "RequestContext",
    "RequestContextMiddleware",
    "StoreUnavailableError",
    "ValidationError",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "get_user_id",
    "get_user_role",
    "set_request_id",
    "set_trace_id",
    "set_user_id",
    "set_user_role",
]
