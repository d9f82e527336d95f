"""EduLearn API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from edulearn.admin.dependencies import set_admin_service_getter
from edulearn.admin.router import router as admin_router
from edulearn.admin.service import AdminService
from edulearn.auth.dependencies import set_auth_service_getter
from edulearn.auth.repository import AccountRepository, RefreshTokenRepository
from edulearn.auth.router import admin_login_router
from edulearn.auth.router import router as auth_router
from edulearn.auth.service import AuthService
from edulearn.config import get_settings
from edulearn.core.context import get_request_id
from edulearn.core.database import init_async_cassandra, shutdown_async_cassandra
from edulearn.core.exceptions import AppError
from edulearn.core.logging import configure_structlog, get_logger
from edulearn.core.middleware import RequestContextMiddleware
from edulearn.core.redis import init_redis, shutdown_redis
from edulearn.core.schemas import ErrorResponse
from edulearn.health.router import router as health_router
from edulearn.progress.repository import ProgressRepository
from edulearn.progress.router import router as progress_router
from edulearn.progress.service import ProgressService
from edulearn.signup_requests.dependencies import set_signup_service_getter
from edulearn.signup_requests.repository import SignupRequestRepository
from edulearn.signup_requests.router import admin_router as signup_admin_router
from edulearn.signup_requests.router import router as signup_router
from edulearn.signup_requests.service import SignupRequestService
from edulearn.videos.repository import VideoRepository
from edulearn.videos.service import VideoCatalogService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    auth_service: AuthService | None = None
    signup_service: SignupRequestService | None = None
    progress_service: ProgressService | None = None
    admin_service: AdminService | None = None


app_state = AppState()


def get_auth_service() -> AuthService:
    """Get AuthService instance from app state."""
    if app_state.auth_service is None:
        msg = "AuthService not initialized"
        raise RuntimeError(msg)
    return app_state.auth_service


def get_signup_service() -> SignupRequestService:
    """Get SignupRequestService instance from app state."""
    if app_state.signup_service is None:
        msg = "SignupRequestService not initialized"
        raise RuntimeError(msg)
    return app_state.signup_service


def get_admin_service() -> AdminService:
    """Get AdminService instance from app state."""
    if app_state.admin_service is None:
        msg = "AdminService not initialized"
        raise RuntimeError(msg)
    return app_state.admin_service


def build_services(session: Any, keyspace: str) -> None:
    """Wire repositories and services over a connected session."""
    catalog = VideoCatalogService(VideoRepository(session, keyspace))

    app_state.auth_service = AuthService(
        accounts=AccountRepository(session, keyspace),
        tokens=RefreshTokenRepository(session, keyspace),
    )
    app_state.signup_service = SignupRequestService(
        requests=SignupRequestRepository(session, keyspace),
        auth_service=app_state.auth_service,
    )
    app_state.progress_service = ProgressService(
        progress=ProgressRepository(session, keyspace),
        catalog=catalog,
    )
    app_state.admin_service = AdminService(
        auth_service=app_state.auth_service,
        signup_service=app_state.signup_service,
        catalog=catalog,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis only backs rate limiting, which fails open without it
    try:
        await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - rate limiting disabled",
        )

    try:
        app_state.cassandra_session = await init_async_cassandra()
        logger.info("cassandra_initialized")

        build_services(app_state.cassandra_session, settings.cassandra_keyspace)
        app.state.cassandra_session = app_state.cassandra_session
        app.state.progress_service = app_state.progress_service
        logger.info("services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def _error_content(
    request: Request, message: str, errors: list[dict] | None = None
) -> dict[str, Any]:
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    return ErrorResponse(
        message=message, request_id=request_id, errors=errors
    ).model_dump(exclude_none=True)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Starlette debug stays off so stack traces never reach responses
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="EduLearn - Video learning platform API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Render HTTP errors in the response envelope."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )
        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            or exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
            else "Internal server error"
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_content(request, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Render request validation errors with per-field details."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        errors = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        first = errors[0]["message"] if errors else "Validation error"
        return ORJSONResponse(
            status_code=422,
            content=_error_content(request, first, errors),
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> ORJSONResponse:
        """Business errors that escaped a router."""
        logger.warning(
            "app_error",
            code=exc.code,
            detail=exc.message,
            path=request.url.path,
            method=request.method,
        )
        headers = (
            {"Retry-After": "30"}
            if exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
            else None
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_content(request, exc.message),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler: log everything, expose nothing."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_content(
                request, "An unexpected error occurred. Please try again later."
            ),
        )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(admin_login_router)
    app.include_router(signup_router)
    app.include_router(signup_admin_router)
    app.include_router(admin_router)
    app.include_router(progress_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"message": "EduLearn API", "version": settings.app_version}

    return app


set_auth_service_getter(get_auth_service)
set_signup_service_getter(get_signup_service)
set_admin_service_getter(get_admin_service)


app = create_app()


def run() -> None:
    """Serve the application with uvicorn using the API server settings."""
    settings = get_settings()
    uvicorn.run(
        "edulearn.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.api_reload and settings.is_development,
    )


if __name__ == "__main__":
    run()
