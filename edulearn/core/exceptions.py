"""Application error taxonomy.

Services raise these; routers translate them into HTTP responses. Each class
carries a stable machine-readable ``code`` and the HTTP status it maps to.
"""

from fastapi import HTTPException, status


class AppError(Exception):
    """Base class for expected business failures."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(AppError):
    """Raised when input fails a business validation rule."""

    code = "validation_error"
    status_code = 422
    default_message = "Invalid input"


class ConflictError(AppError):
    """Raised when an operation collides with existing state."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting state"


class NotFoundError(AppError):
    """Raised when the addressed entity does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidCredentialsError(AppError):
    """Raised for any login failure.

    Unknown email, wrong password and wrong role all produce this same error
    so callers cannot tell which one happened.
    """

    code = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class StoreUnavailableError(AppError):
    """Raised when the persistent store cannot be reached.

    Wraps the underlying driver exception, preserved for logging.
    """

    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable. Please try again."

    def __init__(
        self,
        message: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.original_error = original_error


def to_http_exception(error: AppError) -> HTTPException:
    """Convert a business error into an HTTPException with the same message."""
    headers = {"Retry-After": "30"} if isinstance(error, StoreUnavailableError) else None
    return HTTPException(
        status_code=error.status_code, detail=error.message, headers=headers
    )


__all__ = [
    "AppError",
    "ConflictError",
    "InvalidCredentialsError",
    "NotFoundError",
    "StoreUnavailableError",
    "ValidationError",
    "to_http_exception",
]
