"""FastAPI dependencies for signup requests."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from .service import SignupRequestService


# Service getter function (set from main.py)
_service_getter: Callable[[], SignupRequestService] | None = None


def set_signup_service_getter(getter: Callable[[], SignupRequestService]) -> None:
    """Set the service getter function.

    Called from main.py to inject the service factory.
    """
    global _service_getter  # noqa: PLW0603 - necessary for DI pattern
    _service_getter = getter


def get_signup_service() -> SignupRequestService:
    """Get SignupRequestService instance.

    Raises:
        RuntimeError: If service is not configured
    """
    if _service_getter is None:
        msg = "SignupRequestService not configured"
        raise RuntimeError(msg)
    return _service_getter()


SignupServiceDep = Annotated[SignupRequestService, Depends(get_signup_service)]
