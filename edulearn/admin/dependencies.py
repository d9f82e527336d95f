"""FastAPI dependencies for the admin dashboard."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from .service import AdminService


# Service getter function (set from main.py)
_service_getter: Callable[[], AdminService] | None = None


def set_admin_service_getter(getter: Callable[[], AdminService]) -> None:
    global _service_getter  # noqa: PLW0603 - necessary for DI pattern
    _service_getter = getter


def get_admin_service() -> AdminService:
    """Get AdminService instance.

    Raises:
        RuntimeError: If service is not configured
    """
    if _service_getter is None:
        msg = "AdminService not configured"
        raise RuntimeError(msg)
    return _service_getter()


AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
