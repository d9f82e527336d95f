"""Translation of Cassandra driver failures into the application taxonomy."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from cassandra import DriverException
from cassandra.cluster import NoHostAvailable

from edulearn.core.exceptions import StoreUnavailableError
from edulearn.core.logging import get_logger


logger = get_logger(__name__)

DRIVER_ERRORS: tuple[type[Exception], ...] = (
    DriverException,
    NoHostAvailable,
    OSError,
)


@contextmanager
def store_errors(operation: str, **log_context: Any) -> Iterator[None]:
    """Wrap driver exceptions raised inside the block.

    Args:
        operation: Short name used in the ``database_error_<operation>`` event
        **log_context: Extra fields logged with the failure

    Raises:
        StoreUnavailableError: If the store raised a driver-level error
    """
    try:
        yield
    except DRIVER_ERRORS as e:
        logger.exception(
            f"database_error_{operation}",
            error=str(e),
            error_type=type(e).__name__,
            **log_context,
        )
        raise StoreUnavailableError(original_error=e) from e
