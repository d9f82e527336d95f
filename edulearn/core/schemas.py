"""Response envelope shared by every endpoint."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class MessageResponse(BaseModel):
    """Envelope with a status flag and a human-readable message."""

    success: bool = True
    message: str = ""


class DataResponse(MessageResponse, Generic[T]):
    """Envelope carrying a payload under ``data``."""

    data: T


class ErrorResponse(BaseModel):
    """Body rendered by the global exception handlers."""

    success: bool = False
    message: str
    request_id: str | None = Field(default=None)
    errors: list[dict] | None = Field(default=None)
