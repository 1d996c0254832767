"""Uniform JSON envelope returned by every endpoint."""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ResponseStatus:
    """Envelope status values."""

    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope: ``{status, message, data}``."""

    status: str = Field(default=ResponseStatus.SUCCESS, description="SUCCESS, ERROR or a domain status")
    message: str = Field(..., description="Human-readable message")
    data: Optional[DataT] = None


def error_body(message: str, data: Optional[dict] = None) -> dict:
    """Build an ERROR envelope; ``data`` is omitted when empty."""
    body: dict = {"status": ResponseStatus.ERROR, "message": message}
    if data:
        body["data"] = data
    return body
