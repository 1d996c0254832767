"""Error detail schemas used in validation error envelopes."""
from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (400)
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_VALUE = "invalid_value"
    VALIDATION_ERROR = "validation_error"

    # Internal errors (500)
    DATABASE_ERROR = "database_error"
    INTERNAL_ERROR = "internal_error"
