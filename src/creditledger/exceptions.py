"""Domain exceptions mapped to HTTP responses by the handlers in ``main``."""
from typing import Any, Optional


class LedgerError(Exception):
    """Base class for errors that carry a client-safe message and HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, data: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(LedgerError):
    """Missing or malformed input."""

    status_code = 400


class AuthError(LedgerError):
    """Missing or invalid shared secret."""

    status_code = 401


class NotFoundError(LedgerError):
    """User or package does not exist."""

    status_code = 404


class SignatureInvalidError(LedgerError):
    """Payment or webhook signature is missing or does not match."""

    status_code = 400


class GatewayError(LedgerError):
    """Payment gateway is not configured or returned an error."""

    status_code = 500


class DuplicateUserError(LedgerError):
    """Another request created the user first; resolved by re-reading."""

    status_code = 409

    def __init__(self, phone_number: str):
        super().__init__(f"User with phone number {phone_number} already exists")
        self.phone_number = phone_number
