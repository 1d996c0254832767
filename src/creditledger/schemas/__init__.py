"""Pydantic schemas for API request/response validation."""

from creditledger.schemas.credit import (
    BotCreditsData,
    CreditHistoryData,
    CreditTransactionRead,
    DeductionResult,
    DeductRequest,
    LedgerSummary,
    RemainingCreditsData,
)
from creditledger.schemas.error import ErrorCode, ErrorDetail
from creditledger.schemas.payment import (
    CreateOrderRequest,
    OrderCreated,
    PackageSummary,
    PaymentVerification,
    VerifyPaymentRequest,
    WebhookOutcome,
)
from creditledger.schemas.response import ApiResponse, ResponseStatus, error_body
from creditledger.schemas.user import UserProfile

__all__ = [
    "ApiResponse",
    "BotCreditsData",
    "CreateOrderRequest",
    "CreditHistoryData",
    "CreditTransactionRead",
    "DeductionResult",
    "DeductRequest",
    "ErrorCode",
    "ErrorDetail",
    "LedgerSummary",
    "OrderCreated",
    "PackageSummary",
    "PaymentVerification",
    "RemainingCreditsData",
    "ResponseStatus",
    "UserProfile",
    "VerifyPaymentRequest",
    "WebhookOutcome",
    "error_body",
]
