"""Pydantic schemas for gateway orders and payment verification."""
from typing import Optional

from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    """Body of POST /payments/create-order. Presence is checked by the service."""

    package_id: Optional[int] = None
    phone_number: Optional[str] = None


class PackageSummary(BaseModel):
    """Package details echoed to the checkout widget."""

    id: int
    name: str
    credits: int
    price: float = Field(..., description="Price in base currency units")


class OrderCreated(BaseModel):
    """Data of POST /payments/create-order."""

    order_id: str
    amount: int = Field(..., description="Amount in minor currency units (paise)")
    currency: str
    package: PackageSummary


class VerifyPaymentRequest(BaseModel):
    """Razorpay checkout handler response plus the buyer's identity."""

    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    phone_number: Optional[str] = None
    package_id: Optional[int] = None


class PaymentVerification(BaseModel):
    """Data of POST /payments/verify."""

    payment_id: str
    order_id: str
    credits_added: int
    remaining_credits: int
    already_processed: bool = False


class WebhookOutcome(BaseModel):
    """What the webhook handler did with a verified event."""

    event_type: Optional[str] = None
    processed: bool = False
    credits_added: int = 0
    detail: Optional[str] = None
