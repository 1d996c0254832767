"""Razorpay webhook handler for captured payments."""
import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.adapters.razorpay_adapter import RazorpayAdapter
from creditledger.api.deps import get_db, get_razorpay_adapter
from creditledger.services.payment_service import PaymentService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/payments/webhook", tags=["webhooks"])


@router.post("")
async def handle_razorpay_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayAdapter = Depends(get_razorpay_adapter),
) -> dict[str, str]:
    """
    Handle incoming Razorpay webhook events.

    The signature is computed over the raw body, so the body is read
    unparsed. Only a missing or invalid signature is answered with an error
    (400); every verified delivery is acknowledged with 200 so Razorpay
    stops retrying, whether or not it could be processed.

    Returns:
        ``{"status": "ok"}``
    """
    body = await request.body()
    signature = request.headers.get("x-razorpay-signature")

    outcome = await PaymentService(db, gateway).handle_webhook(body, signature)

    logger.info(
        "razorpay_webhook_acknowledged",
        event_type=outcome.event_type,
        detail=outcome.detail,
        credits_added=outcome.credits_added,
    )
    return {"status": "ok"}
