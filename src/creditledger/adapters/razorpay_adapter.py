"""Razorpay payment gateway adapter."""
import hashlib
import hmac
from typing import Any, Optional

import razorpay
import structlog
from razorpay.errors import BadRequestError, GatewayError as RazorpayGatewayError, ServerError

from creditledger.config import settings
from creditledger.exceptions import GatewayError

logger = structlog.get_logger(__name__)

RAZORPAY_ERRORS = (BadRequestError, RazorpayGatewayError, ServerError)


def generate_signature(secret: str, message: str | bytes) -> str:
    """
    Hex HMAC-SHA256 of ``message`` keyed with ``secret``.

    This is the scheme Razorpay uses both for checkout confirmations
    (message ``"{order_id}|{payment_id}"``) and for webhooks (message is the
    raw request body).
    """
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signatures_match(expected: str, received: Optional[str]) -> bool:
    """Constant-time comparison; absent or wrong-length signatures never match."""
    if not received or len(expected) != len(received):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


class RazorpayAdapter:
    """Adapter for Razorpay order management and signature verification."""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        client: Any = None,
    ):
        """
        Initialize the adapter from settings unless values are given explicitly.

        Args:
            key_id: Razorpay key id
            key_secret: Razorpay key secret (also signs checkout confirmations)
            webhook_secret: Secret configured for the webhook endpoint
            client: Pre-built ``razorpay.Client`` (or a stand-in)
        """
        self.key_id = key_id if key_id is not None else settings.razorpay_key_id
        self.key_secret = key_secret if key_secret is not None else settings.razorpay_key_secret
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.razorpay_webhook_secret

        if client is None and self.key_id and self.key_secret:
            client = razorpay.Client(auth=(self.key_id, self.key_secret))
        self.client = client

    def _require_client(self) -> Any:
        if self.client is None:
            raise GatewayError(
                "Razorpay not configured. Please set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET environment variables."
            )
        return self.client

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Create a Razorpay order.

        Args:
            amount: Amount in the smallest currency unit (paise)
            currency: ISO currency code
            receipt: Merchant receipt reference
            notes: Metadata stored on the order and returned by order fetch

        Returns:
            Order details (id, amount, currency, notes, ...)

        Raises:
            GatewayError: If Razorpay is not configured or rejects the request
        """
        client = self._require_client()
        order_data = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }

        logger.info("razorpay_order_creating", amount=amount, currency=currency, receipt=receipt)

        try:
            order = client.order.create(data=order_data)
        except RAZORPAY_ERRORS as e:
            logger.error("razorpay_order_create_failed", error=str(e))
            raise GatewayError(f"Failed to create Razorpay order: {e}") from e

        logger.info("razorpay_order_created", order_id=order.get("id"))
        return order

    async def fetch_order(self, order_id: str) -> dict[str, Any]:
        """
        Retrieve an order, including the notes attached at creation.

        Args:
            order_id: Razorpay order ID

        Returns:
            Order details

        Raises:
            GatewayError: If Razorpay is not configured or the lookup fails
        """
        client = self._require_client()
        try:
            return client.order.fetch(order_id)
        except RAZORPAY_ERRORS as e:
            logger.error("razorpay_order_fetch_failed", order_id=order_id, error=str(e))
            raise GatewayError(f"Failed to fetch Razorpay order {order_id}: {e}") from e

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        """
        Verify the signature returned by Razorpay checkout.

        Args:
            order_id: Razorpay order ID
            payment_id: Razorpay payment ID
            signature: ``razorpay_signature`` from the checkout handler

        Returns:
            True if the signature is valid
        """
        if not self.key_secret:
            logger.error("razorpay_key_secret_not_configured")
            return False

        expected = generate_signature(self.key_secret, f"{order_id}|{payment_id}")
        is_valid = signatures_match(expected, signature)

        logger.info("razorpay_payment_signature_checked", order_id=order_id, valid=is_valid)
        return is_valid

    def verify_webhook_signature(self, body: bytes, signature: Optional[str]) -> bool:
        """
        Verify the ``X-Razorpay-Signature`` header against the raw body.

        Args:
            body: Raw, unparsed request body
            signature: Header value

        Returns:
            True if the signature is valid
        """
        if not self.webhook_secret:
            logger.error("razorpay_webhook_secret_not_configured")
            return False

        expected = generate_signature(self.webhook_secret, body)
        is_valid = signatures_match(expected, signature)

        logger.info("razorpay_webhook_signature_checked", valid=is_valid)
        return is_valid
