"""Payment reconciliation: gateway orders, verification and webhooks."""
import json
import time
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.adapters.razorpay_adapter import RazorpayAdapter
from creditledger.config import settings
from creditledger.exceptions import NotFoundError, SignatureInvalidError, ValidationError
from creditledger.metrics import payments_verified_total, webhook_events_total
from creditledger.models.credit_transaction import TransactionSource
from creditledger.models.package import Package
from creditledger.models.payment import Payment, PaymentStatus
from creditledger.schemas.payment import OrderCreated, PackageSummary, PaymentVerification, WebhookOutcome
from creditledger.services.credit_service import CreditService
from creditledger.utils.currency import convert_from_smallest_unit, convert_to_smallest_unit

logger = structlog.get_logger(__name__)

PAYMENT_CAPTURED = "payment.captured"


class PaymentService:
    """
    Service for gateway orders and exactly-once crediting of captured payments.

    Balances are never touched directly; credits go through CreditService.
    Both the synchronous verify path and the webhook path first claim the
    Razorpay payment id in ``payments`` (unique), and only credit on a
    successful claim.
    """

    def __init__(self, db: AsyncSession, gateway: RazorpayAdapter):
        """Initialize payment service with database session and gateway adapter."""
        self.db = db
        self.gateway = gateway
        self.credit_service = CreditService(db)

    async def get_package(self, package_id: int, active_only: bool = False) -> Optional[Package]:
        """
        Get a package by ID. Always read from the database, never cached.

        Args:
            package_id: Package ID
            active_only: Skip packages that are no longer on sale

        Returns:
            Package or None if not found
        """
        query = select(Package).where(Package.id == package_id)
        if active_only:
            query = query.where(Package.active.is_(True))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create_order(self, package_id: Optional[int], phone_number: Optional[str]) -> OrderCreated:
        """
        Create a Razorpay order for a package.

        The package id, phone number and credit count are stored as order
        notes, which is all the webhook path has to go on later.

        Args:
            package_id: Package being purchased
            phone_number: Buyer's phone number

        Returns:
            OrderCreated with gateway order id, amount and package details

        Raises:
            ValidationError: If a field is missing
            NotFoundError: If the package does not exist or is no longer on sale
            GatewayError: If the order cannot be created
        """
        if not package_id or not phone_number:
            raise ValidationError("Package ID and phone number are required")

        package = await self.get_package(package_id, active_only=True)
        if not package:
            raise NotFoundError("Package not found")

        currency = settings.payment_currency
        amount = convert_to_smallest_unit(package.price, currency)

        order = await self.gateway.create_order(
            amount=amount,
            currency=currency,
            receipt=f"receipt_{int(time.time() * 1000)}_{package_id}",
            notes={
                "package_id": str(package_id),
                "phone_number": phone_number,
                "credits": str(package.credits),
            },
        )

        return OrderCreated(
            order_id=order["id"],
            amount=order.get("amount", amount),
            currency=order.get("currency", currency),
            package=PackageSummary(
                id=package.id,
                name=package.name,
                credits=package.credits,
                price=float(package.price),
            ),
        )

    async def verify_payment(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
        phone_number: Optional[str],
        package_id: Optional[int],
    ) -> PaymentVerification:
        """
        Verify a checkout payment signature and credit the buyer once.

        Args:
            order_id: razorpay_order_id
            payment_id: razorpay_payment_id
            signature: razorpay_signature
            phone_number: Buyer's phone number (must belong to an existing user)
            package_id: Package purchased

        Returns:
            PaymentVerification with credits added and new balance

        Raises:
            ValidationError: If a field is missing or the package does not match the order
            SignatureInvalidError: If the signature does not match
            NotFoundError: If the user or package does not exist
        """
        logger.info("payment_verification_started", order_id=order_id)

        if not all([order_id, payment_id, signature, phone_number, package_id]):
            raise ValidationError("All payment verification fields are required")

        if not self.gateway.verify_payment_signature(order_id, payment_id, signature):
            payments_verified_total.labels(result="invalid_signature").inc()
            logger.error("payment_signature_invalid", order_id=order_id)
            raise SignatureInvalidError("Invalid payment signature")

        # Payments bind to an existing profile; no auto-create on this path
        user = await self.credit_service.get_user_by_phone(phone_number)
        if not user:
            logger.error("payment_user_not_found", phone_number=phone_number)
            raise NotFoundError("User profile not found. Please register first.")

        package = await self.get_package(package_id)
        if not package:
            raise NotFoundError("Package details not found")

        await self._check_order_package(order_id, package_id)

        claimed = await self._record_payment(
            user_id=user.id,
            package_id=package.id,
            amount=package.price,
            order_id=order_id,
            payment_id=payment_id,
            source=TransactionSource.PAYMENT,
        )

        if not claimed:
            payments_verified_total.labels(result="duplicate").inc()
            remaining = await self.credit_service._current_balance(user.id)
            return PaymentVerification(
                payment_id=payment_id,
                order_id=order_id,
                credits_added=0,
                remaining_credits=remaining,
                already_processed=True,
            )

        updated_user = await self.credit_service.add_credits(
            phone_number,
            package.credits,
            TransactionSource.PAYMENT,
            payment_id,
        )

        payments_verified_total.labels(result="credited").inc()
        logger.info(
            "payment_verified",
            user_id=str(user.id),
            payment_id=payment_id,
            credits_added=package.credits,
        )

        return PaymentVerification(
            payment_id=payment_id,
            order_id=order_id,
            credits_added=package.credits,
            remaining_credits=updated_user.credits,
        )

    async def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> WebhookOutcome:
        """
        Process a Razorpay webhook delivery.

        Only signature problems are reported to the caller. Everything that
        goes wrong after the signature checks out is logged, rolled back and
        acknowledged, since Razorpay retries any non-2xx response.

        Args:
            raw_body: Raw request body exactly as received
            signature: X-Razorpay-Signature header

        Returns:
            WebhookOutcome describing what was done

        Raises:
            SignatureInvalidError: If the signature is missing or invalid
        """
        if not signature:
            webhook_events_total.labels(event_type="unknown", result="rejected").inc()
            logger.error("webhook_missing_signature")
            raise SignatureInvalidError("Missing Razorpay signature")

        if not self.gateway.verify_webhook_signature(raw_body, signature):
            webhook_events_total.labels(event_type="unknown", result="rejected").inc()
            logger.error("webhook_signature_invalid")
            raise SignatureInvalidError("Invalid webhook signature")

        event_type = None
        try:
            event = json.loads(raw_body)
            event_type = event.get("event")

            logger.info("webhook_received", event_type=event_type)

            if event_type == PAYMENT_CAPTURED:
                outcome = await self._handle_payment_captured(event)
            else:
                logger.info("webhook_event_ignored", event_type=event_type)
                outcome = WebhookOutcome(event_type=event_type, detail="ignored")
        except Exception:
            logger.exception("webhook_processing_failed", event_type=event_type)
            await self.db.rollback()
            webhook_events_total.labels(event_type=event_type or "unknown", result="failed").inc()
            return WebhookOutcome(event_type=event_type, detail="failed")

        webhook_events_total.labels(event_type=event_type or "unknown", result=outcome.detail or "credited").inc()
        return outcome

    async def _handle_payment_captured(self, event: dict[str, Any]) -> WebhookOutcome:
        """Credit a captured payment using the notes stored on its order."""
        payment_entity = event["payload"]["payment"]["entity"]
        payment_id = payment_entity["id"]
        order_id = payment_entity["order_id"]

        order = await self.gateway.fetch_order(order_id)
        notes = order.get("notes") or {}
        phone_number = notes["phone_number"]
        credits = int(notes["credits"])
        package_id = int(notes["package_id"]) if notes.get("package_id") else None

        user = await self.credit_service.get_or_create_user(phone_number)

        amount_minor = payment_entity.get("amount", order.get("amount", 0))
        currency = payment_entity.get("currency", order.get("currency", settings.payment_currency))

        claimed = await self._record_payment(
            user_id=user.id,
            package_id=package_id,
            amount=convert_from_smallest_unit(int(amount_minor), currency),
            order_id=order_id,
            payment_id=payment_id,
            source=TransactionSource.WEBHOOK_PAYMENT,
            currency=currency,
        )
        if not claimed:
            return WebhookOutcome(event_type=PAYMENT_CAPTURED, processed=True, detail="duplicate")

        await self.credit_service.add_credits(
            phone_number,
            credits,
            TransactionSource.WEBHOOK_PAYMENT,
            payment_id,
        )

        logger.info("webhook_payment_credited", payment_id=payment_id, order_id=order_id, credits=credits)
        return WebhookOutcome(event_type=PAYMENT_CAPTURED, processed=True, credits_added=credits, detail="credited")

    async def _check_order_package(self, order_id: str, package_id: int) -> None:
        """
        Make sure the package claimed at verification is the one the order was created for.

        Raises:
            ValidationError: If the order notes name a different package
        """
        order = await self.gateway.fetch_order(order_id)
        # Razorpay returns an empty list for orders without notes
        notes = (order or {}).get("notes") or {}
        ordered_package = notes.get("package_id")
        if ordered_package is not None and str(ordered_package) != str(package_id):
            logger.error(
                "payment_package_mismatch",
                order_id=order_id,
                ordered_package=ordered_package,
                claimed_package=package_id,
            )
            raise ValidationError("Package does not match order")

    async def _record_payment(
        self,
        *,
        user_id: UUID,
        package_id: Optional[int],
        amount: Decimal,
        order_id: str,
        payment_id: str,
        source: str,
        currency: Optional[str] = None,
    ) -> bool:
        """
        Claim a gateway payment id by inserting its payment record.

        Returns:
            False if a record for the payment id already exists (already
            credited), True otherwise. Any other write failure, including a
            foreign-key or check violation, is logged for offline repair and
            still returns True.
        """
        try:
            async with self.db.begin_nested():
                self.db.add(
                    Payment(
                        user_id=user_id,
                        package_id=package_id,
                        amount=amount,
                        currency=currency or settings.payment_currency,
                        payment_gateway="razorpay",
                        gateway_order_id=order_id,
                        gateway_payment_id=payment_id,
                        status=PaymentStatus.SUCCESS,
                        source=source,
                    )
                )
                await self.db.flush()
        except IntegrityError as e:
            existing = await self.db.scalar(select(Payment.id).where(Payment.gateway_payment_id == payment_id))
            if existing is not None:
                logger.info("payment_already_processed", payment_id=payment_id, order_id=order_id, source=source)
                return False
            logger.error("payment_record_failed", payment_id=payment_id, order_id=order_id, error=str(e))
            return True
        except SQLAlchemyError as e:
            logger.error("payment_record_failed", payment_id=payment_id, order_id=order_id, error=str(e))
            return True

        return True
