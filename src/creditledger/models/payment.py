"""Payment model for gateway reconciliation bookkeeping."""
import enum

from sqlalchemy import Column, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from creditledger.models.base import Base


class PaymentStatus(enum.Enum):
    """Payment record status."""

    SUCCESS = "success"
    FAILED = "failed"


class Payment(Base):
    """
    Record of a captured gateway payment.

    ``gateway_payment_id`` is unique: inserting it is how a payment is claimed
    for crediting, so the verify endpoint and the webhook credit it once.
    """

    __tablename__ = "payments"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)  # Base currency units
    currency = Column(String(3), nullable=False, default="INR")
    payment_gateway = Column(String, nullable=False, default="razorpay")
    gateway_order_id = Column(String, nullable=False, index=True)
    gateway_payment_id = Column(String, nullable=False, unique=True)
    status = Column(
        SQLEnum(
            PaymentStatus,
            name="paymentstatus",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=PaymentStatus.SUCCESS,
    )
    source = Column(String, nullable=False)  # payment (verify endpoint) or webhook_payment

    # Relationships
    user = relationship("User", back_populates="payments")
    package = relationship("Package")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Payment(id={self.id}, gateway_payment_id={self.gateway_payment_id}, "
            f"status={self.status.value}, amount={self.amount})>"
        )
