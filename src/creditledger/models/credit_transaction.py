"""Append-only credit transaction log."""
import enum

from sqlalchemy import CheckConstraint, Column, Enum as SQLEnum, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import relationship

from creditledger.models.base import Base


class TransactionAction(enum.Enum):
    """Direction of a balance mutation."""

    CREDIT = "credit"
    DEBIT = "debit"


class TransactionSource:
    """Well-known transaction sources. The column accepts any string."""

    SYSTEM = "system"
    PAYMENT = "payment"
    WEBHOOK_PAYMENT = "webhook_payment"
    IMAGE_GENERATION = "image_generation"


class CreditTransaction(Base):
    """
    One row per mutation of ``User.credits``.

    ``credits`` is always the positive magnitude; ``action`` carries the sign.
    Rows are never updated or deleted.
    """

    __tablename__ = "credit_transactions"
    __table_args__ = (
        CheckConstraint("credits > 0", name="ck_credit_transactions_credits_positive"),
        Index("ix_credit_transactions_user_created", "user_id", "created_at"),
    )

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(
        SQLEnum(
            TransactionAction,
            name="transactionaction",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    credits = Column(Integer, nullable=False)
    source = Column(String, nullable=False, index=True)
    reference_id = Column(String, nullable=True, index=True)  # Razorpay payment ID

    # Relationships
    user = relationship("User", back_populates="transactions")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CreditTransaction(id={self.id}, user_id={self.user_id}, action={self.action.value}, "
            f"credits={self.credits}, source={self.source})>"
        )
