"""User model holding the credit balance."""
from sqlalchemy import CheckConstraint, Column, Integer, String
from sqlalchemy.orm import relationship

from creditledger.models.base import Base


class User(Base):
    """
    Bot user identified by phone number.

    ``credits`` is the authoritative balance; it is only ever changed by
    conditional or atomic UPDATE statements issued by the credit service.
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),)

    phone_number = Column(String, nullable=False, unique=True, index=True)
    credits = Column(Integer, nullable=False, default=3)

    # Relationships
    transactions = relationship("CreditTransaction", back_populates="user", order_by="CreditTransaction.created_at")
    payments = relationship("Payment", back_populates="user")

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, phone_number={self.phone_number}, credits={self.credits})>"
