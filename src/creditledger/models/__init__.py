"""SQLAlchemy ORM models for the credit ledger."""
# Import all models here to ensure they are registered with Alembic

from creditledger.models.base import Base
from creditledger.models.user import User
from creditledger.models.credit_transaction import CreditTransaction, TransactionAction, TransactionSource
from creditledger.models.package import Package
from creditledger.models.payment import Payment, PaymentStatus

__all__ = [
    "Base",
    "User",
    "CreditTransaction",
    "TransactionAction",
    "TransactionSource",
    "Package",
    "Payment",
    "PaymentStatus",
]
