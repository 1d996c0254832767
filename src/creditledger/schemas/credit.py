"""Pydantic schemas for credit balances and transactions."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from creditledger.models.credit_transaction import TransactionAction


class DeductRequest(BaseModel):
    """Body of POST /bot/deduct. Presence is checked by the endpoint."""

    phone_number: Optional[str] = None


class DeductionResult(BaseModel):
    """Outcome of a one-credit debit attempt."""

    success: bool
    remaining_credits: int


class BotCreditsData(BaseModel):
    """Data of GET /bot/credits/{phone}."""

    remaining_credits: int
    user_exists: bool = True


class RemainingCreditsData(BaseModel):
    """Data of POST /bot/deduct."""

    remaining_credits: int


class CreditTransactionRead(BaseModel):
    """Schema for returning a credit transaction."""

    id: UUID
    user_id: UUID
    action: TransactionAction
    credits: int
    source: str
    reference_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreditHistoryData(BaseModel):
    """Data of GET /credits/history/{user_id}."""

    user_id: UUID
    transactions: list[CreditTransactionRead]
    total: int


class LedgerSummary(BaseModel):
    """Stored balance compared with the transaction log."""

    user_id: UUID
    balance: int = Field(..., description="users.credits")
    total_credited: int
    total_debited: int
    ledger_balance: int = Field(..., description="total_credited - total_debited")
    consistent: bool
