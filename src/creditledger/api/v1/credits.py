"""Credit history and ledger consistency endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.api.deps import get_db
from creditledger.config import settings
from creditledger.exceptions import NotFoundError
from creditledger.schemas.credit import CreditHistoryData, CreditTransactionRead, LedgerSummary
from creditledger.schemas.response import ApiResponse
from creditledger.services.credit_service import CreditService

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("/history/{user_id}", response_model=ApiResponse[CreditHistoryData])
async def get_credit_history(
    user_id: UUID,
    limit: int = Query(default=settings.credit_history_default_limit, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CreditHistoryData]:
    """
    List a user's credit transactions, newest first.

    Args:
        user_id: User UUID
        limit: Maximum number of transactions to return (1-500)
    """
    credit_service = CreditService(db)

    if not await credit_service.get_user(user_id):
        raise NotFoundError("User not found")

    transactions = await credit_service.get_credit_history(user_id, limit)

    return ApiResponse[CreditHistoryData](
        message="Credit history retrieved successfully",
        data=CreditHistoryData(
            user_id=user_id,
            transactions=[CreditTransactionRead.model_validate(t) for t in transactions],
            total=len(transactions),
        ),
    )


@router.get("/ledger/{user_id}", response_model=ApiResponse[LedgerSummary])
async def get_ledger_summary(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[LedgerSummary]:
    """Compare a user's stored balance with the sum of their transaction log."""
    summary = await CreditService(db).get_ledger_summary(user_id)
    if summary is None:
        raise NotFoundError("User not found")

    return ApiResponse[LedgerSummary](message="Ledger summary retrieved successfully", data=summary)
