"""Bot endpoints: balance lookups and per-image debits."""
import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.api.deps import get_db, require_bot_secret
from creditledger.exceptions import ValidationError
from creditledger.schemas.credit import BotCreditsData, DeductRequest, RemainingCreditsData
from creditledger.schemas.response import ApiResponse, ResponseStatus
from creditledger.services.credit_service import CreditService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/bot", tags=["bot"], dependencies=[Depends(require_bot_secret)])


def remaining_credits_message(credits: int) -> str:
    """Human-readable balance sentence the bot relays to the user."""
    if credits <= 0:
        return "You have no credits remaining."
    return f"You have {credits} credit{'s' if credits != 1 else ''} remaining."


@router.get("/credits/{phone_number}", response_model=ApiResponse[BotCreditsData])
async def get_credits(
    phone_number: str,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BotCreditsData]:
    """
    Get remaining credits for a phone number.

    Unknown numbers are registered on the spot with the signup bonus.
    """
    user = await CreditService(db).get_or_create_user(phone_number)

    return ApiResponse[BotCreditsData](
        message=remaining_credits_message(user.credits),
        data=BotCreditsData(remaining_credits=user.credits, user_exists=True),
    )


@router.post("/deduct", response_model=ApiResponse[RemainingCreditsData])
async def deduct_credit(
    request: DeductRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[RemainingCreditsData]:
    """
    Deduct one credit after a successful image generation.

    Running out of credits is a normal outcome, answered with HTTP 200 and
    status ``INSUFFICIENT_CREDITS``.
    """
    if not request.phone_number:
        raise ValidationError("Phone number is required")

    result = await CreditService(db).deduct_credit(request.phone_number)
    data = RemainingCreditsData(remaining_credits=result.remaining_credits)

    if not result.success:
        logger.info("credit_deduction_rejected", remaining_credits=result.remaining_credits)
        return ApiResponse[RemainingCreditsData](
            status=ResponseStatus.INSUFFICIENT_CREDITS,
            message="You have no credits left. Please purchase a plan to continue.",
            data=data,
        )

    if result.remaining_credits > 0:
        message = f"Image generated successfully. {remaining_credits_message(result.remaining_credits)}"
    else:
        message = "Image generated successfully. You have no credits remaining."

    return ApiResponse[RemainingCreditsData](message=message, data=data)
