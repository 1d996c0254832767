"""User profile endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.api.deps import get_db
from creditledger.schemas.response import ApiResponse
from creditledger.schemas.user import UserProfile
from creditledger.services.credit_service import CreditService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{phone_number}", response_model=ApiResponse[UserProfile])
async def get_user_profile(
    phone_number: str,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[UserProfile]:
    """Get a user profile by phone number, creating the user if needed."""
    user = await CreditService(db).get_or_create_user(phone_number)

    return ApiResponse[UserProfile](
        message="User profile retrieved successfully",
        data=UserProfile.model_validate(user),
    )
