"""Checkout endpoints: order creation and synchronous payment verification."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.adapters.razorpay_adapter import RazorpayAdapter
from creditledger.api.deps import get_db, get_razorpay_adapter
from creditledger.schemas.payment import CreateOrderRequest, OrderCreated, PaymentVerification, VerifyPaymentRequest
from creditledger.schemas.response import ApiResponse
from creditledger.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/create-order", response_model=ApiResponse[OrderCreated])
async def create_order(
    request: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayAdapter = Depends(get_razorpay_adapter),
) -> ApiResponse[OrderCreated]:
    """
    Create a Razorpay order for a credit package.

    The pricing widget opens Razorpay checkout with the returned order id.
    """
    order = await PaymentService(db, gateway).create_order(request.package_id, request.phone_number)
    return ApiResponse[OrderCreated](message="Order created successfully", data=order)


@router.post("/verify", response_model=ApiResponse[PaymentVerification])
async def verify_payment(
    request: VerifyPaymentRequest,
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayAdapter = Depends(get_razorpay_adapter),
) -> ApiResponse[PaymentVerification]:
    """
    Verify the checkout signature and credit the purchased package.

    Replaying a verified payment is harmless: nothing is credited twice and
    the response reports ``already_processed``.
    """
    verification = await PaymentService(db, gateway).verify_payment(
        order_id=request.razorpay_order_id,
        payment_id=request.razorpay_payment_id,
        signature=request.razorpay_signature,
        phone_number=request.phone_number,
        package_id=request.package_id,
    )

    message = (
        "Payment already processed"
        if verification.already_processed
        else "Payment verified and credits added successfully"
    )
    return ApiResponse[PaymentVerification](message=message, data=verification)
