"""Payment confirmation from the checkout page"""

from fastapi import APIRouter, Depends

from ...application.use_cases.settle_order import SettleOrderUseCase
from ...application.use_cases.verify_payment import VerifyPaymentUseCase
from ...application.dtos.order_dtos import (
    OrderResponseDTO,
    PaymentVerifyDTO,
    PaymentVerifyResponseDTO,
)
from ...api.dependencies import (
    get_clock,
    get_current_user,
    get_order_notifier,
    get_settle_order,
    get_unit_of_work,
)
from ...core.config import settings
from ...domain.entities.user import User
from ...domain.value_objects.entity_ids import OrderId


router = APIRouter(tags=["payments"])


@router.post("/verify", response_model=PaymentVerifyResponseDTO)
async def verify_payment(
    payload: PaymentVerifyDTO,
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
    settle_order: SettleOrderUseCase = Depends(get_settle_order),
    notifier = Depends(get_order_notifier),
    clock = Depends(get_clock),
):
    """Verify the Razorpay checkout signature and settle the order"""
    use_case = VerifyPaymentUseCase(
        unit_of_work,
        settle_order,
        notifier,
        clock,
        key_secret=settings.RAZORPAY_KEY_SECRET,
    )
    result = await use_case.execute(
        current_user.id,
        OrderId(payload.order_id),
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
    )
    return PaymentVerifyResponseDTO(
        success=True,
        already_processed=not result.newly_settled,
        order=OrderResponseDTO.from_entity(result.order),
    )
