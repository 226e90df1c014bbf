"""Gateway webhook receiver"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from ...application.use_cases.process_payment_webhook import ProcessGatewayWebhookUseCase
from ...application.use_cases.refund_order import RefundService
from ...application.use_cases.settle_order import SettleOrderUseCase
from ...application.dtos.order_dtos import WebhookResponseDTO
from ...api.dependencies import (
    get_clock,
    get_order_notifier,
    get_refund_service,
    get_settle_order,
    get_unit_of_work,
)
from ...core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/razorpay", response_model=WebhookResponseDTO)
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(default=None),
    unit_of_work = Depends(get_unit_of_work),
    settle_order: SettleOrderUseCase = Depends(get_settle_order),
    refund_service: RefundService = Depends(get_refund_service),
    notifier = Depends(get_order_notifier),
    clock = Depends(get_clock),
):
    """Razorpay event callback. The signature covers the raw request body."""
    body = await request.body()
    use_case = ProcessGatewayWebhookUseCase(
        unit_of_work,
        settle_order,
        refund_service,
        clock,
        webhook_secret=settings.RAZORPAY_WEBHOOK_SECRET,
        notifier=notifier,
    )
    outcome = await use_case.execute(body, x_razorpay_signature)
    logger.info(f"Webhook {outcome.event}: {outcome.message}")
    return WebhookResponseDTO(message=outcome.message)
