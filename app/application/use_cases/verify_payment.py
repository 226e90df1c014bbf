"""Client-side payment confirmation"""

import logging
from typing import Optional

from ...core.clock import Clock
from ...core.security import hmac_sha256_hex, signatures_match
from ...domain.enums import OrderStatus
from ...domain.exceptions import (
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    PaymentSignatureError,
    ValidationError,
)
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import OrderId, UserId
from ...infrastructure.external_services.order_notifier import OrderNotifier
from .settle_order import SettleOrderUseCase, SettlementResult

logger = logging.getLogger(__name__)


class VerifyPaymentUseCase:
    """Checkout-page callback: the browser reports the payment it just made.

    The signature is ``HMAC-SHA256(key_secret, "<remote_order_id>|<payment_id>")``.
    """

    def __init__(
        self,
        unit_of_work: IUnitOfWork,
        settle_order: SettleOrderUseCase,
        notifier: OrderNotifier,
        clock: Clock,
        key_secret: Optional[str],
    ):
        self.unit_of_work = unit_of_work
        self.settle_order = settle_order
        self.notifier = notifier
        self.clock = clock
        self.key_secret = key_secret

    async def execute(
        self,
        user_id: UserId,
        order_id: OrderId,
        remote_order_id: str,
        payment_id: str,
        signature: str,
    ) -> SettlementResult:
        if not self.key_secret:
            raise ConfigurationError("Payment verification not configured")

        async with self.unit_of_work:
            order = await self.unit_of_work.orders.get_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.user_id != user_id:
            raise ForbiddenError("You cannot verify this order")

        if order.status == OrderStatus.PAID:
            if order.payment_id == payment_id:
                return SettlementResult(order, False)
            raise ConflictError("Order already paid with a different payment")
        if order.status != OrderStatus.PENDING:
            raise InvalidTransitionError(order.status)

        if order.remote_order_id != remote_order_id:
            raise ValidationError("Order ID mismatch")

        expected = hmac_sha256_hex(self.key_secret, f"{remote_order_id}|{payment_id}".encode())
        if not signatures_match(expected, signature):
            logger.warning(f"Invalid payment signature for order {order_id}")
            raise PaymentSignatureError("Invalid payment signature")

        result = await self.settle_order.execute(
            order.id,
            payment_id=payment_id,
            payment_signature=signature,
            payment_raw={
                "source": "client-verify",
                "razorpay_order_id": remote_order_id,
                "razorpay_payment_id": payment_id,
                "verified_at": self.clock.now().isoformat(),
            },
        )

        if result.newly_settled:
            try:
                self.notifier.schedule_order_complete(order.id)
            except Exception:
                logger.exception(f"Could not schedule confirmation email for order {order_id}")
        return result
