"""Refund use cases and the refund service shared with the webhook path"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...core.clock import Clock
from ...domain.entities.order import MembershipPurchase, Order
from ...domain.enums import OrderStatus
from ...domain.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import OrderId
from ...infrastructure.external_services.payment_gateway import PaymentGateway, PaymentGatewayError

logger = logging.getLogger(__name__)


class RefundService:
    """Calls the gateway refund API around guarded status writes"""

    def __init__(self, unit_of_work: IUnitOfWork, gateway: PaymentGateway, clock: Clock):
        self.unit_of_work = unit_of_work
        self.gateway = gateway
        self.clock = clock

    async def initiate_refund(self, order: Order) -> Dict[str, Any]:
        """Refund a PAID order in full.

        The order is locked in REFUND_INITIATED before the gateway call so a
        second refund cannot start; any failure of the call puts it back to PAID.
        """
        if order.status != OrderStatus.PAID or not order.payment_id:
            raise ConflictError("Refund already in progress or completed")

        async with self.unit_of_work:
            order.start_refund(self.clock.now())
            if not await self.unit_of_work.orders.update_if_status(order, OrderStatus.PAID):
                raise ConflictError("Refund already in progress or completed")
            await self.unit_of_work.commit()

        try:
            refund = await self.gateway.refund(order.payment_id, order.amount_minor_units)
        except Exception as e:
            logger.error(f"Refund API failed for order {order.id}: {e}")
            async with self.unit_of_work:
                order.rollback_refund(str(e), self.clock.now())
                await self.unit_of_work.orders.update_if_status(order, OrderStatus.REFUND_INITIATED)
                await self.unit_of_work.commit()
            if isinstance(e, PaymentGatewayError):
                raise ExternalServiceError("Refund failed at the payment provider") from e
            raise

        async with self.unit_of_work:
            order.record_refund_request(refund, self.clock.now())
            if not await self.unit_of_work.orders.update_if_status(order, OrderStatus.REFUND_INITIATED):
                logger.info(f"Order {order.id} moved on before the refund request was stored")
            await self.unit_of_work.commit()

        logger.info(f"Refund {refund.get('id')} initiated for order {order.id}")
        return refund

    async def refund_failed_settlement(self, order: Order) -> Dict[str, Any]:
        """Give the money back for a captured payment whose settlement failed"""
        if order.status != OrderStatus.FAILED or not order.payment_id:
            raise ConflictError("Only failed orders with a captured payment can be compensated")

        try:
            refund = await self.gateway.refund(order.payment_id, order.amount_minor_units)
        except Exception as e:
            async with self.unit_of_work:
                order.record_refund_error(str(e), self.clock.now())
                await self.unit_of_work.orders.update_if_status(order, OrderStatus.FAILED)
                await self.unit_of_work.commit()
            if isinstance(e, PaymentGatewayError):
                raise ExternalServiceError("Compensation refund failed at the payment provider") from e
            raise

        async with self.unit_of_work:
            order.record_refund_request(refund, self.clock.now())
            await self.unit_of_work.orders.update_if_status(order, OrderStatus.FAILED)
            await self.unit_of_work.commit()

        logger.info(f"Compensation refund {refund.get('id')} issued for failed order {order.id}")
        return refund


@dataclass(frozen=True)
class RefundResult:
    refund_id: Optional[str]
    order_id: str
    status: OrderStatus


class RefundOrderUseCase:
    """Admin refund: revoke entitlements, then refund the payment"""

    def __init__(self, unit_of_work: IUnitOfWork, refund_service: RefundService, clock: Clock):
        self.unit_of_work = unit_of_work
        self.refund_service = refund_service
        self.clock = clock

    async def execute(self, order_id: OrderId) -> RefundResult:
        async with self.unit_of_work:
            order = await self.unit_of_work.orders.get_by_id(order_id)
            if not order:
                raise NotFoundError("Order not found")
            if order.status != OrderStatus.PAID or not order.payment_id:
                raise ValidationError("Only paid orders can be refunded")

            await self._revoke_access(order)
            await self.unit_of_work.commit()

        refund = await self.refund_service.initiate_refund(order)
        return RefundResult(
            refund_id=refund.get("id"),
            order_id=str(order.id),
            status=order.status,
        )

    async def _revoke_access(self, order: Order) -> None:
        user = await self.unit_of_work.users.get_for_update(order.user_id)
        if not user:
            logger.warning(f"Owner of order {order.id} is gone, nothing to revoke")
            return

        now = self.clock.now()
        if isinstance(order.payload, MembershipPurchase):
            if user.membership.plan_key == order.payload.plan_key:
                user.revoke_membership(now)
                logger.info(f"Membership {order.payload.plan_key} revoked for user {user.id}")
        else:
            revoked = user.revoke_products(order.product_ids)
            if revoked:
                user.updated_at = now
            logger.info(f"Revoked {len(revoked)} product(s) from user {user.id}")

        await self.unit_of_work.users.update(user)
