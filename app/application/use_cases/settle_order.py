"""Settle Order Use Case: PENDING -> PAID plus entitlement grant"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...core.clock import Clock
from ...domain.entities.order import MembershipPurchase, Order
from ...domain.enums import EntitlementSource, OrderStatus
from ...domain.exceptions import (
    InvalidTransitionError,
    InvalidUserStateError,
    NotFoundError,
    PromoLimitExceededError,
)
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import OrderId
from ...infrastructure.cache.promo_cache import PromoCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementResult:
    order: Order
    newly_settled: bool


class SettleOrderUseCase:
    """Mark an order paid and grant what was bought, in one transaction.

    Both confirmation paths (gateway webhook and client verify) end here.
    The PENDING -> PAID write is conditional, so whichever path arrives
    second sees ``newly_settled=False`` and grants nothing.
    """

    def __init__(self, unit_of_work: IUnitOfWork, promo_cache: PromoCache, clock: Clock):
        self.unit_of_work = unit_of_work
        self.promo_cache = promo_cache
        self.clock = clock

    async def execute(
        self,
        order_id: OrderId,
        payment_id: str,
        payment_signature: Optional[str] = None,
        payment_raw: Optional[Dict[str, Any]] = None,
    ) -> SettlementResult:
        touched_promo = None
        try:
            async with self.unit_of_work:
                orders = self.unit_of_work.orders

                order = await orders.get_by_id(order_id)
                if not order:
                    raise NotFoundError("Order not found")
                if order.status == OrderStatus.PAID:
                    return SettlementResult(order, False)
                if order.status != OrderStatus.PENDING:
                    raise InvalidTransitionError(order.status)

                now = self.clock.now()
                order.mark_as_paid(payment_id, payment_signature, payment_raw, now)
                if not await orders.update_if_status(order, OrderStatus.PENDING):
                    current = await orders.get_by_id(order_id)
                    if current and current.status == OrderStatus.PAID:
                        logger.info(f"Order {order_id} was settled concurrently")
                        return SettlementResult(current, False)
                    raise InvalidTransitionError(current.status if current else order.status)

                if order.promo_code:
                    touched_promo = order.promo_code
                    if not await self.unit_of_work.promo_codes.try_increment_usage(order.promo_code):
                        logger.warning(f"Promo {order.promo_code} exhausted while settling order {order_id}")
                        raise PromoLimitExceededError()

                user = await self.unit_of_work.users.get_for_update(order.user_id)
                if not user or user.is_deleted or user.is_banned:
                    raise InvalidUserStateError("User is not eligible to receive this order")

                if isinstance(order.payload, MembershipPurchase):
                    membership = user.activate_membership(order.payload.plan_key, order.payload.months, now)
                    logger.info(
                        f"Membership {membership.plan_key} active until {membership.expires_at} "
                        f"for user {user.id}"
                    )
                else:
                    granted = user.grant_products(order.product_ids, now, EntitlementSource.ORDER)
                    logger.info(f"Granted {len(granted)} product(s) to user {user.id}")

                await self.unit_of_work.users.update(user)
                await self.unit_of_work.commit()
        finally:
            if touched_promo:
                self.promo_cache.evict(touched_promo)

        logger.info(f"Order {order_id} settled with payment {payment_id}")
        return SettlementResult(order, True)
