"""Order confirmation email use case"""

import logging
from typing import Optional

from ...domain.enums import OrderStatus
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import OrderId
from ...infrastructure.external_services.email_service import EmailService
from ...infrastructure.external_services.email_templates import render_order_complete_email

logger = logging.getLogger(__name__)


class SendOrderCompleteEmailUseCase:

    def __init__(self, unit_of_work: IUnitOfWork, email_service: EmailService, support_email: Optional[str] = None):
        self.unit_of_work = unit_of_work
        self.email_service = email_service
        self.support_email = support_email

    async def execute(self, order_id: OrderId) -> bool:
        """Render and send the confirmation. Returns False when nothing was sent."""
        async with self.unit_of_work:
            order = await self.unit_of_work.orders.get_by_id(order_id)
            if not order:
                logger.warning(f"Order {order_id} not found, skipping confirmation email")
                return False
            if order.status not in (OrderStatus.PAID, OrderStatus.REFUNDED):
                logger.info(f"Order {order_id} is {order.status.value}, skipping confirmation email")
                return False

            user = await self.unit_of_work.users.get_by_id(order.user_id)
            if not user or not user.email:
                logger.warning(f"No recipient for order {order_id}")
                return False

            plan_name = None
            if order.is_membership:
                plan = await self.unit_of_work.catalog.get_active_plan(order.payload.plan_key)
                plan_name = plan.name if plan else None

        subject, html = render_order_complete_email(order, user, plan_name, self.support_email)
        return await self.email_service.send_email(user.email, subject, html)
