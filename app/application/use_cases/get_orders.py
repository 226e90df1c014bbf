"""Order history queries"""

from typing import List

from ...domain.entities.order import Order
from ...domain.entities.user import User
from ...domain.exceptions import NotFoundError
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import OrderId


class ListUserOrdersUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, user: User) -> List[Order]:
        """The user's orders, newest first"""
        async with self.unit_of_work:
            return await self.unit_of_work.orders.get_by_user_id(user.id)


class GetOrderUseCase:

    def __init__(self, unit_of_work: IUnitOfWork):
        self.unit_of_work = unit_of_work

    async def execute(self, order_id: OrderId, requester: User) -> Order:
        """Owners see their own orders, admins see any. Others get a 404."""
        async with self.unit_of_work:
            order = await self.unit_of_work.orders.get_by_id(order_id)
        if not order or (order.user_id != requester.id and not requester.is_admin):
            raise NotFoundError("Order not found")
        return order
