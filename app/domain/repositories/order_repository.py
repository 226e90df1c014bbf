"""Order repository interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List

from ..entities.order import Order
from ..enums import OrderStatus
from ..value_objects.entity_ids import OrderId, UserId


class IOrderRepository(ABC):

    @abstractmethod
    async def get_by_id(self, order_id: OrderId) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: UserId) -> List[Order]:
        pass

    @abstractmethod
    async def get_by_remote_order_id(self, remote_order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_by_payment_id(self, payment_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def add(self, order: Order) -> Order:
        pass

    @abstractmethod
    async def update_if_status(self, order: Order, expected: OrderStatus) -> bool:
        """Persist ``order`` only if the stored status still equals ``expected``.

        This is the compare-and-set every status transition goes through.
        """
        pass

    @abstractmethod
    async def cancel_stale_pending(self, created_before: datetime, now: datetime) -> int:
        pass
