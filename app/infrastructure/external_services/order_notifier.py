"""Hands paid orders to the background email worker"""

from abc import ABC, abstractmethod

from ...domain.value_objects.entity_ids import OrderId


class OrderNotifier(ABC):

    @abstractmethod
    def schedule_order_complete(self, order_id: OrderId) -> None:
        pass


class CeleryOrderNotifier(OrderNotifier):

    def schedule_order_complete(self, order_id: OrderId) -> None:
        from ...tasks import send_order_complete_email

        send_order_complete_email.delay(str(order_id))
