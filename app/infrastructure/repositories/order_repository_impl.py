"""Order repository implementation using SQLAlchemy ORM"""

from datetime import datetime
from typing import Optional, List

from sqlalchemy import update, desc
from sqlalchemy.orm import Session

from ...domain.entities.order import (
    MembershipPurchase,
    Order,
    OrderItem,
    ProductPurchase,
)
from ...domain.repositories.order_repository import IOrderRepository
from ...domain.value_objects.entity_ids import OrderId, ProductId, UserId
from ...domain.enums import CancelReason, OrderKind, OrderStatus
from ..orm.order_model import OrderModel, OrderItemModel


class OrderRepositoryImpl(IOrderRepository):
    """Repository implementation for Order aggregate"""

    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        # Conditional writes bypass the identity map, so reads always refresh.
        return self.session.query(OrderModel).populate_existing()

    async def get_by_id(self, order_id: OrderId) -> Optional[Order]:
        """Get order by ID"""
        model = self._query().filter(OrderModel.id == order_id.value).first()
        return self._map_to_entity(model) if model else None

    async def get_by_user_id(self, user_id: UserId) -> List[Order]:
        """Get orders by user ID, newest first"""
        models = (
            self._query()
            .filter(OrderModel.user_id == user_id.value)
            .order_by(desc(OrderModel.created_at))
            .all()
        )
        return [self._map_to_entity(model) for model in models]

    async def get_by_remote_order_id(self, remote_order_id: str) -> Optional[Order]:
        model = self._query().filter(OrderModel.remote_order_id == remote_order_id).first()
        return self._map_to_entity(model) if model else None

    async def get_by_payment_id(self, payment_id: str) -> Optional[Order]:
        model = (
            self._query()
            .filter(OrderModel.payment_id == payment_id)
            .order_by(desc(OrderModel.updated_at))
            .first()
        )
        return self._map_to_entity(model) if model else None

    async def add(self, order: Order) -> Order:
        """Add a new order"""
        model = self._create_model_from_entity(order)
        self.session.add(model)
        self.session.flush()
        return order

    async def update_if_status(self, order: Order, expected: OrderStatus) -> bool:
        result = self.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order.id.value, OrderModel.status == expected.value)
            .values(**self._mutable_columns(order))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def cancel_stale_pending(self, created_before: datetime, now: datetime) -> int:
        result = self.session.execute(
            update(OrderModel)
            .where(
                OrderModel.status == OrderStatus.PENDING.value,
                OrderModel.created_at <= created_before,
                OrderModel.payment_id.is_(None),
            )
            .values(
                status=OrderStatus.CANCELLED.value,
                cancel_reason=CancelReason.PAYMENT_TIMEOUT.value,
                completed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def _mutable_columns(self, order: Order) -> dict:
        """Columns that can change after the order is created"""
        return {
            'status': order.status.value,
            'cancel_reason': order.cancel_reason.value if order.cancel_reason else None,
            'remote_order_id': order.remote_order_id,
            'payment_id': order.payment_id,
            'payment_signature': order.payment_signature,
            'payment_raw': dict(order.payment_raw) if order.payment_raw else None,
            'updated_at': order.updated_at,
            'completed_at': order.completed_at,
        }

    def _create_model_from_entity(self, order: Order) -> OrderModel:
        """Create ORM model from domain entity"""
        model = OrderModel(
            id=order.id.value,
            user_id=order.user_id.value,
            kind=order.kind.value,
            currency=order.currency,
            subtotal=order.subtotal,
            tax=order.tax,
            promo_code=order.promo_code,
            promo_discount=order.promo_discount,
            convenience_fee=order.convenience_fee,
            total=order.total,
            payment_provider=order.payment_provider,
            created_at=order.created_at,
            **self._mutable_columns(order),
        )
        if isinstance(order.payload, MembershipPurchase):
            model.membership_plan_key = order.payload.plan_key
            model.membership_months = order.payload.months
        else:
            model.items = [
                OrderItemModel(
                    position=position,
                    product_id=item.product_id.value,
                    title=item.title,
                    price=item.price,
                    mrp=item.mrp,
                    currency=item.currency,
                    discount_percent=item.discount_percent,
                )
                for position, item in enumerate(order.payload.items)
            ]
        return model

    def _map_to_entity(self, model: OrderModel) -> Order:
        """Map ORM model to domain entity"""
        if model.kind == OrderKind.MEMBERSHIP.value:
            payload = MembershipPurchase(
                plan_key=model.membership_plan_key,
                months=model.membership_months,
            )
        else:
            payload = ProductPurchase(items=tuple(
                OrderItem(
                    product_id=ProductId(item.product_id),
                    title=item.title,
                    price=item.price,
                    mrp=item.mrp,
                    currency=item.currency,
                    discount_percent=item.discount_percent,
                )
                for item in model.items
            ))

        return Order(
            id=OrderId(model.id),
            user_id=UserId(model.user_id),
            payload=payload,
            currency=model.currency,
            subtotal=model.subtotal,
            tax=model.tax,
            promo_discount=model.promo_discount,
            convenience_fee=model.convenience_fee,
            total=model.total,
            promo_code=model.promo_code,
            status=OrderStatus(model.status),
            cancel_reason=CancelReason(model.cancel_reason) if model.cancel_reason else None,
            payment_provider=model.payment_provider,
            remote_order_id=model.remote_order_id,
            payment_id=model.payment_id,
            payment_signature=model.payment_signature,
            payment_raw=dict(model.payment_raw or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
            completed_at=model.completed_at,
        )
