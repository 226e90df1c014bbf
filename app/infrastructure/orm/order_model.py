"""Order ORM Model"""

from uuid import uuid4

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Numeric, JSON, Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ...db.models import Base
from ...domain.enums import OrderStatus, OrderKind


class OrderModel(Base):
    __tablename__ = 'orders'

    id = Column(Uuid, primary_key=True, default=uuid4, index=True)
    user_id = Column(Uuid, ForeignKey('users.id'), nullable=False, index=True)
    kind = Column(String(32), default=OrderKind.PRODUCT.value, nullable=False)

    # Membership payload
    membership_plan_key = Column(String(64), nullable=True)
    membership_months = Column(Integer, nullable=True)

    # Amounts, two decimal places in major units
    currency = Column(String(3), default='INR', nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), default=0, nullable=False)
    promo_code = Column(String(64), nullable=True)
    promo_discount = Column(Numeric(12, 2), default=0, nullable=False)
    convenience_fee = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    status = Column(String(32), default=OrderStatus.PENDING.value, nullable=False, index=True)
    cancel_reason = Column(String(32), nullable=True)

    # Payment provider linkage
    payment_provider = Column(String(32), default='razorpay', nullable=False)
    remote_order_id = Column(String, unique=True, nullable=True, index=True)
    payment_id = Column(String, nullable=True, index=True)
    payment_signature = Column(String, nullable=True)
    payment_raw = Column(JSON, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship('UserModel', back_populates='orders')
    items = relationship(
        'OrderItemModel',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItemModel.position',
    )


class OrderItemModel(Base):
    __tablename__ = 'order_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Uuid, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(Uuid, nullable=False)
    title = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    mrp = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    discount_percent = Column(Integer, default=0, nullable=False)

    order = relationship('OrderModel', back_populates='items')
