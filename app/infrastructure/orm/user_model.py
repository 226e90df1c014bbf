"""User ORM Model"""

from uuid import uuid4

from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ...db.models import Base
from ...domain.enums import UserRole, MembershipStatus, EntitlementSource


class UserModel(Base):
    __tablename__ = 'users'

    id = Column(Uuid, primary_key=True, default=uuid4, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String(16), default=UserRole.USER.value, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    is_banned = Column(Boolean, default=False, nullable=False)

    # Membership
    membership_plan_key = Column(String(64), nullable=True)
    membership_status = Column(String(16), default=MembershipStatus.NONE.value, nullable=False)
    membership_started_at = Column(DateTime, nullable=True)
    membership_expires_at = Column(DateTime, nullable=True)

    # Monthly usage window
    usage_period_start = Column(DateTime, nullable=True)
    downloads_used = Column(Integer, default=0, nullable=False)
    remix_requests_used = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    orders = relationship('OrderModel', back_populates='user')
    owned_products = relationship(
        'UserProductModel',
        back_populates='user',
        cascade='all, delete-orphan',
        order_by='UserProductModel.acquired_at',
    )


class UserProductModel(Base):
    __tablename__ = 'user_products'
    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='uq_user_products_user_product'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey('products.id'), nullable=False, index=True)
    source = Column(String(16), default=EntitlementSource.ORDER.value, nullable=False)
    acquired_at = Column(DateTime, nullable=False)

    user = relationship('UserModel', back_populates='owned_products')
