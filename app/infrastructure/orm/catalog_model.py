"""Catalog ORM Models"""

from uuid import uuid4

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, JSON, Uuid
from sqlalchemy.sql import func

from ...db.models import Base
from ...domain.enums import ProductVisibility


class ProductModel(Base):
    __tablename__ = 'products'

    id = Column(Uuid, primary_key=True, default=uuid4, index=True)
    slug = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=True)
    mrp = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), default='INR', nullable=False)
    visibility = Column(String(16), default=ProductVisibility.PUBLIC.value, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class MembershipPlanModel(Base):
    __tablename__ = 'membership_plans'

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default='INR', nullable=False)
    max_downloads_per_month = Column(Integer, nullable=True)
    allowed_formats = Column(JSON, nullable=True)
    commercial_use = Column(Boolean, default=False, nullable=False)
    remix_requests_per_month = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
