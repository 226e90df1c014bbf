import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "whsec_test")
os.environ["TESTING"] = "true"

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.core.clock import FixedClock
from app.core.security import create_access_token
from app.db.database import SessionLocal, engine
from app.db.models import Base
from app.domain.enums import MembershipStatus, UserRole
from app.infrastructure.cache.promo_cache import PromoCache
from app.infrastructure.external_services.order_notifier import OrderNotifier
from app.infrastructure.external_services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    RemoteOrder,
)
from app.infrastructure.orm import (
    MembershipPlanModel,
    ProductModel,
    PromoCodeModel,
    UserModel,
    UserProductModel,
)
from app.infrastructure.repositories.unit_of_work_impl import UnitOfWorkImpl

NOW = datetime(2026, 3, 15, 12, 0, 0)


class FakeGateway(PaymentGateway):
    """Records calls; set ``fail_orders`` / ``fail_refunds`` to simulate outages"""

    def __init__(self):
        self.orders: List[Dict[str, Any]] = []
        self.refunds: List[Dict[str, Any]] = []
        self.fail_orders = False
        self.fail_refunds = False

    async def create_remote_order(self, amount_minor, currency, receipt, notes) -> RemoteOrder:
        if self.fail_orders:
            raise PaymentGatewayError("gateway down", status_code=503)
        remote_id = f"order_{len(self.orders) + 1:04d}"
        self.orders.append({
            "id": remote_id,
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        })
        return RemoteOrder(id=remote_id, amount=amount_minor, currency=currency, receipt=receipt)

    async def refund(self, payment_id, amount_minor) -> Dict[str, Any]:
        if self.fail_refunds:
            raise PaymentGatewayError("refund rejected", status_code=400)
        refund = {"id": f"rfnd_{len(self.refunds) + 1:04d}", "payment_id": payment_id, "amount": amount_minor}
        self.refunds.append(refund)
        return refund


class FakeNotifier(OrderNotifier):

    def __init__(self):
        self.scheduled = []

    def schedule_order_complete(self, order_id) -> None:
        self.scheduled.append(order_id)


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def uow():
    return UnitOfWorkImpl(SessionLocal)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def promo_cache():
    return PromoCache(ttl_seconds=300, max_entries=100)


# Seed helpers

def make_user(session, email=None, role=UserRole.USER, **fields) -> UserModel:
    user = UserModel(
        id=uuid4(),
        email=email or f"{uuid4().hex[:8]}@example.com",
        name=fields.pop("name", "Test User"),
        role=role.value,
        **fields,
    )
    session.add(user)
    session.commit()
    return user


def make_product(session, slug=None, price="100.00", mrp=None, currency="INR", visibility="public") -> ProductModel:
    slug = slug or f"track-{uuid4().hex[:8]}"
    product = ProductModel(
        id=uuid4(),
        slug=slug,
        title=slug.replace("-", " ").title(),
        price=Decimal(price) if price is not None else None,
        mrp=Decimal(mrp) if mrp else None,
        currency=currency,
        visibility=visibility,
    )
    session.add(product)
    session.commit()
    return product


def make_plan(session, key="PRO", price="499.00", currency="INR", **fields) -> MembershipPlanModel:
    plan = MembershipPlanModel(
        key=key,
        name=fields.pop("name", f"{key.title()} Plan"),
        price=Decimal(price),
        currency=currency,
        max_downloads_per_month=fields.pop("max_downloads_per_month", 50),
        allowed_formats=fields.pop("allowed_formats", ["mp3", "wav"]),
        commercial_use=fields.pop("commercial_use", True),
        remix_requests_per_month=fields.pop("remix_requests_per_month", 2),
        **fields,
    )
    session.add(plan)
    session.commit()
    return plan


def make_promo(
    session,
    code="SAVE10",
    discount_type="percentage",
    value="10",
    usage_limit: Optional[int] = None,
    used_count=0,
    **fields,
) -> PromoCodeModel:
    promo = PromoCodeModel(
        code=code,
        discount_type=discount_type,
        discount_value=Decimal(value),
        usage_limit=usage_limit,
        used_count=used_count,
        **fields,
    )
    session.add(promo)
    session.commit()
    return promo


def grant_product(session, user: UserModel, product: ProductModel, acquired_at=NOW) -> None:
    session.add(UserProductModel(user_id=user.id, product_id=product.id, acquired_at=acquired_at))
    session.commit()


def give_membership(session, user: UserModel, plan_key="PRO", expires_at=None, status=MembershipStatus.ACTIVE):
    user.membership_plan_key = plan_key
    user.membership_status = status.value
    user.membership_started_at = NOW - timedelta(days=10)
    user.membership_expires_at = expires_at or NOW + timedelta(days=20)
    session.commit()


def auth_headers(user: UserModel) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


@pytest.fixture
def client(gateway, notifier, clock, promo_cache):
    from app.main import app
    from app.api import dependencies

    app.dependency_overrides[dependencies.get_payment_gateway] = lambda: gateway
    app.dependency_overrides[dependencies.get_order_notifier] = lambda: notifier
    app.dependency_overrides[dependencies.get_clock] = lambda: clock
    app.dependency_overrides[dependencies.get_promo_cache] = lambda: promo_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
