from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.domain.entities.order import MembershipPurchase, Order, OrderItem, ProductPurchase
from app.domain.entities.catalog import Product
from app.domain.entities.user import Membership, User
from app.domain.enums import CancelReason, MembershipStatus, OrderStatus
from app.domain.exceptions import InvalidTransitionError, ValidationError
from app.domain.value_objects.entity_ids import ProductId, UserId

NOW = datetime(2026, 3, 15, 12, 0, 0)


def product_order(total="100.00"):
    item = OrderItem(
        product_id=ProductId.generate(),
        title="Night Drive",
        price=Decimal(total),
        mrp=Decimal(total),
        currency="INR",
    )
    return Order.create_pending(
        user_id=UserId.generate(),
        payload=ProductPurchase(items=(item,)),
        currency="INR",
        subtotal=Decimal(total),
        total=Decimal(total),
        now=NOW,
    )


def test_snapshot_computes_discount_percent():
    catalog_product = Product(
        id=ProductId.generate(),
        slug="night-drive",
        title="Night Drive",
        price=Decimal("75.00"),
        mrp=Decimal("100.00"),
        currency="INR",
    )
    item = OrderItem.snapshot(catalog_product, "INR")
    assert item.discount_percent == 25
    assert item.mrp == Decimal("100.00")


def test_order_rejects_amounts_that_do_not_add_up():
    with pytest.raises(ValueError):
        Order.create_pending(
            user_id=UserId.generate(),
            payload=MembershipPurchase(plan_key="PRO", months=1),
            currency="INR",
            subtotal=Decimal("100.00"),
            total=Decimal("90.00"),
            now=NOW,
        )


def test_order_rejects_discount_above_subtotal():
    with pytest.raises(ValueError):
        Order.create_pending(
            user_id=UserId.generate(),
            payload=MembershipPurchase(plan_key="PRO", months=1),
            currency="INR",
            subtotal=Decimal("10.00"),
            promo_discount=Decimal("11.00"),
            convenience_fee=Decimal("2.00"),
            total=Decimal("1.00"),
            now=NOW,
        )


def test_product_purchase_rejects_repeated_product():
    item = OrderItem(ProductId.generate(), "A", Decimal("1"), Decimal("1"), "INR")
    with pytest.raises(ValueError):
        ProductPurchase(items=(item, item))


def test_membership_purchase_month_bounds():
    with pytest.raises(ValueError):
        MembershipPurchase(plan_key="PRO", months=13)
    with pytest.raises(ValueError):
        MembershipPurchase(plan_key="PRO", months=0)


def test_paid_order_cannot_be_cancelled():
    order = product_order()
    order.mark_as_paid("pay_1", "sig", {"source": "test"}, NOW)
    assert order.status == OrderStatus.PAID
    assert order.completed_at == NOW
    with pytest.raises(InvalidTransitionError):
        order.cancel(CancelReason.USER_CANCELLED, NOW)


def test_refund_lifecycle_and_rollback():
    order = product_order()
    order.mark_as_paid("pay_1", None, None, NOW)
    order.start_refund(NOW)
    assert order.status == OrderStatus.REFUND_INITIATED

    order.rollback_refund("gateway said no", NOW)
    assert order.status == OrderStatus.PAID
    assert order.payment_raw["refund_errors"][0]["message"] == "gateway said no"

    order.start_refund(NOW)
    order.mark_refunded({"id": "rfnd_1"}, NOW)
    assert order.status == OrderStatus.REFUNDED
    assert order.payment_raw["refund"]["id"] == "rfnd_1"


def test_compensation_refund_keeps_failed_status():
    order = product_order()
    order.mark_failed(CancelReason.SYSTEM_CANCELLED, NOW, payment_id="pay_9")
    assert not order.has_compensation_refund
    order.record_refund_request({"id": "rfnd_2"}, NOW)
    assert order.has_compensation_refund

    order.record_compensation_refund({"id": "rfnd_2", "status": "processed"}, NOW)
    assert order.status == OrderStatus.FAILED
    assert "refund_completed_at" in order.payment_raw


def test_membership_renewal_extends_from_current_expiry():
    user = User(id=UserId.generate(), email="a@example.com")
    user.activate_membership("PRO", 1, NOW)
    first_expiry = user.membership.expires_at
    assert first_expiry == datetime(2026, 4, 15, 12, 0, 0)

    user.membership_usage.downloads_used = 7
    later = NOW + timedelta(days=5)
    user.activate_membership("PRO", 2, later)
    assert user.membership.expires_at == datetime(2026, 6, 15, 12, 0, 0)
    assert user.membership.started_at == NOW
    assert user.membership_usage.downloads_used == 7


def test_switching_plan_starts_fresh_period():
    user = User(id=UserId.generate(), email="a@example.com")
    user.activate_membership("PRO", 3, NOW)
    user.membership_usage.downloads_used = 4

    later = NOW + timedelta(days=1)
    user.activate_membership("STUDIO", 1, later)
    assert user.membership.plan_key == "STUDIO"
    assert user.membership.started_at == later
    assert user.membership.expires_at == datetime(2026, 4, 16, 12, 0, 0)
    assert user.membership_usage.downloads_used == 0


def test_cancelled_membership_keeps_access_until_expiry():
    user = User(id=UserId.generate(), email="a@example.com")
    user.activate_membership("PRO", 1, NOW)
    user.cancel_membership(NOW)
    assert user.membership.status == MembershipStatus.CANCELLED
    assert user.active_membership(NOW + timedelta(days=10)) is not None
    assert user.active_membership(NOW + timedelta(days=40)) is None

    user.resume_membership(NOW + timedelta(days=1))
    assert user.membership.status == MembershipStatus.ACTIVE


def test_resume_after_expiry_is_rejected():
    user = User(
        id=UserId.generate(),
        email="a@example.com",
        membership=Membership(
            plan_key="PRO",
            status=MembershipStatus.CANCELLED,
            started_at=NOW - timedelta(days=40),
            expires_at=NOW - timedelta(days=1),
        ),
    )
    with pytest.raises(ValidationError):
        user.resume_membership(NOW)


def test_cancel_without_membership_is_rejected():
    user = User(id=UserId.generate(), email="a@example.com")
    with pytest.raises(ValidationError):
        user.cancel_membership(NOW)


def test_grant_products_skips_owned():
    user = User(id=UserId.generate(), email="a@example.com")
    first, second = ProductId.generate(), ProductId.generate()
    assert len(user.grant_products([first], NOW)) == 1
    granted = user.grant_products([first, second], NOW)
    assert [entry.product_id for entry in granted] == [second]
    assert user.owned_product_ids == {first, second}
