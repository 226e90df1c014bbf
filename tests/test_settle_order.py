from dataclasses import replace
from datetime import datetime

import pytest

from app.application.use_cases.create_order import (
    CreateMembershipOrderUseCase,
    CreateProductOrderUseCase,
    PaymentGatewayBridge,
)
from app.application.use_cases.settle_order import SettleOrderUseCase
from app.domain.enums import CancelReason, MembershipStatus, OrderStatus
from app.domain.exceptions import (
    InvalidTransitionError,
    InvalidUserStateError,
    NotFoundError,
    PromoLimitExceededError,
)
from app.domain.value_objects.entity_ids import OrderId, UserId
from app.infrastructure.orm import PromoCodeModel, UserModel
from app.infrastructure.repositories.order_repository_impl import OrderRepositoryImpl

from conftest import make_plan, make_product, make_promo, make_user


@pytest.fixture
def checkout(uow, gateway, promo_cache, clock):
    return CreateProductOrderUseCase(uow, PaymentGatewayBridge(uow, gateway, clock), promo_cache, clock)


@pytest.fixture
def settle(uow, promo_cache, clock):
    return SettleOrderUseCase(uow, promo_cache, clock)


async def test_settlement_grants_products_once(session, checkout, settle, uow):
    user = make_user(session)
    product = make_product(session, slug="beat")
    order = await checkout.execute(UserId(user.id), ["beat"])

    first = await settle.execute(order.id, "pay_1", "sig", {"source": "test"})
    second = await settle.execute(order.id, "pay_1", "sig", {"source": "test"})

    assert first.newly_settled is True
    assert first.order.status == OrderStatus.PAID
    assert second.newly_settled is False

    async with uow:
        buyer = await uow.users.get_by_id(UserId(user.id))
        stored = await uow.orders.get_by_id(order.id)
    assert [owned.product_id.value for owned in buyer.owned_products] == [product.id]
    assert stored.payment_id == "pay_1"
    assert stored.payment_raw == {"source": "test"}


async def test_settling_unknown_or_cancelled_order(session, checkout, settle, uow, clock):
    with pytest.raises(NotFoundError):
        await settle.execute(OrderId.generate(), "pay_x")

    user = make_user(session)
    make_product(session, slug="beat")
    order = await checkout.execute(UserId(user.id), ["beat"])
    async with uow:
        cancelled = await uow.orders.get_by_id(order.id)
        cancelled.cancel(CancelReason.USER_CANCELLED, clock.now())
        await uow.orders.update_if_status(cancelled, OrderStatus.PENDING)

    with pytest.raises(InvalidTransitionError):
        await settle.execute(order.id, "pay_x")


async def test_promo_usage_limit_allows_exactly_n_settlements(session, checkout, settle, uow, promo_cache):
    make_promo(session, code="LIMITED", value="10", usage_limit=2)
    make_product(session, slug="beat")
    buyers = [make_user(session) for _ in range(3)]

    # All three checkouts pass while the code still shows 0 uses.
    orders = [await checkout.execute(UserId(buyer.id), ["beat"], promo_code="LIMITED") for buyer in buyers]

    await settle.execute(orders[0].id, "pay_1")
    await settle.execute(orders[1].id, "pay_2")
    with pytest.raises(PromoLimitExceededError):
        await settle.execute(orders[2].id, "pay_3")

    async with uow:
        third = await uow.orders.get_by_id(orders[2].id)
        third_buyer = await uow.users.get_by_id(UserId(buyers[2].id))
        promo = await uow.promo_codes.get_active_by_code("LIMITED")
    assert third.status == OrderStatus.PENDING
    assert third_buyer.owned_products == []
    assert promo.used_count == 2
    assert "LIMITED" not in promo_cache


async def test_settlement_evicts_cached_promo(session, settle, checkout, promo_cache):
    make_promo(session, code="SAVE10", value="10")
    make_product(session, slug="beat")
    user = make_user(session)
    order = await checkout.execute(UserId(user.id), ["beat"], promo_code="SAVE10")
    assert "SAVE10" in promo_cache

    await settle.execute(order.id, "pay_1")

    assert "SAVE10" not in promo_cache
    session.expire_all()
    assert session.query(PromoCodeModel).filter_by(code="SAVE10").one().used_count == 1


async def test_banned_user_settlement_rolls_back(session, checkout, settle, uow):
    user = make_user(session)
    make_product(session, slug="beat")
    order = await checkout.execute(UserId(user.id), ["beat"])

    session.query(UserModel).filter_by(id=user.id).update({"is_banned": True})
    session.commit()

    with pytest.raises(InvalidUserStateError):
        await settle.execute(order.id, "pay_1")

    async with uow:
        stored = await uow.orders.get_by_id(order.id)
    assert stored.status == OrderStatus.PENDING
    assert stored.payment_id is None


async def test_membership_settlement_activates_plan(session, uow, gateway, promo_cache, clock, settle):
    user = make_user(session)
    make_plan(session, key="PRO")
    checkout = CreateMembershipOrderUseCase(uow, PaymentGatewayBridge(uow, gateway, clock), clock)
    order = await checkout.execute(UserId(user.id), "PRO", months=1)

    await settle.execute(order.id, "pay_1")

    async with uow:
        member = await uow.users.get_by_id(UserId(user.id))
    assert member.membership.plan_key == "PRO"
    assert member.membership.status == MembershipStatus.ACTIVE
    assert member.membership.expires_at == datetime(2026, 4, 15, 12, 0, 0)
    assert member.membership_usage.period_start == clock.now()


async def test_membership_settlement_extends_expiry_once(session, uow, gateway, clock, settle):
    user = make_user(session)
    make_plan(session, key="PRO")
    checkout = CreateMembershipOrderUseCase(uow, PaymentGatewayBridge(uow, gateway, clock), clock)
    order = await checkout.execute(UserId(user.id), "PRO", months=2)

    first = await settle.execute(order.id, "pay_1")
    second = await settle.execute(order.id, "pay_1")

    assert (first.newly_settled, second.newly_settled) == (True, False)
    async with uow:
        member = await uow.users.get_by_id(UserId(user.id))
    assert member.membership.expires_at == datetime(2026, 5, 15, 12, 0, 0)


async def test_settlement_that_loses_the_race_grants_nothing(session, checkout, settle, uow, monkeypatch):
    user = make_user(session)
    make_product(session, slug="beat")
    order = await checkout.execute(UserId(user.id), ["beat"])
    original = OrderRepositoryImpl.update_if_status

    async def settled_elsewhere_first(self, candidate, expected):
        if expected == OrderStatus.PENDING and candidate.status == OrderStatus.PAID:
            rival = replace(candidate, payment_id="pay_rival", payment_raw={"source": "rival"})
            assert await original(self, rival, expected)
        return await original(self, candidate, expected)

    monkeypatch.setattr(OrderRepositoryImpl, "update_if_status", settled_elsewhere_first)
    result = await settle.execute(order.id, "pay_1")
    monkeypatch.undo()

    assert result.newly_settled is False
    assert result.order.status == OrderStatus.PAID
    assert result.order.payment_id == "pay_rival"
    async with uow:
        buyer = await uow.users.get_by_id(UserId(user.id))
        stored = await uow.orders.get_by_id(order.id)
    assert buyer.owned_products == []
    assert stored.payment_id == "pay_rival"
