from datetime import timedelta

from app.application.use_cases.cancel_idle_orders import IdleOrderReaper
from app.application.use_cases.create_order import CreateProductOrderUseCase, PaymentGatewayBridge
from app.db.database import SessionLocal
from app.domain.enums import CancelReason, OrderStatus
from app.domain.value_objects.entity_ids import UserId

from conftest import make_product, make_user


async def test_cancels_only_stale_unpaid_orders(session, uow, gateway, promo_cache, clock):
    checkout = CreateProductOrderUseCase(uow, PaymentGatewayBridge(uow, gateway, clock), promo_cache, clock)
    user = make_user(session)
    for slug in ("old", "old-with-payment", "fresh"):
        make_product(session, slug=slug)

    stale = await checkout.execute(UserId(user.id), ["old"])
    with_payment = await checkout.execute(UserId(user.id), ["old-with-payment"])
    async with uow:
        current = await uow.orders.get_by_id(with_payment.id)
        current.payment_id = "pay_late"
        await uow.orders.update_if_status(current, OrderStatus.PENDING)

    clock.advance(timedelta(minutes=3))
    fresh = await checkout.execute(UserId(user.id), ["fresh"])

    reaper = IdleOrderReaper(SessionLocal, clock, stale_after=timedelta(minutes=2))
    assert await reaper.run_once() == 1

    async with uow:
        statuses = {
            order.id: (order.status, order.cancel_reason)
            for order in await uow.orders.get_by_user_id(UserId(user.id))
        }
    assert statuses[stale.id] == (OrderStatus.CANCELLED, CancelReason.PAYMENT_TIMEOUT)
    assert statuses[with_payment.id] == (OrderStatus.PENDING, None)
    assert statuses[fresh.id] == (OrderStatus.PENDING, None)


async def test_overlapping_sweep_is_skipped(clock):
    reaper = IdleOrderReaper(SessionLocal, clock)
    reaper._running.acquire()
    try:
        assert await reaper.run_once() == 0
    finally:
        reaper._running.release()


async def test_start_and_stop(clock):
    reaper = IdleOrderReaper(SessionLocal, clock)
    reaper.start(interval=3600)
    assert reaper._task is not None
    await reaper.stop()
    assert reaper._task is None
