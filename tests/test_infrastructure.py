import json
from datetime import datetime
from decimal import Decimal

import httpx
import pytest

from app.application.use_cases.create_order import CreateProductOrderUseCase, PaymentGatewayBridge
from app.application.use_cases.send_order_email import SendOrderCompleteEmailUseCase
from app.application.use_cases.settle_order import SettleOrderUseCase
from app.domain.entities.order import MembershipPurchase, Order, OrderItem, ProductPurchase
from app.domain.entities.promo_code import PromoCode
from app.domain.entities.user import User
from app.domain.enums import DiscountType
from app.domain.exceptions import ConfigurationError
from app.domain.value_objects.entity_ids import OrderId, ProductId, UserId
from app.infrastructure.cache.promo_cache import PromoCache
from app.infrastructure.external_services.email_templates import (
    order_complete_variables,
    render_order_complete_email,
    render_template,
)
from app.infrastructure.external_services.payment_gateway import PaymentGatewayError
from app.infrastructure.external_services.razorpay_gateway import RazorpayGateway

from conftest import make_product, make_user

NOW = datetime(2026, 3, 15, 12, 0, 0)


def promo(code):
    return PromoCode(code=code, discount_type=DiscountType.FIXED, discount_value=Decimal("5"))


class FakeTimer:

    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


# Promo cache

def test_promo_cache_normalises_and_expires():
    timer = FakeTimer()
    cache = PromoCache(ttl_seconds=10, max_entries=5, timer=timer)
    cache.put(promo("WELCOME"))

    assert cache.get(" welcome ").code == "WELCOME"
    timer.value = 9.9
    assert "WELCOME" in cache
    timer.value = 10
    assert cache.get("WELCOME") is None
    assert len(cache) == 0


def test_promo_cache_evicts_oldest_when_full():
    cache = PromoCache(ttl_seconds=60, max_entries=2, timer=FakeTimer())
    cache.put(promo("A"))
    cache.put(promo("B"))
    cache.put(promo("C"))

    assert "A" not in cache
    assert "B" in cache and "C" in cache


def test_promo_cache_evict_and_clear():
    cache = PromoCache()
    cache.put(promo("A"))
    cache.put(promo("B"))
    cache.evict("a")
    assert "A" not in cache
    cache.clear()
    assert len(cache) == 0


# Templates

def _order(payload, **fields):
    return Order(
        id=OrderId.generate(),
        user_id=UserId.generate(),
        payload=payload,
        currency="INR",
        subtotal=Decimal("499.00"),
        total=Decimal("499.00"),
        created_at=NOW,
        completed_at=NOW,
        **fields,
    )


def test_render_template_lookup_rules():
    text = render_template("Hi {{ name }}, {{TOTAL}} {{missing}}!", {"NAME": "Asha", "TOTAL": 5})
    assert text == "Hi Asha, 5 !"
    assert render_template(None, {}) == ""


def test_product_order_email():
    item = OrderItem(ProductId.generate(), "Night Drive", Decimal("499.00"), Decimal("499.00"), "INR")
    order = _order(ProductPurchase(items=(item,)))
    user = User(id=order.user_id, email="asha@example.com", name="Asha")

    subject, html = render_order_complete_email(order, user, support_email="help@trackvault.app")

    assert subject == f"Your order #{str(order.id).upper()} is complete"
    assert "Thanks for your purchase, Asha!" in html
    assert "INR 499.00" in html
    assert "help@trackvault.app" in html
    assert "{{" not in html


def test_membership_order_email_uses_plan_name():
    order = _order(MembershipPurchase(plan_key="PRO", months=3))
    user = User(id=order.user_id, email="asha@example.com")

    subject, html = render_order_complete_email(order, user, plan_name="Pro Plan")

    assert subject.startswith("Welcome to Pro Plan")
    assert "Hi Customer" in html
    assert "3 month(s)" in html


class RecordingEmailService:

    def __init__(self):
        self.sent = []

    async def send_email(self, to_email, subject, html_content, text_content=None):
        self.sent.append((to_email, subject))
        return True


async def test_order_email_only_for_paid_orders(session, uow, gateway, promo_cache, clock):
    user = make_user(session, email="buyer@example.com")
    product = make_product(session)
    order = await CreateProductOrderUseCase(
        uow, PaymentGatewayBridge(uow, gateway, clock), promo_cache, clock
    ).execute(UserId(user.id), [product.slug])

    email_service = RecordingEmailService()
    use_case = SendOrderCompleteEmailUseCase(uow, email_service, support_email="help@trackvault.app")
    assert await use_case.execute(order.id) is False

    await SettleOrderUseCase(uow, promo_cache, clock).execute(order.id, "pay_1")
    assert await use_case.execute(order.id) is True
    assert email_service.sent[0][0] == "buyer@example.com"
    assert await use_case.execute(OrderId.generate()) is False


# Razorpay client

def _gateway(handler):
    return RazorpayGateway(
        key_id="rzp_key",
        key_secret="rzp_secret",
        api_url="https://api.razorpay.test/v1",
        transport=httpx.MockTransport(handler),
    )


async def test_create_remote_order_posts_minor_units():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_abc", "amount": 19950, "currency": "INR", "receipt": "r1"})

    remote = await _gateway(handler).create_remote_order(19950, "INR", "r1", {"type": "product_purchase"})

    assert remote.id == "order_abc"
    assert seen["url"] == "https://api.razorpay.test/v1/orders"
    assert seen["auth"].startswith("Basic ")
    assert seen["body"] == {"amount": 19950, "currency": "INR", "receipt": "r1", "notes": {"type": "product_purchase"}}


async def test_refund_sends_amount_and_speed():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "rfnd_1", "payment_id": "pay_1"})

    refund = await _gateway(handler).refund("pay_1", 500)

    assert refund["id"] == "rfnd_1"
    assert seen["path"] == "/v1/payments/pay_1/refund"
    assert seen["body"] == {"amount": 500, "speed": "optimum"}


async def test_api_error_raises_gateway_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"description": "The amount must be atleast INR 1.00"}})

    with pytest.raises(PaymentGatewayError) as exc:
        await _gateway(handler).create_remote_order(10, "INR", "r1", {})
    assert exc.value.status_code == 400
    assert "atleast INR 1.00" in str(exc.value)


async def test_network_error_raises_gateway_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PaymentGatewayError):
        await _gateway(handler).refund("pay_1", 100)


async def test_missing_credentials():
    gateway = RazorpayGateway(key_id="rzp_key", transport=httpx.MockTransport(lambda r: None))
    gateway.key_secret = None
    with pytest.raises(ConfigurationError):
        await gateway.refund("pay_1", 100)


def test_order_variables_without_timestamps():
    item = OrderItem(ProductId.generate(), "Night Drive", Decimal("499.00"), Decimal("499.00"), "INR")
    order = _order(ProductPurchase(items=(item,)))
    order.created_at = None
    order.completed_at = None
    user = User(id=order.user_id, email="asha@example.com")

    variables = order_complete_variables(order, user)

    assert variables["ORDER_CREATED_AT"] == ""
    assert variables["ORDER_DATE"] == ""
    assert variables["ORDER_TOTAL"] == "499.00"
