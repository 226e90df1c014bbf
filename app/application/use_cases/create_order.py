"""Create Order Use Cases: product checkout and membership checkout"""

import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from ...core.clock import Clock
from ...core.config import settings
from ...domain.entities.catalog import MembershipPlan, Product
from ...domain.entities.order import MembershipPurchase, Order, OrderItem, ProductPurchase
from ...domain.entities.promo_code import PromoCode
from ...domain.entities.user import User
from ...domain.enums import CancelReason, OrderStatus
from ...domain.exceptions import (
    CurrencyMismatchError,
    DuplicatePurchaseError,
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    ProductsUnavailableError,
    PromoInvalidError,
    ValidationError,
)
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.services import pricing
from ...domain.value_objects.entity_ids import ProductId, UserId
from ...domain.value_objects.money import ZERO, round2
from ...infrastructure.cache.promo_cache import PromoCache
from ...infrastructure.external_services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


def split_identifiers(identifiers: List[str]) -> Tuple[List[str], List[ProductId], List[str]]:
    """Normalise raw ids/slugs, dropping blanks and repeats.

    Returns ``(requested, ids, slugs)`` where ``requested`` keeps the
    caller's order with UUIDs in canonical form.
    """
    requested: List[str] = []
    ids: List[ProductId] = []
    slugs: List[str] = []
    for raw in identifiers:
        value = str(raw or "").strip()
        if not value:
            continue
        try:
            product_id = ProductId(UUID(value))
        except ValueError:
            product_id = None
        key = str(product_id) if product_id else value
        if key in requested:
            continue
        requested.append(key)
        if product_id:
            ids.append(product_id)
        else:
            slugs.append(value)
    return requested, ids, slugs


async def load_purchaser(unit_of_work: IUnitOfWork, user_id: UserId) -> User:
    user = await unit_of_work.users.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    user.ensure_can_purchase()
    return user


async def resolve_promo(
    unit_of_work: IUnitOfWork,
    promo_cache: PromoCache,
    code: str,
) -> Optional[PromoCode]:
    promo = promo_cache.get(code)
    if promo is None:
        promo = await unit_of_work.promo_codes.get_active_by_code(code)
        if promo is not None:
            promo_cache.put(promo)
    return promo


class PaymentGatewayBridge:
    """Opens the gateway-side order for a freshly persisted pending order"""

    def __init__(self, unit_of_work: IUnitOfWork, gateway: PaymentGateway, clock: Clock):
        self.unit_of_work = unit_of_work
        self.gateway = gateway
        self.clock = clock

    async def open_remote_order(self, order: Order) -> Order:
        notes = {
            "order_id": str(order.id),
            "user_id": str(order.user_id),
            "type": order.kind.value,
        }
        if isinstance(order.payload, MembershipPurchase):
            notes["plan"] = order.payload.plan_key

        remote = await self.gateway.create_remote_order(
            amount_minor=order.amount_minor_units,
            currency=order.currency,
            receipt=str(order.id),
            notes=notes,
        )

        async with self.unit_of_work:
            order.attach_remote_order(remote.id, self.clock.now())
            if not await self.unit_of_work.orders.update_if_status(order, OrderStatus.PENDING):
                current = await self.unit_of_work.orders.get_by_id(order.id)
                raise InvalidTransitionError(current.status if current else order.status)
            await self.unit_of_work.commit()

        logger.info(f"Order {order.id} linked to gateway order {remote.id}")
        return order


class _CheckoutUseCase:

    def __init__(self, unit_of_work: IUnitOfWork, bridge: PaymentGatewayBridge, clock: Clock):
        self.unit_of_work = unit_of_work
        self.bridge = bridge
        self.clock = clock

    async def _open_or_cancel(self, order: Order) -> Order:
        try:
            return await self.bridge.open_remote_order(order)
        except InvalidTransitionError:
            raise
        except Exception as e:
            logger.error(f"Gateway order creation failed for order {order.id}: {e}")
            await self._cancel(order)
            raise ExternalServiceError("Failed to initiate payment. Please try again.") from e

    async def _cancel(self, order: Order) -> None:
        async with self.unit_of_work:
            current = await self.unit_of_work.orders.get_by_id(order.id)
            if not current or current.status != OrderStatus.PENDING:
                return
            current.cancel(CancelReason.SYSTEM_CANCELLED, self.clock.now())
            await self.unit_of_work.orders.update_if_status(current, OrderStatus.PENDING)
            await self.unit_of_work.commit()
        order.status = current.status
        order.cancel_reason = current.cancel_reason


class CreateProductOrderUseCase(_CheckoutUseCase):
    """Price a cart of products and open a pending order for it"""

    def __init__(
        self,
        unit_of_work: IUnitOfWork,
        bridge: PaymentGatewayBridge,
        promo_cache: PromoCache,
        clock: Clock,
        max_items: int = settings.MAX_ITEMS_PER_ORDER,
        default_currency: str = settings.DEFAULT_CURRENCY,
    ):
        super().__init__(unit_of_work, bridge, clock)
        self.promo_cache = promo_cache
        self.max_items = max_items
        self.default_currency = default_currency

    async def execute(
        self,
        user_id: UserId,
        product_ids: List[str],
        currency: Optional[str] = None,
        promo_code: Optional[str] = None,
    ) -> Order:
        if not product_ids:
            raise ValidationError("No products selected")
        if len(product_ids) > self.max_items:
            raise ValidationError(f"Too many items in one order (max {self.max_items})")

        requested, ids, slugs = split_identifiers(product_ids)
        if not requested:
            raise ValidationError("No products selected")
        currency = (currency or self.default_currency).upper()
        code = PromoCode.normalize(promo_code) if promo_code else None

        async with self.unit_of_work:
            user = await load_purchaser(self.unit_of_work, user_id)
            await self._reject_owned(user, ids)

            products = await self.unit_of_work.catalog.find_public_products(ids, slugs)
            missing = pricing.missing_identifiers(requested, products)
            if missing:
                raise ProductsUnavailableError(
                    [{"id": identifier, "title": "Product not available"} for identifier in missing]
                )
            products = self._in_request_order(products, requested)
            await self._reject_owned(user, [product.id for product in products])

            pricing.validate_catalog_prices(products, currency)
            subtotal = pricing.sum_prices(products)

            discount = ZERO
            if code:
                promo = await resolve_promo(self.unit_of_work, self.promo_cache, code)
                if promo is None:
                    raise PromoInvalidError()
                discount = pricing.compute_promo_discount(promo, subtotal, self.clock.now())

            totals = pricing.finalize_totals(subtotal, discount)
            now = self.clock.now()
            order = Order.create_pending(
                user_id=user.id,
                payload=ProductPurchase(
                    items=tuple(OrderItem.snapshot(product, currency) for product in products)
                ),
                currency=currency,
                subtotal=totals.subtotal,
                tax=totals.tax,
                promo_discount=totals.discount,
                convenience_fee=totals.convenience_fee,
                total=totals.total,
                promo_code=code,
                now=now,
            )
            await self.unit_of_work.orders.add(order)
            await self.unit_of_work.commit()

        logger.info(
            f"Pending order {order.id} created for user {user_id}: "
            f"{len(products)} item(s), total {order.amount}"
        )
        return await self._open_or_cancel(order)

    async def _reject_owned(self, user: User, ids: List[ProductId]) -> None:
        already = [product_id for product_id in ids if user.owns(product_id)]
        if not already:
            return
        titles: Dict[ProductId, str] = await self.unit_of_work.catalog.get_product_titles(already)
        raise DuplicatePurchaseError([
            {"id": str(product_id), "title": titles.get(product_id, "Untitled")}
            for product_id in already
        ])

    @staticmethod
    def _in_request_order(products: List[Product], requested: List[str]) -> List[Product]:
        position = {identifier: index for index, identifier in enumerate(requested)}
        unique: Dict[ProductId, Product] = {}
        for product in products:
            unique.setdefault(product.id, product)

        def rank(product: Product) -> int:
            return min(
                position.get(str(product.id), len(requested)),
                position.get(product.slug, len(requested)),
            )

        return sorted(unique.values(), key=rank)


class CreateMembershipOrderUseCase(_CheckoutUseCase):
    """Open a pending order for N months of a membership plan"""

    def __init__(
        self,
        unit_of_work: IUnitOfWork,
        bridge: PaymentGatewayBridge,
        clock: Clock,
        max_months: int = settings.MAX_MEMBERSHIP_MONTHS,
    ):
        super().__init__(unit_of_work, bridge, clock)
        self.max_months = max_months

    async def execute(
        self,
        user_id: UserId,
        plan_key: str,
        months: int = 1,
        currency: Optional[str] = None,
    ) -> Order:
        key = MembershipPlan.normalize_key(plan_key)
        if not key:
            raise ValidationError("Membership plan is required")
        months = max(1, min(int(months or 1), self.max_months))

        async with self.unit_of_work:
            user = await load_purchaser(self.unit_of_work, user_id)

            plan = await self.unit_of_work.catalog.get_active_plan(key)
            if not plan:
                raise NotFoundError("Membership plan not found")

            currency = (currency or plan.currency).upper()
            if currency != plan.currency:
                raise CurrencyMismatchError(
                    f"Currency mismatch: plan is billed in {plan.currency}"
                )
            if plan.price is None or not plan.price.is_finite() or plan.price < 0:
                raise ValidationError("Invalid plan pricing")

            totals = pricing.finalize_totals(round2(plan.price * months))
            order = Order.create_pending(
                user_id=user.id,
                payload=MembershipPurchase(plan_key=plan.key, months=months),
                currency=currency,
                subtotal=totals.subtotal,
                tax=totals.tax,
                convenience_fee=totals.convenience_fee,
                total=totals.total,
                now=self.clock.now(),
            )
            await self.unit_of_work.orders.add(order)
            await self.unit_of_work.commit()

        logger.info(f"Pending membership order {order.id}: {plan.key} x {months} month(s)")
        return await self._open_or_cancel(order)
