"""Order entity with business logic"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from ..value_objects.money import Money, ZERO, round2, to_minor_units
from ..value_objects.entity_ids import OrderId, ProductId, UserId
from ..enums import CancelReason, OrderKind, OrderStatus
from ..exceptions import InvalidTransitionError
from .catalog import Product

# Tolerance for the amount identity; amounts are stored with 2 decimals.
AMOUNT_EPSILON = Decimal("0.005")


@dataclass(frozen=True)
class OrderItem:
    """Product details frozen at checkout time."""
    product_id: ProductId
    title: str
    price: Decimal
    mrp: Decimal
    currency: str
    discount_percent: int = 0

    @classmethod
    def snapshot(cls, product: Product, currency: str) -> "OrderItem":
        mrp = product.mrp if product.mrp else product.price
        discount_percent = 0
        if mrp > product.price:
            discount_percent = int(((mrp - product.price) / mrp * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return cls(
            product_id=product.id,
            title=product.title,
            price=round2(product.price),
            mrp=round2(mrp),
            currency=product.currency or currency,
            discount_percent=discount_percent,
        )


@dataclass(frozen=True)
class ProductPurchase:
    items: Tuple[OrderItem, ...]

    kind: ClassVar[OrderKind] = OrderKind.PRODUCT

    def __post_init__(self):
        if not self.items:
            raise ValueError("A product order needs at least one item")
        ids = [item.product_id for item in self.items]
        if len(set(ids)) != len(ids):
            raise ValueError("A product order cannot repeat a product")

    @property
    def product_ids(self) -> List[ProductId]:
        return [item.product_id for item in self.items]


@dataclass(frozen=True)
class MembershipPurchase:
    plan_key: str
    months: int

    kind: ClassVar[OrderKind] = OrderKind.MEMBERSHIP

    def __post_init__(self):
        if not self.plan_key:
            raise ValueError("Membership order needs a plan key")
        if not 1 <= self.months <= 12:
            raise ValueError("Membership duration must be between 1 and 12 months")


OrderPayload = Union[ProductPurchase, MembershipPurchase]


@dataclass
class Order:
    id: OrderId
    user_id: UserId
    payload: OrderPayload
    currency: str
    subtotal: Decimal
    total: Decimal
    tax: Decimal = ZERO
    promo_discount: Decimal = ZERO
    convenience_fee: Decimal = ZERO
    promo_code: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    cancel_reason: Optional[CancelReason] = None

    # Payment provider fields
    payment_provider: str = "razorpay"
    remote_order_id: Optional[str] = None
    payment_id: Optional[str] = None
    payment_signature: Optional[str] = None
    payment_raw: Dict[str, Any] = field(default_factory=dict)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.payload, (ProductPurchase, MembershipPurchase)):
            raise ValueError("Order payload must be a product or membership purchase")
        for name in ("subtotal", "tax", "promo_discount", "convenience_fee", "total"):
            if getattr(self, name) < 0:
                raise ValueError(f"Order {name} cannot be negative")
        if self.promo_discount > self.subtotal:
            raise ValueError("Discount cannot exceed subtotal")
        drift = self.subtotal + self.tax - self.promo_discount + self.convenience_fee - self.total
        if abs(drift) >= AMOUNT_EPSILON:
            raise ValueError("Order amounts do not add up")

    @classmethod
    def create_pending(
        cls,
        user_id: UserId,
        payload: OrderPayload,
        currency: str,
        subtotal: Decimal,
        total: Decimal,
        now: datetime,
        tax: Decimal = ZERO,
        promo_discount: Decimal = ZERO,
        convenience_fee: Decimal = ZERO,
        promo_code: Optional[str] = None,
    ) -> "Order":
        """Factory method for a fresh checkout"""
        return cls(
            id=OrderId.generate(),
            user_id=user_id,
            payload=payload,
            currency=currency,
            subtotal=subtotal,
            tax=tax,
            promo_discount=promo_discount,
            convenience_fee=convenience_fee,
            total=total,
            promo_code=promo_code,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @property
    def kind(self) -> OrderKind:
        return self.payload.kind

    @property
    def is_membership(self) -> bool:
        return isinstance(self.payload, MembershipPurchase)

    @property
    def product_ids(self) -> List[ProductId]:
        if isinstance(self.payload, ProductPurchase):
            return self.payload.product_ids
        return []

    @property
    def amount(self) -> Money:
        return Money(self.total, self.currency)

    @property
    def amount_minor_units(self) -> int:
        return to_minor_units(self.total)

    def _require_status(self, *allowed: OrderStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(self.status)

    def attach_remote_order(self, remote_order_id: str, now: datetime) -> None:
        self._require_status(OrderStatus.PENDING)
        self.remote_order_id = remote_order_id
        self.updated_at = now

    def mark_as_paid(
        self,
        payment_id: str,
        payment_signature: Optional[str],
        payment_raw: Optional[Dict[str, Any]],
        now: datetime,
    ) -> None:
        """Business logic: mark order as paid"""
        self._require_status(OrderStatus.PENDING)
        self.status = OrderStatus.PAID
        self.payment_id = payment_id
        self.payment_signature = payment_signature
        self.payment_raw = dict(payment_raw or {})
        self.completed_at = now
        self.updated_at = now

    def mark_failed(
        self,
        reason: CancelReason,
        now: datetime,
        payment_id: Optional[str] = None,
        payment_raw: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._require_status(OrderStatus.PENDING)
        self.status = OrderStatus.FAILED
        self.cancel_reason = reason
        if payment_id:
            self.payment_id = payment_id
        if payment_raw is not None:
            self.payment_raw = dict(payment_raw)
        self.completed_at = now
        self.updated_at = now

    def cancel(self, reason: CancelReason, now: datetime) -> None:
        """Business logic: cancel order"""
        self._require_status(OrderStatus.PENDING)
        self.status = OrderStatus.CANCELLED
        self.cancel_reason = reason
        self.completed_at = now
        self.updated_at = now

    def start_refund(self, now: datetime) -> None:
        self._require_status(OrderStatus.PAID)
        self.status = OrderStatus.REFUND_INITIATED
        self.payment_raw = {**self.payment_raw, "refund_initiated_at": now.isoformat()}
        self.updated_at = now

    def mark_refunded(self, refund: Dict[str, Any], now: datetime) -> None:
        self._require_status(OrderStatus.PAID, OrderStatus.REFUND_INITIATED)
        self.status = OrderStatus.REFUNDED
        self.payment_raw = {
            **self.payment_raw,
            "refund_completed_at": now.isoformat(),
            "refund": refund,
        }
        self.updated_at = now

    def rollback_refund(self, error: str, now: datetime) -> None:
        """Undo ``start_refund`` after the gateway rejected the refund call"""
        self._require_status(OrderStatus.REFUND_INITIATED)
        self.status = OrderStatus.PAID
        self.record_refund_error(error, now)

    def record_refund_error(self, error: str, now: datetime) -> None:
        errors = list(self.payment_raw.get("refund_errors", []))
        errors.append({"at": now.isoformat(), "message": error})
        self.payment_raw = {**self.payment_raw, "refund_errors": errors}
        self.updated_at = now

    def record_refund_request(self, refund: Dict[str, Any], now: datetime) -> None:
        self.payment_raw = {**self.payment_raw, "refund_request": refund}
        self.updated_at = now

    @property
    def has_compensation_refund(self) -> bool:
        return self.status == OrderStatus.FAILED and "refund_request" in self.payment_raw

    def record_compensation_refund(self, refund: Dict[str, Any], now: datetime) -> None:
        """Stamp a completed refund on a failed order; the status stays FAILED"""
        self._require_status(OrderStatus.FAILED)
        self.payment_raw = {
            **self.payment_raw,
            "refund_completed_at": now.isoformat(),
            "refund": refund,
        }
        self.updated_at = now
