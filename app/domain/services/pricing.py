"""Checkout pricing rules.

Pure functions: the use cases feed them catalog data and promo codes and
persist whatever comes out.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from ..entities.catalog import Product
from ..entities.promo_code import PromoCode
from ..exceptions import (
    CurrencyMismatchError,
    InternalInvariantError,
    PromoExpiredError,
    PromoInvalidError,
    PromoMinOrderNotMetError,
    PromoNotApplicableError,
    ValidationError,
)
from ..value_objects.money import ZERO, round2

# Orders are never free: a fully discounted cart still pays one unit.
MINIMUM_PAYABLE = Decimal("1.00")
CROSS_CHECK_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    convenience_fee: Decimal
    total: Decimal


def validate_catalog_prices(products: Iterable[Product], currency: str) -> None:
    for product in products:
        price = product.price
        if price is None or not price.is_finite() or price < 0:
            raise ValidationError("Invalid product pricing")
        if product.currency and product.currency != currency:
            raise CurrencyMismatchError(
                f"Currency mismatch: expected {currency}, found {product.currency}"
            )


def sum_prices(products: Iterable[Product]) -> Decimal:
    return round2(sum((p.price for p in products), ZERO))


def compute_promo_discount(promo: Optional[PromoCode], subtotal: Decimal, now: datetime) -> Decimal:
    """Discount a promo grants on ``subtotal``, clamped to ``[0, subtotal]``.

    A code that ends up granting nothing is rejected rather than silently
    applied as a zero discount.
    """
    if promo is None or not promo.is_active:
        raise PromoInvalidError()
    if promo.is_expired(now):
        raise PromoExpiredError()
    if promo.is_exhausted:
        raise PromoInvalidError("Promo usage limit reached")
    if promo.min_order_amount and subtotal < promo.min_order_amount:
        raise PromoMinOrderNotMetError(
            f"Minimum order amount for this code is {promo.min_order_amount}"
        )

    discount = min(promo.raw_discount(subtotal), subtotal)
    discount = round2(max(discount, ZERO))
    if discount <= 0:
        raise PromoNotApplicableError()
    return discount


def finalize_totals(subtotal: Decimal, discount: Decimal = ZERO, tax: Decimal = ZERO) -> OrderTotals:
    subtotal = round2(subtotal)
    tax = round2(tax)
    discount = round2(discount)

    total = round2(subtotal + tax - discount)
    convenience_fee = ZERO
    if total <= 0:
        convenience_fee = MINIMUM_PAYABLE
        total = MINIMUM_PAYABLE

    recomputed = round2(max(ZERO, subtotal + tax - discount) + convenience_fee)
    if abs(recomputed - total) > CROSS_CHECK_TOLERANCE:
        raise InternalInvariantError("Order calculation mismatch")

    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        discount=discount,
        convenience_fee=convenience_fee,
        total=total,
    )


def missing_identifiers(requested: List[str], products: Iterable[Product]) -> List[str]:
    found = set()
    for product in products:
        found.add(str(product.id))
        found.add(product.slug)
    return [identifier for identifier in requested if identifier not in found]
