from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.domain.entities.catalog import Product
from app.domain.entities.promo_code import PromoCode
from app.domain.enums import DiscountType
from app.domain.exceptions import (
    CurrencyMismatchError,
    PromoExpiredError,
    PromoInvalidError,
    PromoMinOrderNotMetError,
    PromoNotApplicableError,
    ValidationError,
)
from app.domain.services import pricing
from app.domain.value_objects.billing_period import add_months, same_calendar_month
from app.domain.value_objects.entity_ids import ProductId
from app.domain.value_objects.money import round2, to_minor_units

NOW = datetime(2026, 3, 15, 12, 0, 0)


def product(price, currency="INR", slug="track"):
    return Product(
        id=ProductId.generate(),
        slug=slug,
        title=slug,
        price=Decimal(price) if price is not None else None,
        currency=currency,
    )


def promo(**fields):
    defaults = dict(code="SAVE", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"))
    defaults.update(fields)
    return PromoCode(**defaults)


def test_round2_and_minor_units_round_half_up():
    assert round2("10.005") == Decimal("10.01")
    assert round2(Decimal("2.344")) == Decimal("2.34")
    assert to_minor_units(Decimal("199.99")) == 19999
    assert to_minor_units("0.015") == 2


def test_sum_prices_rounds_to_cents():
    assert pricing.sum_prices([product("10.10"), product("20.205")]) == Decimal("30.31")


def test_validate_catalog_prices_rejects_other_currency():
    with pytest.raises(CurrencyMismatchError):
        pricing.validate_catalog_prices([product("10", currency="USD")], "INR")


def test_validate_catalog_prices_rejects_negative_or_missing_price():
    with pytest.raises(ValidationError):
        pricing.validate_catalog_prices([product("-1")], "INR")
    with pytest.raises(ValidationError):
        pricing.validate_catalog_prices([product(None)], "INR")


def test_percentage_discount_respects_cap():
    code = promo(discount_value=Decimal("50"), max_discount=Decimal("30"))
    assert pricing.compute_promo_discount(code, Decimal("100.00"), NOW) == Decimal("30.00")


def test_zero_cap_means_uncapped():
    code = promo(discount_value=Decimal("50"), max_discount=Decimal("0"))
    assert pricing.compute_promo_discount(code, Decimal("100.00"), NOW) == Decimal("50.00")


def test_fixed_discount_clamped_to_subtotal():
    code = promo(discount_type=DiscountType.FIXED, discount_value=Decimal("500"))
    assert pricing.compute_promo_discount(code, Decimal("120.00"), NOW) == Decimal("120.00")


def test_promo_rejections():
    with pytest.raises(PromoInvalidError):
        pricing.compute_promo_discount(None, Decimal("10"), NOW)
    with pytest.raises(PromoInvalidError):
        pricing.compute_promo_discount(promo(is_active=False), Decimal("10"), NOW)
    with pytest.raises(PromoExpiredError):
        pricing.compute_promo_discount(promo(expires_at=NOW - timedelta(seconds=1)), Decimal("10"), NOW)
    with pytest.raises(PromoInvalidError):
        pricing.compute_promo_discount(promo(usage_limit=3, used_count=3), Decimal("10"), NOW)
    with pytest.raises(PromoMinOrderNotMetError):
        pricing.compute_promo_discount(promo(min_order_amount=Decimal("50")), Decimal("49.99"), NOW)


def test_promo_granting_nothing_is_not_applicable():
    with pytest.raises(PromoNotApplicableError):
        pricing.compute_promo_discount(promo(discount_value=Decimal("0")), Decimal("100"), NOW)


def test_unlimited_promo_ignores_used_count():
    code = promo(usage_limit=0, used_count=10_000)
    assert pricing.compute_promo_discount(code, Decimal("10.00"), NOW) == Decimal("1.00")


def test_finalize_totals_plain():
    totals = pricing.finalize_totals(Decimal("300.00"), Decimal("30.00"))
    assert totals.total == Decimal("270.00")
    assert totals.convenience_fee == Decimal("0.00")


def test_fully_discounted_order_pays_minimum_fee():
    totals = pricing.finalize_totals(Decimal("100.00"), Decimal("100.00"))
    assert totals.total == pricing.MINIMUM_PAYABLE
    assert totals.convenience_fee == pricing.MINIMUM_PAYABLE
    assert totals.subtotal - totals.discount + totals.convenience_fee == totals.total


def test_missing_identifiers_matches_ids_and_slugs():
    first = product("10", slug="alpha")
    requested = [str(first.id), "alpha", "ghost"]
    assert pricing.missing_identifiers(requested, [first]) == ["ghost"]


def test_add_months_clamps_day():
    assert add_months(datetime(2026, 1, 31, 8, 0), 1) == datetime(2026, 2, 28, 8, 0)
    assert add_months(datetime(2026, 11, 30), 3) == datetime(2027, 2, 28)
    assert add_months(datetime(2028, 1, 29), 1) == datetime(2028, 2, 29)


def test_same_calendar_month():
    assert same_calendar_month(datetime(2026, 3, 1), datetime(2026, 3, 31, 23, 59))
    assert not same_calendar_month(datetime(2026, 3, 31), datetime(2026, 4, 1))
    assert not same_calendar_month(datetime(2025, 3, 15), datetime(2026, 3, 15))
