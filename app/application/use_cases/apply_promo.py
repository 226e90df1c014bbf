"""Promo preview use case (no side effects)"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from ...core.clock import Clock
from ...core.config import settings
from ...domain.entities.promo_code import PromoCode
from ...domain.exceptions import PromoInvalidError, ValidationError
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.services import pricing
from ...domain.value_objects.money import round2
from ...infrastructure.cache.promo_cache import PromoCache
from .create_order import resolve_promo, split_identifiers


@dataclass(frozen=True)
class PromoPreview:
    code: str
    subtotal: Decimal
    discount_amount: Decimal
    discounted_subtotal: Decimal
    description: str = ""


class PreviewPromoUseCase:
    """Show what a code would take off a cart before checkout.

    Pricing is recomputed from public catalog prices; unknown products are
    simply left out of the subtotal.
    """

    def __init__(
        self,
        unit_of_work: IUnitOfWork,
        promo_cache: PromoCache,
        clock: Clock,
        default_currency: str = settings.DEFAULT_CURRENCY,
    ):
        self.unit_of_work = unit_of_work
        self.promo_cache = promo_cache
        self.clock = clock
        self.default_currency = default_currency

    async def execute(self, code: str, product_ids: List[str], currency: Optional[str] = None) -> PromoPreview:
        normalized = PromoCode.normalize(code)
        if not normalized:
            raise ValidationError("Promo code is required")
        _, ids, slugs = split_identifiers(product_ids or [])
        if not ids and not slugs:
            raise ValidationError("No products selected")
        currency = (currency or self.default_currency).upper()

        async with self.unit_of_work:
            products = await self.unit_of_work.catalog.find_public_products(ids, slugs)
            unique = {product.id: product for product in products}
            products = list(unique.values())
            pricing.validate_catalog_prices(products, currency)
            subtotal = pricing.sum_prices(products)

            promo = await resolve_promo(self.unit_of_work, self.promo_cache, normalized)
            if promo is None:
                raise PromoInvalidError()
            discount = pricing.compute_promo_discount(promo, subtotal, self.clock.now())

        return PromoPreview(
            code=promo.code,
            subtotal=subtotal,
            discount_amount=discount,
            discounted_subtotal=round2(subtotal - discount),
            description=promo.description,
        )
