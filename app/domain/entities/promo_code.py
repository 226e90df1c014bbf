"""Promo code entity"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..enums import DiscountType
from ..value_objects.money import ZERO


@dataclass(frozen=True)
class PromoCode:
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    max_discount: Optional[Decimal] = None  # None or 0 => no cap
    min_order_amount: Optional[Decimal] = None
    usage_limit: Optional[int] = None  # None or 0 => unlimited
    used_count: int = 0
    expires_at: Optional[datetime] = None
    is_active: bool = True
    description: str = ""

    @staticmethod
    def normalize(code: str) -> str:
        return (code or "").strip().upper()

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    @property
    def is_exhausted(self) -> bool:
        return bool(self.usage_limit) and self.used_count >= self.usage_limit

    def raw_discount(self, subtotal: Decimal) -> Decimal:
        """Discount before clamping to the order subtotal"""
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = subtotal * self.discount_value / Decimal(100)
            if self.max_discount:
                discount = min(discount, self.max_discount)
            return discount
        if self.discount_type == DiscountType.FIXED:
            return self.discount_value
        return ZERO
