"""Promo code DTOs"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class PromoApplyDTO(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    product_ids: List[str] = Field(default_factory=list)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class PromoApplyResponseDTO(BaseModel):
    code: str
    subtotal: Decimal
    discount_amount: Decimal
    discounted_subtotal: Decimal
    description: str = ""
