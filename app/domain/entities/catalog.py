"""Catalog entities (read-only from the order core's point of view)"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from ..value_objects.entity_ids import ProductId
from ..enums import ProductVisibility


@dataclass(frozen=True)
class Product:
    id: ProductId
    slug: str
    title: str
    price: Decimal
    currency: str
    mrp: Optional[Decimal] = None
    visibility: ProductVisibility = ProductVisibility.PUBLIC


@dataclass(frozen=True)
class MembershipPlan:
    key: str
    name: str
    price: Decimal
    currency: str = "INR"
    max_downloads_per_month: Optional[int] = None  # None = unlimited
    allowed_formats: List[str] = field(default_factory=list)
    commercial_use: bool = False
    remix_requests_per_month: int = 0
    is_active: bool = True

    @staticmethod
    def normalize_key(key: str) -> str:
        return (key or "").strip().upper()
