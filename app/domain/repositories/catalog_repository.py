"""Catalog repository interface"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..entities.catalog import MembershipPlan, Product
from ..value_objects.entity_ids import ProductId


class ICatalogRepository(ABC):

    @abstractmethod
    async def find_public_products(self, ids: List[ProductId], slugs: List[str]) -> List[Product]:
        """Products matching any id or slug, restricted to public visibility"""
        pass

    @abstractmethod
    async def get_product_titles(self, ids: List[ProductId]) -> Dict[ProductId, str]:
        pass

    @abstractmethod
    async def get_active_plan(self, key: str) -> Optional[MembershipPlan]:
        pass
