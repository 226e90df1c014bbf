"""Promo code repository interface"""

from abc import ABC, abstractmethod
from typing import Optional

from ..entities.promo_code import PromoCode


class IPromoCodeRepository(ABC):

    @abstractmethod
    async def get_active_by_code(self, code: str) -> Optional[PromoCode]:
        pass

    @abstractmethod
    async def try_increment_usage(self, code: str) -> bool:
        """Atomically bump ``used_count`` unless the usage limit is reached"""
        pass
