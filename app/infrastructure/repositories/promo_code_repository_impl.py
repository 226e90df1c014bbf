"""Promo code repository implementation"""

from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ...domain.entities.promo_code import PromoCode
from ...domain.repositories.promo_code_repository import IPromoCodeRepository
from ...domain.enums import DiscountType
from ..orm.promo_code_model import PromoCodeModel


class PromoCodeRepositoryImpl(IPromoCodeRepository):

    def __init__(self, session: Session):
        self.session = session

    async def get_active_by_code(self, code: str) -> Optional[PromoCode]:
        model = (
            self.session.query(PromoCodeModel)
            .populate_existing()
            .filter(
                PromoCodeModel.code == PromoCode.normalize(code),
                PromoCodeModel.is_active.is_(True),
            )
            .first()
        )
        return self._map_to_entity(model) if model else None

    async def try_increment_usage(self, code: str) -> bool:
        result = self.session.execute(
            update(PromoCodeModel)
            .where(
                PromoCodeModel.code == PromoCode.normalize(code),
                or_(
                    PromoCodeModel.usage_limit.is_(None),
                    PromoCodeModel.usage_limit == 0,
                    PromoCodeModel.used_count < PromoCodeModel.usage_limit,
                ),
            )
            .values(used_count=PromoCodeModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _map_to_entity(self, model: PromoCodeModel) -> PromoCode:
        return PromoCode(
            code=model.code,
            discount_type=DiscountType(model.discount_type),
            discount_value=model.discount_value,
            max_discount=model.max_discount,
            min_order_amount=model.min_order_amount,
            usage_limit=model.usage_limit,
            used_count=model.used_count,
            expires_at=model.expires_at,
            is_active=model.is_active,
            description=model.description or "",
        )
