"""Catalog repository implementation (read-only)"""

from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...domain.entities.catalog import MembershipPlan, Product
from ...domain.repositories.catalog_repository import ICatalogRepository
from ...domain.value_objects.entity_ids import ProductId
from ...domain.enums import ProductVisibility
from ..orm.catalog_model import MembershipPlanModel, ProductModel


class CatalogRepositoryImpl(ICatalogRepository):

    def __init__(self, session: Session):
        self.session = session

    async def find_public_products(self, ids: List[ProductId], slugs: List[str]) -> List[Product]:
        conditions = []
        if ids:
            conditions.append(ProductModel.id.in_([product_id.value for product_id in ids]))
        if slugs:
            conditions.append(ProductModel.slug.in_(slugs))
        if not conditions:
            return []

        models = (
            self.session.query(ProductModel)
            .filter(or_(*conditions), ProductModel.visibility == ProductVisibility.PUBLIC.value)
            .all()
        )
        return [self._map_product(model) for model in models]

    async def get_product_titles(self, ids: List[ProductId]) -> Dict[ProductId, str]:
        if not ids:
            return {}
        rows = (
            self.session.query(ProductModel.id, ProductModel.title)
            .filter(ProductModel.id.in_([product_id.value for product_id in ids]))
            .all()
        )
        return {ProductId(row.id): row.title for row in rows}

    async def get_active_plan(self, key: str) -> Optional[MembershipPlan]:
        model = (
            self.session.query(MembershipPlanModel)
            .filter(MembershipPlanModel.key == key, MembershipPlanModel.is_active.is_(True))
            .first()
        )
        return self._map_plan(model) if model else None

    def _map_product(self, model: ProductModel) -> Product:
        return Product(
            id=ProductId(model.id),
            slug=model.slug,
            title=model.title,
            price=model.price,
            currency=model.currency,
            mrp=model.mrp,
            visibility=ProductVisibility(model.visibility),
        )

    def _map_plan(self, model: MembershipPlanModel) -> MembershipPlan:
        return MembershipPlan(
            key=model.key,
            name=model.name,
            price=model.price,
            currency=model.currency,
            max_downloads_per_month=model.max_downloads_per_month,
            allowed_formats=list(model.allowed_formats or []),
            commercial_use=model.commercial_use,
            remix_requests_per_month=model.remix_requests_per_month,
            is_active=model.is_active,
        )
