"""User repository implementation using existing models"""

from typing import Optional

from sqlalchemy.orm import Session

from ...domain.repositories.user_repository import IUserRepository
from ...domain.entities.user import Membership, MembershipUsage, OwnedProduct, User
from ...domain.value_objects.entity_ids import ProductId, UserId
from ...domain.enums import EntitlementSource, MembershipStatus, UserRole
from ..orm.user_model import UserModel, UserProductModel


class UserRepositoryImpl(IUserRepository):
    """Repository implementation for User aggregate"""

    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        return self.session.query(UserModel).populate_existing()

    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        """Get user by ID"""
        model = self._query().filter(UserModel.id == user_id.value).first()
        return self._map_to_entity(model) if model else None

    async def get_for_update(self, user_id: UserId) -> Optional[User]:
        model = (
            self._query()
            .filter(UserModel.id == user_id.value)
            .with_for_update()
            .first()
        )
        return self._map_to_entity(model) if model else None

    async def update(self, user: User) -> User:
        """Update an existing user"""
        existing = self._query().filter(UserModel.id == user.id.value).first()
        if existing:
            self._update_model_from_entity(existing, user)
            self.session.flush()
        return user

    def _update_model_from_entity(self, model: UserModel, user: User) -> None:
        """Update ORM model from domain entity"""
        model.email = user.email
        model.name = user.name
        model.role = user.role.value
        model.is_deleted = user.is_deleted
        model.is_banned = user.is_banned

        membership = user.membership
        model.membership_plan_key = membership.plan_key
        model.membership_status = membership.status.value
        model.membership_started_at = membership.started_at
        model.membership_expires_at = membership.expires_at

        usage = user.membership_usage
        model.usage_period_start = usage.period_start
        model.downloads_used = usage.downloads_used
        model.remix_requests_used = usage.remix_requests_used

        if user.updated_at is not None:
            model.updated_at = user.updated_at

        # Owned products: drop revoked rows, append new ones
        wanted = {item.product_id.value: item for item in user.owned_products}
        model.owned_products = [row for row in model.owned_products if row.product_id in wanted]
        present = {row.product_id for row in model.owned_products}
        for product_id, item in wanted.items():
            if product_id not in present:
                model.owned_products.append(UserProductModel(
                    product_id=product_id,
                    source=item.source.value,
                    acquired_at=item.acquired_at,
                ))

    def _map_to_entity(self, model: UserModel) -> User:
        """Map ORM model to domain entity"""
        return User(
            id=UserId(model.id),
            email=model.email,
            name=model.name,
            role=UserRole(model.role),
            is_deleted=model.is_deleted,
            is_banned=model.is_banned,
            owned_products=[
                OwnedProduct(
                    product_id=ProductId(row.product_id),
                    acquired_at=row.acquired_at,
                    source=EntitlementSource(row.source),
                )
                for row in model.owned_products
            ],
            membership=Membership(
                plan_key=model.membership_plan_key,
                status=MembershipStatus(model.membership_status),
                started_at=model.membership_started_at,
                expires_at=model.membership_expires_at,
            ),
            membership_usage=MembershipUsage(
                period_start=model.usage_period_start,
                downloads_used=model.downloads_used,
                remix_requests_used=model.remix_requests_used,
            ),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
