"""Entitlement queries"""

from ...core.clock import Clock
from ...domain.exceptions import NotFoundError
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import ProductId, UserId
from ...application.dtos.user_dtos import (
    EntitlementsDto,
    MembershipDto,
    MembershipPlanDto,
    OwnedProductDto,
    UsageDto,
)


class GetUserEntitlementsUseCase:

    def __init__(self, unit_of_work: IUnitOfWork, clock: Clock):
        self.unit_of_work = unit_of_work
        self.clock = clock

    async def execute(self, user_id: UserId) -> EntitlementsDto:
        """Owned products, membership state and the current usage window"""
        now = self.clock.now()
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_by_id(user_id)
            if not user or user.is_deleted:
                raise NotFoundError("User not found")

            active = user.active_membership(now)
            plan = None
            if active:
                plan = await self.unit_of_work.catalog.get_active_plan(active.plan_key)
                if user.membership_usage.roll(now):
                    await self.unit_of_work.users.update(user)

        membership = user.membership
        return EntitlementsDto(
            user_id=user.id.value,
            owned_products=[
                OwnedProductDto(
                    product_id=item.product_id.value,
                    acquired_at=item.acquired_at,
                    source=item.source.value,
                )
                for item in user.owned_products
            ],
            membership=MembershipDto(
                plan_key=membership.plan_key,
                status=membership.status.value,
                started_at=membership.started_at,
                expires_at=membership.expires_at,
                is_active=active is not None,
                plan=MembershipPlanDto(
                    key=plan.key,
                    name=plan.name,
                    max_downloads_per_month=plan.max_downloads_per_month,
                    allowed_formats=plan.allowed_formats,
                    commercial_use=plan.commercial_use,
                    remix_requests_per_month=plan.remix_requests_per_month,
                ) if plan else None,
            ),
            usage=UsageDto(
                period_start=user.membership_usage.period_start,
                downloads_used=user.membership_usage.downloads_used,
                remix_requests_used=user.membership_usage.remix_requests_used,
            ),
        )


async def user_has_purchased_product(unit_of_work: IUnitOfWork, user_id: UserId, product_id: ProductId) -> bool:
    async with unit_of_work:
        user = await unit_of_work.users.get_by_id(user_id)
    return bool(user) and not user.is_deleted and user.owns(product_id)
