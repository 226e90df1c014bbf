"""Membership self-service: cancel and resume"""

import logging

from ...core.clock import Clock
from ...domain.entities.user import Membership
from ...domain.exceptions import NotFoundError
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...domain.value_objects.entity_ids import UserId

logger = logging.getLogger(__name__)


class CancelMembershipUseCase:
    """Stop renewal. Access continues until the paid period ends."""

    def __init__(self, unit_of_work: IUnitOfWork, clock: Clock):
        self.unit_of_work = unit_of_work
        self.clock = clock

    async def execute(self, user_id: UserId) -> Membership:
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_for_update(user_id)
            if not user or user.is_deleted:
                raise NotFoundError("User not found")
            user.cancel_membership(self.clock.now())
            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()

        logger.info(f"Membership cancelled for user {user_id}, valid until {user.membership.expires_at}")
        return user.membership


class ResumeMembershipUseCase:

    def __init__(self, unit_of_work: IUnitOfWork, clock: Clock):
        self.unit_of_work = unit_of_work
        self.clock = clock

    async def execute(self, user_id: UserId) -> Membership:
        async with self.unit_of_work:
            user = await self.unit_of_work.users.get_for_update(user_id)
            if not user or user.is_deleted:
                raise NotFoundError("User not found")
            user.resume_membership(self.clock.now())
            await self.unit_of_work.users.update(user)
            await self.unit_of_work.commit()

        logger.info(f"Membership resumed for user {user_id}")
        return user.membership
