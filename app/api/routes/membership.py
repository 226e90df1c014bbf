"""Membership self-service routes"""

from fastapi import APIRouter, Depends

from ...application.use_cases.membership_actions import (
    CancelMembershipUseCase,
    ResumeMembershipUseCase,
)
from ...application.dtos.user_dtos import MembershipDto
from ...api.dependencies import get_clock, get_current_user, get_unit_of_work
from ...domain.entities.user import Membership, User


router = APIRouter(tags=["membership"])


def _to_dto(membership: Membership, now) -> MembershipDto:
    return MembershipDto(
        plan_key=membership.plan_key,
        status=membership.status.value,
        started_at=membership.started_at,
        expires_at=membership.expires_at,
        is_active=membership.expires_at is not None and membership.expires_at > now,
    )


@router.post("/cancel", response_model=MembershipDto)
async def cancel_membership(
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
    clock = Depends(get_clock),
):
    """Cancel renewal; the membership stays usable until it expires"""
    membership = await CancelMembershipUseCase(unit_of_work, clock).execute(current_user.id)
    return _to_dto(membership, clock.now())


@router.post("/resume", response_model=MembershipDto)
async def resume_membership(
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
    clock = Depends(get_clock),
):
    """Resume a cancelled membership that has not expired yet"""
    membership = await ResumeMembershipUseCase(unit_of_work, clock).execute(current_user.id)
    return _to_dto(membership, clock.now())
