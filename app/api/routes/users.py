"""User routes"""

from uuid import UUID

from fastapi import APIRouter, Depends

from ...application.use_cases.get_user_entitlements import (
    GetUserEntitlementsUseCase,
    user_has_purchased_product,
)
from ...application.dtos.user_dtos import EntitlementsDto
from ...api.dependencies import get_clock, get_current_user, get_unit_of_work
from ...domain.entities.user import User
from ...domain.value_objects.entity_ids import ProductId

router = APIRouter()


@router.get("/me/entitlements", response_model=EntitlementsDto)
async def get_my_entitlements(
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
    clock = Depends(get_clock),
):
    """Get owned products and membership of the current user"""
    return await GetUserEntitlementsUseCase(unit_of_work, clock).execute(current_user.id)


@router.get("/me/products/{product_id}/access")
async def check_product_access(
    product_id: UUID,
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
):
    """Whether the current user owns a product"""
    owned = await user_has_purchased_product(unit_of_work, current_user.id, ProductId(product_id))
    return {"product_id": str(product_id), "purchased": owned}
