"""Promo code routes"""

from fastapi import APIRouter, Depends

from ...application.use_cases.apply_promo import PreviewPromoUseCase
from ...application.dtos.promo_dtos import PromoApplyDTO, PromoApplyResponseDTO
from ...api.dependencies import get_clock, get_current_user, get_promo_cache, get_unit_of_work
from ...domain.entities.user import User


router = APIRouter(tags=["promos"])


@router.post("/apply", response_model=PromoApplyResponseDTO)
async def apply_promo(
    payload: PromoApplyDTO,
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
    promo_cache = Depends(get_promo_cache),
    clock = Depends(get_clock),
):
    """Preview a promo code against a cart. Nothing is reserved."""
    preview = await PreviewPromoUseCase(unit_of_work, promo_cache, clock).execute(
        payload.code, payload.product_ids, payload.currency
    )
    return PromoApplyResponseDTO(
        code=preview.code,
        subtotal=preview.subtotal,
        discount_amount=preview.discount_amount,
        discounted_subtotal=preview.discounted_subtotal,
        description=preview.description,
    )
