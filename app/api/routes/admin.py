"""Admin routes for order support"""

from uuid import UUID

from fastapi import APIRouter, Depends

from ...application.use_cases.get_orders import GetOrderUseCase
from ...application.use_cases.refund_order import RefundOrderUseCase, RefundService
from ...application.dtos.order_dtos import OrderResponseDTO, RefundResponseDTO
from ...api.dependencies import get_clock, get_current_admin_user, get_refund_service, get_unit_of_work
from ...domain.entities.user import User
from ...domain.value_objects.entity_ids import OrderId


router = APIRouter(tags=["admin"])


@router.get("/orders/{order_id}", response_model=OrderResponseDTO)
async def get_order_admin(
    order_id: UUID,
    admin_user: User = Depends(get_current_admin_user),
    unit_of_work = Depends(get_unit_of_work),
):
    """Get any order by ID"""
    order = await GetOrderUseCase(unit_of_work).execute(OrderId(order_id), admin_user)
    return OrderResponseDTO.from_entity(order)


@router.post("/orders/{order_id}/refund", response_model=RefundResponseDTO)
async def refund_order(
    order_id: UUID,
    admin_user: User = Depends(get_current_admin_user),
    unit_of_work = Depends(get_unit_of_work),
    refund_service: RefundService = Depends(get_refund_service),
    clock = Depends(get_clock),
):
    """Revoke access and refund a paid order in full"""
    result = await RefundOrderUseCase(unit_of_work, refund_service, clock).execute(OrderId(order_id))
    return RefundResponseDTO(
        refund_id=result.refund_id,
        order_id=result.order_id,
        status=result.status.value,
    )
