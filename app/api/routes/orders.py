"""Order routes: checkout and order history"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ...application.use_cases.create_order import (
    CreateMembershipOrderUseCase,
    CreateProductOrderUseCase,
    PaymentGatewayBridge,
)
from ...application.use_cases.get_orders import GetOrderUseCase, ListUserOrdersUseCase
from ...application.dtos.order_dtos import (
    CheckoutResponseDTO,
    MembershipOrderCreateDTO,
    OrderResponseDTO,
    ProductOrderCreateDTO,
)
from ...api.dependencies import (
    get_clock,
    get_current_user,
    get_payment_bridge,
    get_promo_cache,
    get_razorpay_key_id,
    get_unit_of_work,
)
from ...domain.entities.user import User
from ...domain.value_objects.entity_ids import OrderId


router = APIRouter(tags=["orders"])


@router.post("/", response_model=CheckoutResponseDTO, status_code=status.HTTP_201_CREATED)
async def create_product_order(
    order_data: ProductOrderCreateDTO,
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
    bridge: PaymentGatewayBridge = Depends(get_payment_bridge),
    promo_cache = Depends(get_promo_cache),
    clock = Depends(get_clock),
    key_id: str = Depends(get_razorpay_key_id),
):
    """Create a pending order for a cart of products"""
    use_case = CreateProductOrderUseCase(unit_of_work, bridge, promo_cache, clock)
    order = await use_case.execute(
        current_user.id,
        order_data.product_ids,
        currency=order_data.currency,
        promo_code=order_data.promo_code,
    )
    return CheckoutResponseDTO.from_entity(order, key_id)


@router.post("/membership", response_model=CheckoutResponseDTO, status_code=status.HTTP_201_CREATED)
async def create_membership_order(
    order_data: MembershipOrderCreateDTO,
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work),
    bridge: PaymentGatewayBridge = Depends(get_payment_bridge),
    clock = Depends(get_clock),
    key_id: str = Depends(get_razorpay_key_id),
):
    """Create a pending order for a membership plan"""
    use_case = CreateMembershipOrderUseCase(unit_of_work, bridge, clock)
    order = await use_case.execute(
        current_user.id,
        order_data.plan_key,
        months=order_data.months,
        currency=order_data.currency,
    )
    return CheckoutResponseDTO.from_entity(order, key_id)


@router.get("/", response_model=List[OrderResponseDTO])
async def get_user_orders(
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work)
):
    """Get all orders for current user"""
    orders = await ListUserOrdersUseCase(unit_of_work).execute(current_user)
    return [OrderResponseDTO.from_entity(order) for order in orders]


@router.get("/{order_id}", response_model=OrderResponseDTO)
async def get_order(
    order_id: UUID,
    current_user: User = Depends(get_current_user),
    unit_of_work = Depends(get_unit_of_work)
):
    """Get order by ID"""
    order = await GetOrderUseCase(unit_of_work).execute(OrderId(order_id), current_user)
    return OrderResponseDTO.from_entity(order)
