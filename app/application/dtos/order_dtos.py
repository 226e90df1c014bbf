"""Order DTOs for API requests and responses"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from ...domain.entities.order import MembershipPurchase, Order


class ProductOrderCreateDTO(BaseModel):
    """Request DTO for a product checkout"""
    product_ids: List[str] = Field(default_factory=list)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    promo_code: Optional[str] = Field(default=None, max_length=64)


class MembershipOrderCreateDTO(BaseModel):
    """Request DTO for a membership checkout"""
    plan_key: str = Field(..., min_length=1, max_length=64)
    months: int = Field(default=1)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class OrderItemDTO(BaseModel):
    product_id: UUID
    title: str
    price: Decimal
    mrp: Decimal
    currency: str
    discount_percent: int


class OrderResponseDTO(BaseModel):
    """Response DTO for order data"""
    id: UUID
    user_id: UUID
    type: str
    status: str
    cancel_reason: Optional[str] = None
    currency: str
    subtotal: Decimal
    tax: Decimal
    promo_code: Optional[str] = None
    promo_discount: Decimal
    convenience_fee: Decimal
    total: Decimal
    items: List[OrderItemDTO] = Field(default_factory=list)
    membership_plan_key: Optional[str] = None
    membership_months: Optional[int] = None
    remote_order_id: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order: Order):
        """Convert domain entity to DTO"""
        data = dict(
            id=order.id.value,
            user_id=order.user_id.value,
            type=order.kind.value,
            status=order.status.value,
            cancel_reason=order.cancel_reason.value if order.cancel_reason else None,
            currency=order.currency,
            subtotal=order.subtotal,
            tax=order.tax,
            promo_code=order.promo_code,
            promo_discount=order.promo_discount,
            convenience_fee=order.convenience_fee,
            total=order.total,
            remote_order_id=order.remote_order_id,
            payment_id=order.payment_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
            completed_at=order.completed_at,
        )
        if isinstance(order.payload, MembershipPurchase):
            data["membership_plan_key"] = order.payload.plan_key
            data["membership_months"] = order.payload.months
        else:
            data["items"] = [
                OrderItemDTO(
                    product_id=item.product_id.value,
                    title=item.title,
                    price=item.price,
                    mrp=item.mrp,
                    currency=item.currency,
                    discount_percent=item.discount_percent,
                )
                for item in order.payload.items
            ]
        return cls(**data)


class CheckoutResponseDTO(BaseModel):
    """What the checkout page needs to open the gateway widget"""
    key_id: str
    razorpay_order_id: Optional[str]
    amount: int  # minor units
    currency: str
    order: OrderResponseDTO

    @classmethod
    def from_entity(cls, order: Order, key_id: str):
        return cls(
            key_id=key_id,
            razorpay_order_id=order.remote_order_id,
            amount=order.amount_minor_units,
            currency=order.currency,
            order=OrderResponseDTO.from_entity(order),
        )


class PaymentVerifyDTO(BaseModel):
    """Request DTO for the client payment confirmation"""
    order_id: UUID
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class PaymentVerifyResponseDTO(BaseModel):
    success: bool = True
    already_processed: bool = False
    order: OrderResponseDTO


class RefundResponseDTO(BaseModel):
    refund_id: Optional[str] = None
    order_id: str
    status: str


class WebhookResponseDTO(BaseModel):
    status: str = "ok"
    message: str
