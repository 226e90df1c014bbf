"""API dependencies for DDD architecture"""

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..core.clock import Clock
from ..core.config import settings
from ..core.security import verify_token
from ..domain.entities.user import User
from ..domain.repositories.unit_of_work import IUnitOfWork
from ..domain.value_objects.entity_ids import UserId
from ..infrastructure.cache.promo_cache import PromoCache
from ..infrastructure.external_services.order_notifier import CeleryOrderNotifier, OrderNotifier
from ..infrastructure.external_services.payment_gateway import PaymentGateway
from ..infrastructure.external_services.razorpay_gateway import RazorpayGateway
from ..infrastructure.repositories.unit_of_work_impl import UnitOfWorkImpl
from ..application.use_cases.create_order import PaymentGatewayBridge
from ..application.use_cases.refund_order import RefundService
from ..application.use_cases.settle_order import SettleOrderUseCase


security = HTTPBearer()


def get_unit_of_work() -> IUnitOfWork:
    """Get unit of work"""
    return UnitOfWorkImpl()


def get_clock() -> Clock:
    return Clock()


def get_promo_cache(request: Request) -> PromoCache:
    """Process-wide promo cache created in the app lifespan"""
    return request.app.state.promo_cache


def get_payment_gateway() -> PaymentGateway:
    """Get payment gateway"""
    return RazorpayGateway()


def get_order_notifier() -> OrderNotifier:
    return CeleryOrderNotifier()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
) -> User:
    """Get current authenticated user"""
    subject = verify_token(credentials.credentials)
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    try:
        user_id = UserId(UUID(subject))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    async with unit_of_work:
        user = await unit_of_work.users.get_by_id(user_id)

    if not user or user.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )
    return user


async def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current admin user"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def get_settle_order(
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    promo_cache: PromoCache = Depends(get_promo_cache),
    clock: Clock = Depends(get_clock),
) -> SettleOrderUseCase:
    return SettleOrderUseCase(unit_of_work, promo_cache, clock)


def get_refund_service(
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    clock: Clock = Depends(get_clock),
) -> RefundService:
    return RefundService(unit_of_work, gateway, clock)


def get_payment_bridge(
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    clock: Clock = Depends(get_clock),
) -> PaymentGatewayBridge:
    return PaymentGatewayBridge(unit_of_work, gateway, clock)


def get_razorpay_key_id() -> str:
    return settings.RAZORPAY_KEY_ID
