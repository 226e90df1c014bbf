"""Infrastructure ORM Models"""

from .user_model import UserModel, UserProductModel
from .order_model import OrderModel, OrderItemModel
from .catalog_model import ProductModel, MembershipPlanModel
from .promo_code_model import PromoCodeModel

__all__ = [
    'UserModel',
    'UserProductModel',
    'OrderModel',
    'OrderItemModel',
    'ProductModel',
    'MembershipPlanModel',
    'PromoCodeModel',
]
