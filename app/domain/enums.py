"""
Domain Enums - Business domain enumerations
"""

from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUND_INITIATED = "refund_initiated"
    REFUNDED = "refunded"


class CancelReason(str, Enum):
    PAYMENT_TIMEOUT = "payment_timeout"
    PAYMENT_FAILED = "payment_failed"
    UNDERPAID = "underpaid"
    MIN_PAYABLE_VIOLATION = "min_payable_violation"
    USER_CANCELLED = "user_cancelled"
    ADMIN_CANCELLED = "admin_cancelled"
    SYSTEM_CANCELLED = "system_cancelled"


class OrderKind(str, Enum):
    PRODUCT = "product_purchase"
    MEMBERSHIP = "membership_purchase"


class MembershipStatus(str, Enum):
    NONE = "none"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class EntitlementSource(str, Enum):
    ORDER = "order"
    MEMBERSHIP = "membership"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ProductVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    DRAFT = "draft"
