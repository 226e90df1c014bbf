"""Domain errors.

Each error carries the HTTP status it maps to and optional structured
details that the API layer merges into the response body.
"""

from typing import Any, Dict, List, Optional


class CommerceError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)


class ValidationError(CommerceError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(CommerceError):
    status_code = 404
    default_message = "Not found"


class ForbiddenError(CommerceError):
    status_code = 403
    default_message = "Forbidden"


class ConflictError(CommerceError):
    status_code = 409
    default_message = "Conflict"


class DuplicatePurchaseError(ConflictError):
    status_code = 400
    default_message = "Duplicate purchase detected. Some items are already in your library."

    def __init__(self, items: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message, alreadyPurchased=items)
        self.items = items


class ProductsUnavailableError(ValidationError):
    default_message = "One or more products are not purchasable"

    def __init__(self, items: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message, notPurchasable=items)
        self.items = items


class CurrencyMismatchError(ValidationError):
    default_message = "Currency mismatch"


class PromoInvalidError(ValidationError):
    default_message = "Invalid or expired promo code"


class PromoExpiredError(ValidationError):
    default_message = "Promo code has expired"


class PromoMinOrderNotMetError(ValidationError):
    default_message = "Minimum order amount not met for this promo code"


class PromoNotApplicableError(ValidationError):
    default_message = "Promo code cannot be applied"


class PromoLimitExceededError(ConflictError):
    default_message = "Promo code usage limit exceeded"


class InvalidTransitionError(ConflictError):
    default_message = "Order cannot change status"

    def __init__(self, current_status, message: Optional[str] = None):
        status_value = getattr(current_status, "value", current_status)
        super().__init__(
            message or f"Cannot process order with status: {status_value}",
            status=status_value,
        )
        self.current_status = current_status


class InvalidUserStateError(ConflictError):
    default_message = "Invalid user state"


class PaymentSignatureError(ValidationError):
    default_message = "Invalid payment signature"


class WebhookSignatureError(ValidationError):
    default_message = "Invalid signature"


class ExternalServiceError(CommerceError):
    status_code = 502
    default_message = "Payment provider unavailable"


class ConfigurationError(CommerceError):
    status_code = 500
    default_message = "Service not configured"


class InternalInvariantError(CommerceError):
    status_code = 500
    default_message = "Internal error"
