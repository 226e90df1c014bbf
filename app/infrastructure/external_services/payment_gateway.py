"""Payment gateway port used by checkout and refunds"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


class PaymentGatewayError(Exception):
    """The gateway rejected the call or could not be reached"""

    def __init__(self, message: str, status_code: int = None, payload: Dict[str, Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


@dataclass(frozen=True)
class RemoteOrder:
    id: str
    amount: int
    currency: str
    receipt: str
    raw: Dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    async def create_remote_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Dict[str, str],
    ) -> RemoteOrder:
        pass

    @abstractmethod
    async def refund(self, payment_id: str, amount_minor: int) -> Dict[str, Any]:
        pass
