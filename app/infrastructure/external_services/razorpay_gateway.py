"""Razorpay REST client for orders and refunds"""

import logging
from typing import Any, Dict, Optional

import httpx

from ...core.config import settings
from ...domain.exceptions import ConfigurationError
from .payment_gateway import PaymentGateway, PaymentGatewayError, RemoteOrder

logger = logging.getLogger(__name__)


class RazorpayGateway(PaymentGateway):
    """Talks to the Razorpay v1 API with basic auth (key id / key secret)"""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.api_url = (api_url or settings.RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout or settings.RAZORPAY_TIMEOUT_SECONDS
        self.transport = transport

    async def create_remote_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Dict[str, str],
    ) -> RemoteOrder:
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        data = await self._post("/orders", payload)
        if not data.get("id"):
            raise PaymentGatewayError("Razorpay order response has no id", payload=data)

        logger.info(f"Razorpay order {data['id']} created for receipt {receipt}")
        return RemoteOrder(
            id=data["id"],
            amount=data.get("amount", amount_minor),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            raw=data,
        )

    async def refund(self, payment_id: str, amount_minor: int) -> Dict[str, Any]:
        data = await self._post(
            f"/payments/{payment_id}/refund",
            {"amount": amount_minor, "speed": "optimum"},
        )
        logger.info(f"Razorpay refund {data.get('id')} requested for payment {payment_id}")
        return data

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.key_id or not self.key_secret:
            raise ConfigurationError("Razorpay credentials not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self.api_url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Razorpay request {path} failed: {e}")
            raise PaymentGatewayError(f"Razorpay unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {"body": response.text}

        if response.status_code >= 400:
            error = data.get("error", {}) if isinstance(data, dict) else {}
            description = error.get("description") or response.text
            logger.error(f"Razorpay API error {response.status_code} on {path}: {description}")
            raise PaymentGatewayError(
                f"Razorpay API error: {response.status_code} - {description}",
                status_code=response.status_code,
                payload=data,
            )
        return data
