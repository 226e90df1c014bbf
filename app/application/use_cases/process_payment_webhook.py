"""Process payment webhook use case"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from ...core.clock import Clock
from ...core.security import hmac_sha256_hex, signatures_match
from ...domain.entities.order import Order
from ...domain.enums import CancelReason, OrderStatus
from ...domain.exceptions import (
    ConfigurationError,
    WebhookSignatureError,
)
from ...domain.repositories.unit_of_work import IUnitOfWork
from ...infrastructure.external_services.order_notifier import OrderNotifier
from .refund_order import RefundService
from .settle_order import SettleOrderUseCase

logger = logging.getLogger(__name__)

WEBHOOK_SOURCE = "razorpay-webhook"


@dataclass(frozen=True)
class WebhookOutcome:
    """What happened to a webhook delivery. Always acknowledged with 200."""
    message: str
    event: Optional[str] = None
    order_id: Optional[str] = None


class ProcessGatewayWebhookUseCase:

    def __init__(
        self,
        unit_of_work: IUnitOfWork,
        settle_order: SettleOrderUseCase,
        refund_service: RefundService,
        clock: Clock,
        webhook_secret: Optional[str],
        notifier: Optional[OrderNotifier] = None,
    ):
        self.unit_of_work = unit_of_work
        self.settle_order = settle_order
        self.refund_service = refund_service
        self.clock = clock
        self.webhook_secret = webhook_secret
        self.notifier = notifier

    async def execute(self, raw_body: bytes, signature: Optional[str]) -> WebhookOutcome:
        """Verify and dispatch a gateway event.

        Raises only for configuration and signature problems, and for
        database errors so that the gateway retries the delivery.
        """
        if not self.webhook_secret:
            logger.error("Webhook secret missing")
            raise ConfigurationError("Webhook not configured")
        if not signature:
            raise WebhookSignatureError("Signature missing")

        expected = hmac_sha256_hex(self.webhook_secret, raw_body)
        if not signatures_match(expected, signature):
            logger.warning("Invalid webhook signature")
            raise WebhookSignatureError()

        try:
            payload = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return WebhookOutcome("Invalid payload")
        if not isinstance(payload, dict):
            return WebhookOutcome("Invalid payload")

        event = payload.get("event")
        entities = payload.get("payload") or {}

        if event in ("payment.captured", "payment.failed"):
            payment = (entities.get("payment") or {}).get("entity")
            if not payment:
                return WebhookOutcome("Invalid payment payload", event)
            return await self._handle_payment_event(event, payment)

        if event == "refund.processed":
            refund = (entities.get("refund") or {}).get("entity")
            if not refund:
                return WebhookOutcome("Invalid refund payload", event)
            return await self._handle_refund_event(event, refund)

        logger.info(f"Ignoring webhook event: {event}")
        return WebhookOutcome("Event ignored", event)

    async def _handle_payment_event(self, event: str, payment: Dict[str, Any]) -> WebhookOutcome:
        remote_order_id = payment.get("order_id")
        payment_id = payment.get("id")

        async with self.unit_of_work:
            order = None
            if remote_order_id:
                order = await self.unit_of_work.orders.get_by_remote_order_id(remote_order_id)
        if not order:
            logger.warning(f"Webhook {event}: no order for gateway order {remote_order_id}")
            return WebhookOutcome("Order not found", event)

        order_id = str(order.id)
        if order.status == OrderStatus.PAID and event == "payment.captured":
            return WebhookOutcome("Already processed", event, order_id)
        if order.status == OrderStatus.CANCELLED:
            return WebhookOutcome("Order cancelled earlier", event, order_id)

        payment_raw = {"source": WEBHOOK_SOURCE, "event": event, "payload": payment}

        if event == "payment.failed":
            if order.status == OrderStatus.PENDING:
                await self._mark_failed(order, CancelReason.PAYMENT_FAILED, payment_id, payment_raw)
            return WebhookOutcome("Payment failed handled", event, order_id)

        if order.status != OrderStatus.PENDING:
            return WebhookOutcome("Order not pending", event, order_id)

        try:
            result = await self.settle_order.execute(
                order.id,
                payment_id=payment_id,
                payment_signature=WEBHOOK_SOURCE,
                payment_raw=payment_raw,
            )
        except SQLAlchemyError:
            logger.exception(f"Database error while settling order {order_id}")
            raise
        except Exception as e:
            logger.exception(f"Delivery failed for order {order_id}: {e}")
            return await self._compensate(order, payment_id, payment_raw, e)

        if result.newly_settled:
            self._notify(result.order)
        return WebhookOutcome("Payment captured & delivered", event, order_id)

    async def _mark_failed(
        self,
        order: Order,
        reason: CancelReason,
        payment_id: Optional[str],
        payment_raw: Dict[str, Any],
    ) -> Optional[Order]:
        """Conditional PENDING -> FAILED. Returns the failed order, or None if it had moved on."""
        async with self.unit_of_work:
            current = await self.unit_of_work.orders.get_by_id(order.id)
            if not current or current.status != OrderStatus.PENDING:
                return None
            current.mark_failed(reason, self.clock.now(), payment_id=payment_id, payment_raw=payment_raw)
            if not await self.unit_of_work.orders.update_if_status(current, OrderStatus.PENDING):
                return None
            await self.unit_of_work.commit()
        logger.info(f"Order {order.id} marked failed ({reason.value})")
        return current

    async def _compensate(
        self,
        order: Order,
        payment_id: Optional[str],
        payment_raw: Dict[str, Any],
        error: Exception,
    ) -> WebhookOutcome:
        order_id = str(order.id)
        failed_raw = {**payment_raw, "settlement_error": str(error)}
        failed = await self._mark_failed(order, CancelReason.SYSTEM_CANCELLED, payment_id, failed_raw)
        if not failed:
            logger.critical(
                f"Order {order_id} could not be moved to FAILED after a captured payment "
                f"{payment_id}; manual refund required"
            )
            return WebhookOutcome("Delivery failed, manual intervention required", "payment.captured", order_id)

        try:
            await self.refund_service.refund_failed_settlement(failed)
        except Exception as e:
            logger.critical(
                f"Compensation refund failed for order {order_id}, payment {payment_id}: {e}"
            )
            return WebhookOutcome("Delivery failed, refund failed", "payment.captured", order_id)

        return WebhookOutcome("Delivery failed, refund initiated", "payment.captured", order_id)

    async def _handle_refund_event(self, event: str, refund: Dict[str, Any]) -> WebhookOutcome:
        payment_id = refund.get("payment_id")
        if not payment_id:
            return WebhookOutcome("Invalid refund payload", event)

        async with self.unit_of_work:
            order = await self.unit_of_work.orders.get_by_payment_id(payment_id)
            if not order:
                logger.warning(f"Refund webhook: order not found for payment {payment_id}")
                return WebhookOutcome("Order not found", event)

            order_id = str(order.id)
            if order.status == OrderStatus.REFUNDED:
                return WebhookOutcome("Already refunded", event, order_id)

            now = self.clock.now()
            if order.status in (OrderStatus.PAID, OrderStatus.REFUND_INITIATED):
                expected = order.status
                order.mark_refunded(refund, now)
                message = "Refund completed (status updated)"
            elif order.has_compensation_refund:
                expected = order.status
                order.record_compensation_refund(refund, now)
                message = "Refund completed for failed order"
            else:
                return WebhookOutcome("Refund ignored", event, order_id)

            if not await self.unit_of_work.orders.update_if_status(order, expected):
                return WebhookOutcome("Refund ignored", event, order_id)
            await self.unit_of_work.commit()

        logger.info(f"Refund {refund.get('id')} processed for order {order_id}")
        return WebhookOutcome(message, event, order_id)

    def _notify(self, order: Order) -> None:
        if not self.notifier:
            return
        try:
            self.notifier.schedule_order_complete(order.id)
        except Exception:
            logger.exception(f"Could not schedule confirmation email for order {order.id}")
