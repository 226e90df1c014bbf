import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from .celery_app import celery_app
from .core.config import settings
from .domain.value_objects.entity_ids import OrderId
from .infrastructure.repositories.unit_of_work_impl import UnitOfWorkImpl
from .infrastructure.external_services.email_service import EmailService
from .application.use_cases.send_order_email import SendOrderCompleteEmailUseCase

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_order_complete_email(self, order_id: str):
    """Background task to send the order confirmation email."""
    use_case = SendOrderCompleteEmailUseCase(
        UnitOfWorkImpl(),
        EmailService(),
        support_email=settings.SUPPORT_EMAIL,
    )
    try:
        sent = asyncio.run(use_case.execute(OrderId.from_str(order_id)))
    except SQLAlchemyError as exc:
        logger.error(f"Database error while emailing order {order_id}: {exc}")
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    if sent:
        logger.info(f"Order confirmation sent for order {order_id}")
    return sent
