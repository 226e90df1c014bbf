"""Celery worker for side effects that must not block checkout"""

from celery import Celery
from .core.config import settings

celery_app = Celery(
    "trackvault",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=24 * 3600,
    task_default_queue="default",
    task_routes={
        "app.tasks.send_order_complete_email": {"queue": "emails"},
    },
    # Confirmation emails are idempotent per order, so late acks are safe.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_soft_time_limit=60,
    task_time_limit=90,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)
