"""Celery tasks for outbound notification delivery."""

from typing import Dict, Any
import logging

import httpx
from celery import Celery, shared_task

from groupware.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

celery_app = Celery(
    'groupware',
    broker=settings.celery_broker,
    backend=settings.celery_backend,
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_routes={
        'groupware.workers.notification_tasks.deliver_webhook': {'queue': 'notifications'},
    },
    task_default_queue='default',
)


@shared_task(bind=True, max_retries=settings.webhook_max_retries, default_retry_delay=60)
def deliver_webhook(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    POST a notification payload to the configured webhook.

    Args:
        url: Webhook endpoint
        payload: JSON body

    Returns:
        Delivery summary with the response status code
    """
    try:
        response = httpx.post(url, json=payload, timeout=settings.webhook_timeout)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning(f"Webhook delivery to {url} failed: {exc}")
        raise self.retry(exc=exc)

    return {"status": "sent", "status_code": response.status_code}
