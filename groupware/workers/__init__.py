"""Celery workers for the groupware service."""

from groupware.workers.notification_tasks import celery_app, deliver_webhook

__all__ = [
    "celery_app",
    "deliver_webhook",
]
