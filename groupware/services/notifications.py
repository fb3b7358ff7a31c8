"""Notification service.

Handles:
- In-app notification records (the inbox)
- Optional webhook fan-out through the Celery worker
"""

import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from jinja2 import Template
from sqlalchemy.orm import Session

from groupware.core.config import Settings, get_settings
from groupware.db.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Creates and reads notification records for users.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def notify(
        self,
        user_id: int,
        type: str,
        title: str,
        content: str,
        related_id: Optional[int] = None,
        link: Optional[str] = None,
    ) -> Notification:
        """
        Store a notification for a user and forward it to the webhook, if configured.

        Returns:
            The stored notification
        """
        notification = Notification(
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            content=content,
            related_id=related_id,
            link=link,
            is_read=False,
        )
        self.db.add(notification)
        self.db.commit()

        if self.settings.notification_webhook_url:
            self._enqueue_webhook(notification)

        return notification

    def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        limit: int = 100,
    ) -> List[Notification]:
        """Newest first."""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)  # noqa: E712
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def mark_as_read(self, notification_id: int, user_id: int) -> bool:
        """Mark one of the user's notifications read. False if it does not exist for them."""
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        ).first()
        if notification is None:
            return False

        notification.is_read = True
        self.db.commit()
        return True

    def mark_all_as_read(self, user_id: int) -> int:
        """Returns the number of notifications updated."""
        updated = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        ).update({Notification.is_read: True}, synchronize_session=False)
        self.db.commit()
        return updated

    def build_webhook_payload(self, notification: Notification) -> Dict[str, Any]:
        """Render the configured Jinja2 template, falling back to the default payload."""
        context = {
            "event": f"notification.{notification.type}",
            "timestamp": datetime.utcnow().isoformat(),
            "user_id": notification.user_id,
            "title": notification.title,
            "content": notification.content,
            "related_id": notification.related_id,
            "link": f"{self.settings.app_base_url}{notification.link}" if notification.link else None,
        }

        if self.settings.notification_webhook_template:
            try:
                template = Template(self.settings.notification_webhook_template)
                return json.loads(template.render(**context))
            except Exception as e:
                logger.warning(f"Failed to render webhook template: {e}")

        return context

    def _enqueue_webhook(self, notification: Notification) -> None:
        from groupware.workers.notification_tasks import deliver_webhook

        payload = self.build_webhook_payload(notification)
        try:
            deliver_webhook.delay(self.settings.notification_webhook_url, payload)
        except Exception:
            logger.exception(f"Failed to enqueue webhook for notification {notification.id}")
