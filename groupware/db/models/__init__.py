"""Database models for the groupware service."""

from groupware.db.models.user import User
from groupware.db.models.approval import ApprovalDocument, ApprovalLine, ApprovalHistory
from groupware.db.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "ApprovalDocument",
    "ApprovalLine",
    "ApprovalHistory",
    "Notification",
    "NotificationType",
]
