"""Services for the groupware application."""

from groupware.services.directory import UserDirectory, UserIdentity
from groupware.services.notifications import NotificationService

__all__ = [
    "UserDirectory",
    "UserIdentity",
    "NotificationService",
]
