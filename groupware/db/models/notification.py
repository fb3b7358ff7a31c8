"""In-app notification records."""

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship

from groupware.db.base import Base


class NotificationType(str, Enum):
    """Kinds of notification shown in the inbox."""
    APPROVAL = "approval"
    FEEDBACK = "feedback"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)  # recipient

    type = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)

    related_id = Column(Integer, nullable=True)  # related document id
    link = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User")

    def __repr__(self) -> str:
        return f"<Notification {self.type} to {self.user_id}>"
