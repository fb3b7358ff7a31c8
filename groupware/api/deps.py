from typing import Generator, Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from groupware.db.session import SessionLocal
from groupware.db.models import User
from groupware.core.approval import ApprovalEngine
from groupware.services import NotificationService, UserDirectory


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    db: Session = Depends(get_db),
    x_user_id: Optional[str] = Header(None),
) -> User:
    """Resolve the acting user from the X-User-Id header set by the auth gateway."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not identify the acting user",
    )

    if not x_user_id or not x_user_id.isdigit():
        raise credentials_exception

    user = db.query(User).filter(User.id == int(x_user_id)).first()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def get_directory(db: Session = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_approval_engine(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    directory: UserDirectory = Depends(get_directory),
) -> ApprovalEngine:
    return ApprovalEngine(db, notifier=notifications, directory=directory)
