"""Notification inbox endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from groupware.api.deps import get_current_user, get_notification_service
from groupware.api.schemas.approval import NotificationResponse
from groupware.api.schemas.common import SuccessResponse
from groupware.db.models import User
from groupware.services import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """List the current user's notifications, newest first."""
    notifications = service.list_for_user(current_user.id, unread_only=unread_only)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.post("/read-all", response_model=SuccessResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    updated = service.mark_all_as_read(current_user.id)
    return SuccessResponse(message="All notifications marked as read", data={"updated": updated})


@router.post("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    if not service.mark_as_read(notification_id, current_user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return SuccessResponse(message="Notification marked as read")
