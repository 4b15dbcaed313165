from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from taskmaster.core.deps import get_current_user, get_notification_service
from taskmaster.models.user import User
from taskmaster.schemas.base import CountResponse
from taskmaster.schemas.notification import NotificationResponse
from taskmaster.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """내 알림 목록 (최신순)"""
    notifications = await service.list_for_user(current_user.user_id, unread_only=unread_only, limit=limit)
    return [NotificationResponse.model_validate(n) for n in notifications]


# "/{notification_id}/read" 와 경로가 겹치지 않도록 먼저 등록
@router.patch("/mark_all_read", response_model=CountResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    count = await service.mark_all_read(current_user.user_id)
    return CountResponse(count=count)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    notification = await service.mark_read(notification_id, current_user.user_id)
    return NotificationResponse.model_validate(notification)
