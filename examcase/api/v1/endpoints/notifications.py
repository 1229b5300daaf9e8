from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from examcase.core.database import get_db
from examcase.models.user import User
from examcase.modules.auth.dependencies import get_current_user
from examcase.schemas.auth import MessageResponse
from examcase.schemas.notification import NotificationResponse, UnreadCountResponse
from examcase.services.notification_service import notification_service

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Own notifications, newest first"""
    return await notification_service.list_for_user(db, current_user.id, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"unread": await notification_service.unread_count(db, current_user.id)}


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    count = await notification_service.mark_all_read(db, current_user.id)
    return {"message": f"Marked {count} notification(s) as read"}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await notification_service.mark_read(db, current_user.id, notification_id)
