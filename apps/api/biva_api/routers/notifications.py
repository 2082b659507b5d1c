"""Notification inbox endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..dependencies.auth import get_current_user
from ..models.user import User
from ..schemas import notifications as schemas
from ..services import notifications as notifications_service

router = APIRouter()


@router.get("", response_model=schemas.NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.NotificationListResponse:
    return await notifications_service.list_notifications(user, session, unread_only=unread_only)


@router.post("/{notification_id}/read", response_model=schemas.NotificationRead)
async def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.NotificationRead:
    return await notifications_service.mark_notification_read(notification_id, user, session)
