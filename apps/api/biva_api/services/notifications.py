"""In-app notification inbox."""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError
from ..models.user import User
from ..repositories import notifications as notifications_repo
from ..schemas import notifications as schemas

logger = logging.getLogger(__name__)


async def list_notifications(
    user: User,
    session: AsyncSession,
    *,
    unread_only: bool = False,
) -> schemas.NotificationListResponse:
    rows = await notifications_repo.list_for_user(session, user.id, unread_only=unread_only)
    return schemas.NotificationListResponse(results=[schemas.NotificationRead.model_validate(row) for row in rows])


async def mark_notification_read(
    notification_id: str,
    user: User,
    session: AsyncSession,
) -> schemas.NotificationRead:
    """Mark one of the user's notifications as read; other users' rows look missing."""

    async with session.begin():
        notification = await notifications_repo.mark_read(session, notification_id=notification_id, user_id=user.id)
        if notification is None:
            raise NotFoundError(f"Notification {notification_id} not found")

    logger.debug("Notification %s read by %s", notification_id, user.id)
    return schemas.NotificationRead.model_validate(notification)
