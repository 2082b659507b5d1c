"""Notification persistence helpers."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.notification import Notification, NotificationKind


async def add(
    session: AsyncSession,
    *,
    user_id: str,
    kind: NotificationKind,
    title: str,
    message: str,
    property_id: str | None = None,
    contract_id: str | None = None,
) -> Notification:
    """Queue a notification row in the caller's transaction."""

    notification = Notification(
        id=str(uuid4()),
        user_id=user_id,
        kind=kind,
        title=title,
        message=message,
        property_id=property_id,
        contract_id=contract_id,
        read=False,
    )
    session.add(notification)
    return notification


async def list_for_user(session: AsyncSession, user_id: str, *, unread_only: bool = False) -> list[Notification]:
    """Return a user's notifications, newest first."""

    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def mark_read(session: AsyncSession, *, notification_id: str, user_id: str) -> Notification | None:
    """Mark a notification read if it belongs to the user."""

    stmt = (
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read=True)
        .returning(Notification)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
