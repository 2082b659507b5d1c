"""Visit persistence helpers."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.base import utcnow
from ..models.property import Property
from ..models.visit import Visit, VisitStatus


async def get_by_id(session: AsyncSession, visit_id: str) -> Visit | None:
    return await session.get(Visit, visit_id)


async def has_conflict(
    session: AsyncSession,
    *,
    property_id: str,
    slot_start: datetime,
    slot_end: datetime,
) -> bool:
    """Return True if a scheduled visit to the property overlaps the slot."""

    stmt: Select[tuple[int]] = select(func.count(Visit.id)).where(
        Visit.property_id == property_id,
        Visit.slot_start < slot_end,
        Visit.slot_end > slot_start,
        Visit.status == VisitStatus.SCHEDULED,
    )
    count = await session.execute(stmt)
    return count.scalar_one() > 0


async def create(session: AsyncSession, visit: Visit) -> Visit:
    """Persist a new visit."""

    session.add(visit)
    await session.flush()
    return visit


async def list_for_user(session: AsyncSession, user_id: str) -> list[Visit]:
    """Visits the user requested or that target one of the user's listings, soonest first."""

    stmt = (
        select(Visit)
        .join(Property, Property.id == Visit.property_id)
        .where(or_(Visit.client_id == user_id, Property.owner_id == user_id))
        .options(selectinload(Visit.property), selectinload(Visit.client))
        .order_by(Visit.slot_start.asc(), Visit.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def transition_status(
    session: AsyncSession,
    *,
    visit_id: str,
    expected: VisitStatus,
    target: VisitStatus,
    values: dict[str, Any] | None = None,
) -> Visit | None:
    """Move a visit to ``target`` if it is still ``expected``."""

    stmt = (
        update(Visit)
        .where(Visit.id == visit_id, Visit.status == expected)
        .values(status=target, updated_at=utcnow(), **(values or {}))
        .returning(Visit)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
