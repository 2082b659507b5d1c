"""Visit scheduling for listed properties."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..models.notification import NotificationKind
from ..models.property import Property
from ..models.user import User
from ..models.visit import Visit, VisitStatus
from ..repositories import notifications as notifications_repo
from ..repositories import properties as properties_repo
from ..repositories import visits as visits_repo
from ..schemas import visits as schemas
from . import lifecycle, policies

logger = logging.getLogger(__name__)

VISIT_DURATION = timedelta(hours=1)


async def schedule_visit(
    payload: schemas.VisitRequest,
    client: User,
    session: AsyncSession,
    *,
    now: datetime | None = None,
) -> schemas.VisitRead:
    """Book a visit, ensuring the slot is in the future and not double booked."""

    slot_start = _ensure_tz(payload.scheduled_at)
    slot_end = slot_start + VISIT_DURATION
    if slot_start < (now or datetime.now(timezone.utc)):
        raise ValidationError("Visits must be scheduled in the future")

    async with session.begin():
        prop = await properties_repo.get_by_id(session, payload.property_id)
        if prop is None or not policies.can_view_property(client, prop):
            raise NotFoundError(f"Property {payload.property_id} not found")
        if policies.is_owner_of(client, prop):
            raise ValidationError("You cannot request a visit to your own listing")
        if not policies.is_publicly_visible(prop):
            raise InvalidStateError(f"Property {prop.id} is not open for visits")

        if await visits_repo.has_conflict(
            session, property_id=prop.id, slot_start=slot_start, slot_end=slot_end
        ):
            raise ConflictError("That time is already booked for this property")

        visit = Visit(
            id=str(uuid4()),
            property_id=prop.id,
            client_id=client.id,
            slot_start=slot_start,
            slot_end=slot_end,
            status=VisitStatus.SCHEDULED,
            notes=payload.notes,
        )
        await visits_repo.create(session, visit)

        await notifications_repo.add(
            session,
            user_id=prop.owner_id,
            kind=NotificationKind.VISIT_REQUESTED,
            title="Visit requested",
            message=f"{client.full_name} wants to visit '{prop.title}' on {slot_start:%d/%m/%Y %H:%M}.",
            property_id=prop.id,
        )

    logger.info("Visit %s to property %s booked by %s for %s", visit.id, prop.id, client.id, slot_start.isoformat())
    return _to_read(visit, prop)


async def list_visits(user: User, session: AsyncSession) -> schemas.VisitListResponse:
    """Visits the user requested plus visits to the user's listings."""

    rows = await visits_repo.list_for_user(session, user.id)
    return schemas.VisitListResponse(results=[_to_read(row, row.property) for row in rows])


async def cancel_visit(visit_id: str, caller: User, session: AsyncSession) -> schemas.VisitRead:
    async with session.begin():
        visit, prop = await _get_visit(session, visit_id)
        if not policies.can_cancel_visit(caller, visit.client_id, prop):
            raise AuthorizationError("Only the client, the owner or an administrator can cancel this visit")
        lifecycle.ensure_visit_scheduled(visit)

        cancelled = await visits_repo.transition_status(
            session,
            visit_id=visit_id,
            expected=VisitStatus.SCHEDULED,
            target=VisitStatus.CANCELLED,
            values={"cancelled_by_id": caller.id},
        )
        if cancelled is None:
            raise ConflictError(f"Visit {visit_id} changed concurrently")

        recipient = prop.owner_id if caller.id == visit.client_id else visit.client_id
        await notifications_repo.add(
            session,
            user_id=recipient,
            kind=NotificationKind.VISIT_CANCELLED,
            title="Visit cancelled",
            message=f"{caller.full_name} cancelled the visit to '{prop.title}'.",
            property_id=prop.id,
        )

    logger.info("Visit %s cancelled by %s", visit_id, caller.id)
    return _to_read(cancelled, prop)


async def complete_visit(visit_id: str, caller: User, session: AsyncSession) -> schemas.VisitRead:
    """Mark a visit as done; the owner or an administrator confirms it."""

    async with session.begin():
        visit, prop = await _get_visit(session, visit_id)
        if not policies.can_complete_visit(caller, prop):
            raise AuthorizationError("Only the owner or an administrator can complete this visit")
        lifecycle.ensure_visit_scheduled(visit)

        completed = await visits_repo.transition_status(
            session,
            visit_id=visit_id,
            expected=VisitStatus.SCHEDULED,
            target=VisitStatus.COMPLETED,
        )
        if completed is None:
            raise ConflictError(f"Visit {visit_id} changed concurrently")

        await notifications_repo.add(
            session,
            user_id=visit.client_id,
            kind=NotificationKind.VISIT_COMPLETED,
            title="Visit completed",
            message=f"Your visit to '{prop.title}' was marked as done.",
            property_id=prop.id,
        )

    logger.info("Visit %s completed by %s", visit_id, caller.id)
    return _to_read(completed, prop)


async def _get_visit(session: AsyncSession, visit_id: str) -> tuple[Visit, Property]:
    visit = await visits_repo.get_by_id(session, visit_id)
    if visit is None:
        raise NotFoundError(f"Visit {visit_id} not found")
    prop = await properties_repo.get_by_id(session, visit.property_id)
    if prop is None:
        raise NotFoundError(f"Property {visit.property_id} not found")
    return visit, prop


def _to_read(visit: Visit, prop: Property | None) -> schemas.VisitRead:
    return schemas.VisitRead(
        id=visit.id,
        property_id=visit.property_id,
        property_title=prop.title if prop is not None else None,
        client_id=visit.client_id,
        slot_start=visit.slot_start,
        slot_end=visit.slot_end,
        status=visit.status,
        notes=visit.notes,
        created_at=visit.created_at,
    )


def _ensure_tz(value: datetime) -> datetime:
    """Ensure the datetime is timezone-aware in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
