"""Listing submission, visibility and owner-side availability management."""
from __future__ import annotations

import logging
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.base import utcnow
from ..models.property import ApprovalStatus, AvailabilityStatus, Property
from ..models.user import User
from ..repositories import contracts as contracts_repo
from ..repositories import properties as properties_repo
from ..schemas import properties as schemas
from . import lifecycle, policies

logger = logging.getLogger(__name__)


def validate_draft(draft: schemas.PropertyDraft) -> None:
    """Reject drafts missing any field moderation needs."""

    missing: list[str] = []
    if not draft.title.strip():
        missing.append("title")
    if draft.price is None or draft.price <= 0:
        missing.append("price")
    if not draft.provincia.strip() or not draft.municipio.strip():
        missing.append("location")
    if draft.category is None:
        missing.append("category")
    if not [image for image in draft.images if image.strip()]:
        missing.append("images")
    if missing:
        raise ValidationError(f"Missing or invalid fields: {', '.join(missing)}")


async def submit_property(
    payload: schemas.PropertyDraft,
    owner: User,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Create a listing; it always starts pending and available."""

    if not policies.can_list_property(owner):
        raise AuthorizationError("Only owners and brokers can list properties")
    validate_draft(payload)

    prop = Property(
        id=str(uuid4()),
        owner_id=owner.id,
        **payload.model_dump(),
        featured=False,
        availability_status=AvailabilityStatus.AVAILABLE,
        approval_status=ApprovalStatus.PENDING,
        rejection_message=None,
        rejection_acknowledged=False,
    )

    async with session.begin():
        await properties_repo.create(session, prop)

    logger.info("Property %s submitted by %s", prop.id, owner.id)
    return schemas.PropertyRead.model_validate(prop)


async def get_property(
    property_id: str,
    viewer: User | None,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Return a listing if the viewer may see it; hidden listings look missing."""

    prop = await properties_repo.get_by_id(session, property_id)
    if prop is None or not policies.can_view_property(viewer, prop):
        raise NotFoundError(f"Property {property_id} not found")
    return schemas.PropertyRead.model_validate(prop)


async def search_properties(
    filters: properties_repo.PropertyFilters,
    session: AsyncSession,
    *,
    limit: int = 20,
    offset: int = 0,
) -> schemas.PropertyListResponse:
    """Public catalogue: approved and available listings only."""

    if filters.min_price is not None and filters.max_price is not None and filters.min_price > filters.max_price:
        raise ValidationError("min_price cannot exceed max_price")
    rows = await properties_repo.list_public(session, filters=filters, limit=limit, offset=offset)
    return schemas.PropertyListResponse(results=[schemas.PropertyRead.model_validate(row) for row in rows])


async def list_owner_properties(
    owner_id: str,
    viewer: User,
    session: AsyncSession,
) -> schemas.PropertyListResponse:
    if viewer.id != owner_id and not policies.can_approve(viewer):
        raise AuthorizationError("You can only list your own properties")
    rows = await properties_repo.list_for_owner(session, owner_id)
    return schemas.PropertyListResponse(results=[schemas.PropertyRead.model_validate(row) for row in rows])


async def list_pending_properties(admin: User, session: AsyncSession) -> schemas.PropertyListResponse:
    """Moderation queue."""

    if not policies.can_approve(admin):
        raise AuthorizationError("Only administrators can review pending properties")
    rows = await properties_repo.list_pending(session)
    return schemas.PropertyListResponse(results=[schemas.PropertyRead.model_validate(row) for row in rows])


async def set_availability(
    property_id: str,
    payload: schemas.AvailabilityUpdate,
    owner: User,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Let an owner take a listing off the market or put it back.

    ``rented`` and ``sold`` are reserved for the contract workflow.
    """

    async with session.begin():
        prop = await properties_repo.get_by_id(session, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        if not policies.is_owner_of(owner, prop):
            raise AuthorizationError("Only the property owner can change its availability")
        lifecycle.ensure_manual_availability(prop, payload.status)
        if await contracts_repo.has_live_contract(session, property_id):
            raise ConflictError(f"Property {property_id} has a contract in progress")
        if prop.availability_status == payload.status:
            return schemas.PropertyRead.model_validate(prop)

        updated = await properties_repo.transition_availability(
            session,
            property_id=property_id,
            expected=(prop.availability_status,),
            target=payload.status,
        )
        if updated is None:
            raise ConflictError(f"Availability of property {property_id} changed concurrently")

    logger.info("Property %s marked %s by owner %s", property_id, payload.status.value, owner.id)
    return schemas.PropertyRead.model_validate(updated)


async def set_featured(
    property_id: str,
    payload: schemas.FeaturedUpdate,
    admin: User,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Curate the featured carousel."""

    if not policies.can_approve(admin):
        raise AuthorizationError("Only administrators can feature properties")

    async with session.begin():
        prop = await properties_repo.get_by_id(session, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        prop.featured = payload.featured
        prop.updated_at = utcnow()

    logger.info("Property %s featured=%s by %s", property_id, payload.featured, admin.id)
    return schemas.PropertyRead.model_validate(prop)


async def delete_property(property_id: str, caller: User, session: AsyncSession) -> None:
    """Delete a listing that no contract has ever referenced."""

    async with session.begin():
        prop = await properties_repo.get_by_id(session, property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        if not policies.can_manage_property(caller, prop):
            raise AuthorizationError("Only the owner or an administrator can delete this property")
        if await properties_repo.has_contracts(session, property_id):
            raise ConflictError(f"Property {property_id} has contracts on record and cannot be deleted")
        await properties_repo.delete(session, prop)

    logger.info("Property %s deleted by %s", property_id, caller.id)
