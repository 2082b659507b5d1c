"""Property approval workflow: moderation, acknowledgment and resubmission."""
from __future__ import annotations

import logging
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.notification import NotificationKind
from ..models.property import ApprovalStatus, Property
from ..models.user import User
from ..repositories import notifications as notifications_repo
from ..repositories import properties as properties_repo
from ..schemas import properties as schemas
from . import lifecycle, policies
from .listings import validate_draft

logger = logging.getLogger(__name__)

CLEARABLE_FIELDS = frozenset({"description", "bairro", "area"})


async def approve_property(
    property_id: str,
    admin: User,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Publish a pending listing.

    A duplicate approval (double click, two admins) loses the conditional
    update and is reported as ``InvalidStateError``.
    """

    if not policies.can_approve(admin):
        raise AuthorizationError("Only administrators can approve properties")

    async with session.begin():
        prop = await properties_repo.transition_approval(
            session,
            property_id=property_id,
            expected=ApprovalStatus.PENDING,
            values={
                "approval_status": ApprovalStatus.APPROVED,
                "rejection_message": None,
                "rejection_acknowledged": False,
            },
        )
        if prop is None:
            await _raise_for_moderation(session, property_id)

        await notifications_repo.add(
            session,
            user_id=prop.owner_id,
            kind=NotificationKind.PROPERTY_APPROVED,
            title="Property approved",
            message=f"'{prop.title}' is now listed publicly.",
            property_id=prop.id,
        )

    logger.info("Property %s approved by %s", property_id, admin.id)
    return schemas.PropertyRead.model_validate(prop)


async def reject_property(
    property_id: str,
    payload: schemas.RejectRequest,
    admin: User,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Refuse a pending listing with a message the owner must acknowledge."""

    if not policies.can_approve(admin):
        raise AuthorizationError("Only administrators can reject properties")
    message = payload.message.strip()
    if not message:
        raise ValidationError("A rejection message is required")

    async with session.begin():
        prop = await properties_repo.transition_approval(
            session,
            property_id=property_id,
            expected=ApprovalStatus.PENDING,
            values={
                "approval_status": ApprovalStatus.REJECTED,
                "rejection_message": message,
                "rejection_acknowledged": False,
            },
        )
        if prop is None:
            await _raise_for_moderation(session, property_id)

        await notifications_repo.add(
            session,
            user_id=prop.owner_id,
            kind=NotificationKind.PROPERTY_REJECTED,
            title="Property rejected",
            message=f"'{prop.title}' was not approved: {message}",
            property_id=prop.id,
        )

    logger.info("Property %s rejected by %s", property_id, admin.id)
    return schemas.PropertyRead.model_validate(prop)


async def acknowledge_rejection(
    property_id: str,
    owner: User,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Record that the owner has read the rejection, unlocking edits."""

    async with session.begin():
        prop = await _get_owned(session, property_id, owner)
        lifecycle.ensure_rejection_acknowledgeable(prop)
        if prop.rejection_acknowledged:
            return schemas.PropertyRead.model_validate(prop)

        updated = await properties_repo.transition_approval(
            session,
            property_id=property_id,
            expected=ApprovalStatus.REJECTED,
            expected_acknowledged=False,
            values={"rejection_acknowledged": True},
        )
        if updated is None:
            raise ConflictError(f"Property {property_id} changed while acknowledging the rejection")

    logger.info("Rejection of property %s acknowledged by owner %s", property_id, owner.id)
    return schemas.PropertyRead.model_validate(updated)


async def resubmit_after_edit(
    property_id: str,
    payload: schemas.PropertyUpdate,
    owner: User,
    session: AsyncSession,
) -> schemas.PropertyRead:
    """Apply an owner edit and send the listing back to moderation."""

    edits = {
        name: value
        for name, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or name in CLEARABLE_FIELDS
    }

    async with session.begin():
        prop = await _get_owned(session, property_id, owner)
        lifecycle.ensure_editable(prop)

        merged = schemas.PropertyDraft.model_validate({**_draft_fields(prop), **edits})
        validate_draft(merged)

        updated = await properties_repo.transition_approval(
            session,
            property_id=property_id,
            expected=prop.approval_status,
            expected_acknowledged=prop.rejection_acknowledged,
            values={**edits, **lifecycle.resubmission_values()},
        )
        if updated is None:
            raise ConflictError(f"Property {property_id} was moderated while it was being edited")

    logger.info("Property %s edited and resubmitted by owner %s", property_id, owner.id)
    return schemas.PropertyRead.model_validate(updated)


async def _get_owned(session: AsyncSession, property_id: str, owner: User) -> Property:
    prop = await properties_repo.get_by_id(session, property_id)
    if prop is None:
        raise NotFoundError(f"Property {property_id} not found")
    if not policies.is_owner_of(owner, prop):
        raise AuthorizationError("Only the property owner can do this")
    return prop


async def _raise_for_moderation(session: AsyncSession, property_id: str) -> NoReturn:
    """Explain why a moderation update matched no row."""

    prop = await properties_repo.get_by_id(session, property_id, fresh=True)
    if prop is None:
        raise NotFoundError(f"Property {property_id} not found")
    lifecycle.ensure_pending(prop)
    raise ConflictError(f"Property {property_id} changed during moderation")


def _draft_fields(prop: Property) -> dict[str, object]:
    return {name: getattr(prop, name) for name in schemas.PropertyDraft.model_fields}
