"""Data access helpers for property listings.

Status columns are only ever changed through the conditional updates in
this module: each ``UPDATE`` carries the expected prior state in its
``WHERE`` clause and callers treat ``None`` as "someone else got there first".
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.contract import Contract
from ..models.property import (
    ApprovalStatus,
    AvailabilityStatus,
    Property,
    PropertyCategory,
    TransactionType,
)


@dataclass(slots=True)
class PropertyFilters:
    """Public search filters."""

    transaction_type: TransactionType | None = None
    category: PropertyCategory | None = None
    provincia: str | None = None
    municipio: str | None = None
    bairro: str | None = None
    bedrooms: int | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    featured: bool | None = None
    short_term: bool | None = None
    location: str | None = None


async def get_by_id(session: AsyncSession, property_id: str, *, fresh: bool = False) -> Property | None:
    """Return a property by identifier; ``fresh`` bypasses the identity map."""

    return await session.get(Property, property_id, populate_existing=fresh)


async def create(session: AsyncSession, prop: Property) -> Property:
    """Persist a new property."""

    session.add(prop)
    await session.flush()
    return prop


async def list_public(
    session: AsyncSession,
    *,
    filters: PropertyFilters,
    limit: int,
    offset: int = 0,
) -> list[Property]:
    """Return approved, available listings matching the filters, newest first."""

    stmt = select(Property).where(
        Property.approval_status == ApprovalStatus.APPROVED,
        Property.availability_status == AvailabilityStatus.AVAILABLE,
    )

    if filters.transaction_type is not None:
        stmt = stmt.where(Property.transaction_type == filters.transaction_type)
    if filters.category is not None:
        stmt = stmt.where(Property.category == filters.category)
    for column, needle in (
        (Property.provincia, filters.provincia),
        (Property.municipio, filters.municipio),
        (Property.bairro, filters.bairro),
    ):
        if needle:
            stmt = stmt.where(func.lower(column).like(_contains(needle), escape="\\"))
    if filters.location:
        stmt = stmt.where(_any_location(filters.location))
    if filters.bedrooms is not None:
        stmt = stmt.where(Property.bedrooms == filters.bedrooms)
    if filters.min_price is not None:
        stmt = stmt.where(Property.price >= filters.min_price)
    if filters.max_price is not None:
        stmt = stmt.where(Property.price <= filters.max_price)
    if filters.featured is not None:
        stmt = stmt.where(Property.featured.is_(filters.featured))
    if filters.short_term is not None:
        stmt = stmt.where(Property.short_term.is_(filters.short_term))

    stmt = stmt.order_by(Property.created_at.desc(), Property.id.asc()).limit(limit).offset(offset)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_for_owner(session: AsyncSession, owner_id: str) -> list[Property]:
    """Return every listing of an owner regardless of state."""

    stmt: Select[tuple[Property]] = (
        select(Property).where(Property.owner_id == owner_id).order_by(Property.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_pending(session: AsyncSession) -> list[Property]:
    """Return listings awaiting moderation, oldest first."""

    stmt = (
        select(Property)
        .where(Property.approval_status == ApprovalStatus.PENDING)
        .order_by(Property.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def transition_approval(
    session: AsyncSession,
    *,
    property_id: str,
    expected: ApprovalStatus,
    expected_acknowledged: bool | None = None,
    values: dict[str, Any],
) -> Property | None:
    """Apply ``values`` only if the approval state still matches ``expected``."""

    conditions = [Property.id == property_id, Property.approval_status == expected]
    if expected_acknowledged is not None:
        conditions.append(Property.rejection_acknowledged.is_(expected_acknowledged))

    stmt = (
        update(Property)
        .where(*conditions)
        .values(**values, updated_at=utcnow())
        .returning(Property)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def transition_availability(
    session: AsyncSession,
    *,
    property_id: str,
    expected: Iterable[AvailabilityStatus],
    target: AvailabilityStatus,
) -> Property | None:
    """Move availability to ``target`` if the current value is one of ``expected``."""

    stmt = (
        update(Property)
        .where(Property.id == property_id, Property.availability_status.in_(tuple(expected)))
        .values(availability_status=target, updated_at=utcnow())
        .returning(Property)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def has_contracts(session: AsyncSession, property_id: str) -> bool:
    """Return True if any contract, live or terminal, references the property."""

    stmt = select(func.count(Contract.id)).where(Contract.property_id == property_id)
    count = await session.execute(stmt)
    return count.scalar_one() > 0


async def delete(session: AsyncSession, prop: Property) -> None:
    """Remove a listing."""

    await session.delete(prop)
    await session.flush()


def _any_location(needle: str):
    """Match a free-text needle against every location column."""

    pattern = _contains(needle)
    return or_(
        func.lower(Property.provincia).like(pattern, escape="\\"),
        func.lower(Property.municipio).like(pattern, escape="\\"),
        func.lower(Property.bairro).like(pattern, escape="\\"),
    )


def _contains(needle: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards in the input escaped."""

    escaped = needle.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
