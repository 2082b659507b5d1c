"""Listing endpoints for owners, brokers and the public catalogue."""
from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..dependencies.auth import get_current_user, get_optional_user
from ..models.property import PropertyCategory, TransactionType
from ..models.user import User
from ..repositories.properties import PropertyFilters
from ..schemas import contracts as contract_schemas
from ..schemas import properties as schemas
from ..services import approval as approval_service
from ..services import contracts as contracts_service
from ..services import listings as listings_service

router = APIRouter()


@router.get("", response_model=schemas.PropertyListResponse)
async def search_properties(
    transaction_type: TransactionType | None = None,
    category: PropertyCategory | None = None,
    provincia: str | None = None,
    municipio: str | None = None,
    bairro: str | None = None,
    location: str | None = Query(default=None, description="Matches provincia, municipio or bairro"),
    bedrooms: int | None = Query(default=None, ge=0),
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    featured: bool | None = None,
    short_term: bool | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyListResponse:
    """Search approved listings that are on the market."""

    filters = PropertyFilters(
        transaction_type=transaction_type,
        category=category,
        provincia=provincia,
        municipio=municipio,
        bairro=bairro,
        location=location,
        bedrooms=bedrooms,
        min_price=min_price,
        max_price=max_price,
        featured=featured,
        short_term=short_term,
    )
    return await listings_service.search_properties(filters, session, limit=limit, offset=offset)


@router.post("", response_model=schemas.PropertyRead, status_code=status.HTTP_201_CREATED)
async def submit_property(
    payload: schemas.PropertyDraft,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    return await listings_service.submit_property(payload, user, session)


@router.get("/mine", response_model=schemas.PropertyListResponse)
async def list_my_properties(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyListResponse:
    """Every listing of the caller, whatever its moderation state."""

    return await listings_service.list_owner_properties(user.id, user, session)


@router.get("/owned-by/{owner_id}", response_model=schemas.PropertyListResponse)
async def list_owner_properties(
    owner_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyListResponse:
    return await listings_service.list_owner_properties(owner_id, user, session)


@router.get("/{property_id}", response_model=schemas.PropertyRead)
async def get_property(
    property_id: str,
    user: User | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    return await listings_service.get_property(property_id, user, session)


@router.patch("/{property_id}", response_model=schemas.PropertyRead)
async def edit_property(
    property_id: str,
    payload: schemas.PropertyUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    """Edit a listing; it goes back to the moderation queue."""

    return await approval_service.resubmit_after_edit(property_id, payload, user, session)


@router.post("/{property_id}/acknowledge-rejection", response_model=schemas.PropertyRead)
async def acknowledge_rejection(
    property_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    return await approval_service.acknowledge_rejection(property_id, user, session)


@router.put("/{property_id}/availability", response_model=schemas.PropertyRead)
async def set_availability(
    property_id: str,
    payload: schemas.AvailabilityUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    return await listings_service.set_availability(property_id, payload, user, session)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
    property_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await listings_service.delete_property(property_id, user, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{property_id}/contracts", response_model=contract_schemas.ContractListResponse)
async def list_property_contracts(
    property_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> contract_schemas.ContractListResponse:
    """Contract history of a listing, for its owner and administrators."""

    return await contracts_service.list_contracts_for_property(property_id, user, session)
