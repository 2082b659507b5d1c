"""Contract endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..dependencies.auth import get_current_user
from ..models.user import User
from ..schemas import contracts as schemas
from ..services import contracts as contracts_service

router = APIRouter()


@router.post("", response_model=schemas.ContractRead, status_code=status.HTTP_201_CREATED)
async def create_contract(
    payload: schemas.CreateContractRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.ContractRead:
    """Draft a contract between the property owner and a counterparty."""

    return await contracts_service.create_contract(payload, user, session)


@router.get("", response_model=schemas.ContractListResponse)
async def list_contracts(
    user_id: str | None = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.ContractListResponse:
    """Contracts of the caller, or of ``user_id`` for administrators."""

    return await contracts_service.list_contracts_for_user(user_id or user.id, user, session)


@router.get("/{contract_id}", response_model=schemas.ContractRead)
async def get_contract(
    contract_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.ContractRead:
    return await contracts_service.get_contract(contract_id, user, session)


@router.post("/{contract_id}/sign", response_model=schemas.ContractRead)
async def sign_contract(
    contract_id: str,
    payload: schemas.SignContractRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.ContractRead:
    return await contracts_service.sign_contract(contract_id, payload, user, session)


@router.post("/{contract_id}/cancel", response_model=schemas.ContractRead)
async def cancel_contract(
    contract_id: str,
    payload: schemas.CancelContractRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.ContractRead:
    return await contracts_service.cancel_contract(contract_id, payload, user, session)


@router.post("/{contract_id}/complete", response_model=schemas.ContractRead)
async def complete_contract(
    contract_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.ContractRead:
    return await contracts_service.complete_contract(contract_id, user, session)
