"""Shared test doubles: a session stub and an in-memory stand-in for the repositories."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Iterable

from sqlalchemy.exc import IntegrityError

from biva_api.models.contract import LIVE_STATUSES, SIGNABLE_STATUSES, Contract, ContractStatus, ContractType
from biva_api.models.notification import Notification
from biva_api.models.property import (
    ApprovalStatus,
    AvailabilityStatus,
    Property,
    PropertyCategory,
    TransactionType,
)
from biva_api.models.user import UserStatus
from biva_api.models.visit import Visit, VisitStatus
from biva_api.repositories import contracts as contracts_repo
from biva_api.repositories import properties as properties_repo
from biva_api.repositories import users as users_repo
from biva_api.repositories import visits as visits_repo
from biva_api.services import lifecycle


class DummySession:
    """Minimal session stub supporting async transaction context.

    When bound to a ``FakeStore`` an exception inside ``begin()`` restores the
    store to its state at the start of the block.
    """

    def __init__(self, store: "FakeStore | None" = None) -> None:
        self.added: list[object] = []
        self.store = store
        self.begin_called = False

    def add(self, obj: object) -> None:
        self.added.append(obj)

    async def commit(self) -> None:
        return None

    def begin(self):  # noqa: D401 - mimic SQLAlchemy's async begin
        session = self

        class _Tx:
            async def __aenter__(self_inner):
                session.begin_called = True
                self_inner.snapshot = session.store.snapshot() if session.store else None
                self_inner.mark = len(session.added)
                return session

            async def __aexit__(self_inner, exc_type, exc, tb):
                if exc_type is not None:
                    if session.store is not None:
                        session.store.restore(self_inner.snapshot)
                    del session.added[self_inner.mark:]
                return False

        return _Tx()

    def notifications(self) -> list[Notification]:
        return [obj for obj in self.added if isinstance(obj, Notification)]


def make_user(user_id: str, *, roles: Iterable[str] = ("client",), bi: str | None = "004512345LA041", **extra: Any):
    fields = {
        "id": user_id,
        "full_name": extra.pop("full_name", user_id.replace("-", " ").title()),
        "phone": extra.pop("phone", f"+244-{user_id}"),
        "email": None,
        "address": None,
        "roles": list(roles),
        "bi": bi,
        "status": UserStatus.ACTIVE,
    }
    fields.update(extra)
    return SimpleNamespace(**fields)


def make_property(property_id: str = "prop-1", *, owner_id: str = "user-owner", **overrides: Any) -> Property:
    fields: dict[str, Any] = {
        "id": property_id,
        "owner_id": owner_id,
        "title": "Apartamento T2 na Maianga",
        "description": "Segundo andar, perto do mercado.",
        "category": PropertyCategory.APARTMENT,
        "transaction_type": TransactionType.RENT,
        "price": Decimal("250000"),
        "provincia": "Luanda",
        "municipio": "Luanda",
        "bairro": "Maianga",
        "bedrooms": 2,
        "bathrooms": 1,
        "living_rooms": 1,
        "kitchens": 1,
        "area": 85,
        "amenities": ["gerador"],
        "images": ["https://img.example.com/maianga.jpg"],
        "short_term": False,
        "featured": False,
        "availability_status": AvailabilityStatus.AVAILABLE,
        "approval_status": ApprovalStatus.APPROVED,
        "rejection_message": None,
        "rejection_acknowledged": False,
    }
    fields.update(overrides)
    return Property(**fields)


def make_contract(
    contract_id: str = "contract-1",
    *,
    property_id: str = "prop-1",
    owner_id: str = "user-owner",
    counterparty_id: str = "user-client",
    **overrides: Any,
) -> Contract:
    fields: dict[str, Any] = {
        "id": contract_id,
        "property_id": property_id,
        "owner_id": owner_id,
        "counterparty_id": counterparty_id,
        "type": ContractType.RENTAL,
        "value": Decimal("250000"),
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 12, 31),
        "content": "CONTRATO",
        "observations": None,
        "status": ContractStatus.PENDING_SIGNATURES,
        "owner_signature": None,
        "owner_signed_at": None,
        "counterparty_signature": None,
        "counterparty_signed_at": None,
        "cancelled_by_id": None,
        "cancellation_reason": None,
    }
    fields.update(overrides)
    return Contract(**fields)


def make_visit(
    visit_id: str = "visit-1",
    *,
    property_id: str = "prop-1",
    client_id: str = "user-client",
    slot_start: datetime = datetime(2026, 5, 4, 10, 0, tzinfo=timezone.utc),
    **overrides: Any,
) -> Visit:
    fields: dict[str, Any] = {
        "id": visit_id,
        "property_id": property_id,
        "client_id": client_id,
        "slot_start": slot_start,
        "slot_end": slot_start + timedelta(hours=1),
        "status": VisitStatus.SCHEDULED,
        "notes": None,
        "cancelled_by_id": None,
    }
    fields.update(overrides)
    return Visit(**fields)


def _columns(row: Property | Contract | Visit) -> dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


class FakeStore:
    """Dictionary-backed replacement for the repository functions.

    Every conditional update checks its expected prior state exactly like the
    SQL ``WHERE`` clause does, so services see the same ``None`` results.
    """

    def __init__(self) -> None:
        self.users: dict[str, Any] = {}
        self.properties: dict[str, Property] = {}
        self.contracts: dict[str, Contract] = {}
        self.visits: dict[str, Visit] = {}
        # Simulates a check that read before a concurrent insert committed.
        self.stale_live_check = False

    def add(self, *rows: Any) -> None:
        for row in rows:
            if isinstance(row, Property):
                self.properties[row.id] = row
            elif isinstance(row, Contract):
                self.contracts[row.id] = row
            elif isinstance(row, Visit):
                self.visits[row.id] = row
            else:
                self.users[row.id] = row

    def session(self) -> DummySession:
        return DummySession(self)

    def snapshot(self) -> tuple[dict[str, Contract], dict[str, Visit], dict[int, dict[str, Any]]]:
        rows = [*self.properties.values(), *self.contracts.values(), *self.visits.values()]
        return dict(self.contracts), dict(self.visits), {id(row): _columns(row) for row in rows}

    def restore(self, snapshot: tuple[dict[str, Contract], dict[str, Visit], dict[int, dict[str, Any]]]) -> None:
        contracts, visits, values = snapshot
        self.contracts = contracts
        self.visits = visits
        for row in [*self.properties.values(), *self.contracts.values(), *self.visits.values()]:
            for name, value in values.get(id(row), {}).items():
                setattr(row, name, value)

    def install(self, monkeypatch) -> "FakeStore":
        monkeypatch.setattr(users_repo, "get_by_id", self.get_user)
        monkeypatch.setattr(users_repo, "get_by_id_or_phone", self.get_user_by_reference)
        monkeypatch.setattr(users_repo, "record_bi_if_missing", self.record_bi_if_missing)
        monkeypatch.setattr(users_repo, "list_all", self.list_users)
        monkeypatch.setattr(users_repo, "set_status", self.set_user_status)
        monkeypatch.setattr(properties_repo, "get_by_id", self.get_property)
        monkeypatch.setattr(properties_repo, "create", self.create_property)
        monkeypatch.setattr(properties_repo, "transition_approval", self.transition_approval)
        monkeypatch.setattr(properties_repo, "transition_availability", self.transition_availability)
        monkeypatch.setattr(properties_repo, "has_contracts", self.has_contracts)
        monkeypatch.setattr(properties_repo, "delete", self.delete_property)
        monkeypatch.setattr(contracts_repo, "get_by_id", self.get_contract)
        monkeypatch.setattr(contracts_repo, "has_live_contract", self.has_live_contract)
        monkeypatch.setattr(contracts_repo, "create", self.create_contract)
        monkeypatch.setattr(contracts_repo, "apply_signature", self.apply_signature)
        monkeypatch.setattr(contracts_repo, "transition_status", self.transition_status)
        monkeypatch.setattr(contracts_repo, "list_for_user", self.list_contracts_for_user)
        monkeypatch.setattr(contracts_repo, "list_for_property", self.list_contracts_for_property)
        monkeypatch.setattr(visits_repo, "get_by_id", self.get_visit)
        monkeypatch.setattr(visits_repo, "has_conflict", self.has_visit_conflict)
        monkeypatch.setattr(visits_repo, "create", self.create_visit)
        monkeypatch.setattr(visits_repo, "list_for_user", self.list_visits_for_user)
        monkeypatch.setattr(visits_repo, "transition_status", self.transition_visit)
        return self

    # users

    async def get_user(self, session, user_id):
        return self.users.get(user_id)

    async def get_user_by_reference(self, session, reference):
        if reference in self.users:
            return self.users[reference]
        return next((user for user in self.users.values() if user.phone == reference.strip()), None)

    async def record_bi_if_missing(self, session, *, user_id, bi):
        user = self.users.get(user_id)
        if user is None or user.bi:
            return False
        user.bi = bi
        return True

    async def list_users(self, session, *, status=None):
        users = [user for user in self.users.values() if status is None or user.status == status]
        return sorted(users, key=lambda user: (user.full_name, user.id))

    async def set_user_status(self, session, *, user_id, status):
        user = self.users.get(user_id)
        if user is None:
            return None
        user.status = status
        return user

    # properties

    async def get_property(self, session, property_id, *, fresh=False):
        return self.properties.get(property_id)

    async def create_property(self, session, prop):
        self.properties[prop.id] = prop
        return prop

    async def transition_approval(self, session, *, property_id, expected, expected_acknowledged=None, values):
        prop = self.properties.get(property_id)
        if prop is None or prop.approval_status != expected:
            return None
        if expected_acknowledged is not None and prop.rejection_acknowledged != expected_acknowledged:
            return None
        for name, value in values.items():
            setattr(prop, name, value)
        return prop

    async def transition_availability(self, session, *, property_id, expected, target):
        prop = self.properties.get(property_id)
        if prop is None or prop.availability_status not in tuple(expected):
            return None
        prop.availability_status = target
        return prop

    async def has_contracts(self, session, property_id):
        return any(contract.property_id == property_id for contract in self.contracts.values())

    async def delete_property(self, session, prop):
        self.properties.pop(prop.id, None)

    # contracts

    def live_contracts(self, property_id: str) -> list[Contract]:
        return [
            contract
            for contract in self.contracts.values()
            if contract.property_id == property_id and contract.status in LIVE_STATUSES
        ]

    async def get_contract(self, session, contract_id, *, fresh=False):
        return self.contracts.get(contract_id)

    async def has_live_contract(self, session, property_id):
        if self.stale_live_check:
            return False
        return bool(self.live_contracts(property_id))

    async def create_contract(self, session, contract):
        if self.live_contracts(contract.property_id):
            raise IntegrityError("INSERT INTO contracts", {}, Exception("uq_contracts_live_property"))
        self.contracts[contract.id] = contract
        return contract

    async def apply_signature(self, session, *, contract_id, role, signature, signed_at):
        contract = self.contracts.get(contract_id)
        if contract is None or contract.status not in SIGNABLE_STATUSES:
            return None
        if lifecycle.has_signed(contract, role):
            return None
        other = contracts_repo.COUNTERPARTY_ROLE if role == contracts_repo.OWNER_ROLE else contracts_repo.OWNER_ROLE
        contract.status = lifecycle.status_after_signature(contract.status, role, lifecycle.has_signed(contract, other))
        setattr(contract, f"{role}_signature", signature)
        setattr(contract, f"{role}_signed_at", signed_at)
        return contract

    async def transition_status(self, session, *, contract_id, expected, target, values=None):
        contract = self.contracts.get(contract_id)
        if contract is None or contract.status not in tuple(expected):
            return None
        contract.status = target
        for name, value in (values or {}).items():
            setattr(contract, name, value)
        return contract

    async def list_contracts_for_user(self, session, user_id):
        return [c for c in self.contracts.values() if user_id in (c.owner_id, c.counterparty_id)]

    async def list_contracts_for_property(self, session, property_id):
        return [c for c in self.contracts.values() if c.property_id == property_id]

    # visits

    async def get_visit(self, session, visit_id):
        return self.visits.get(visit_id)

    async def has_visit_conflict(self, session, *, property_id, slot_start, slot_end):
        return any(
            visit.property_id == property_id
            and visit.status == VisitStatus.SCHEDULED
            and visit.slot_start < slot_end
            and visit.slot_end > slot_start
            for visit in self.visits.values()
        )

    async def create_visit(self, session, visit):
        self.visits[visit.id] = visit
        return visit

    async def list_visits_for_user(self, session, user_id):
        rows = [
            visit
            for visit in self.visits.values()
            if visit.client_id == user_id or self.properties[visit.property_id].owner_id == user_id
        ]
        for visit in rows:
            visit.property = self.properties[visit.property_id]
        return sorted(rows, key=lambda visit: visit.slot_start)

    async def transition_visit(self, session, *, visit_id, expected, target, values=None):
        visit = self.visits.get(visit_id)
        if visit is None or visit.status != expected:
            return None
        visit.status = target
        for name, value in (values or {}).items():
            setattr(visit, name, value)
        return visit
