"""Service-level tests for visit scheduling."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from biva_api.core.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from biva_api.models.notification import NotificationKind
from biva_api.models.property import ApprovalStatus, AvailabilityStatus
from biva_api.models.visit import VisitStatus
from biva_api.schemas import visits as schemas
from biva_api.services import visits as visits_service
from stubs import FakeStore, make_property, make_user, make_visit

NOW = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
SLOT = datetime(2026, 5, 4, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    store = FakeStore().install(monkeypatch)
    store.add(
        make_user("user-owner", roles=["owner"]),
        make_user("user-client", roles=["client"]),
        make_user("user-other", roles=["client"]),
        make_user("user-admin", roles=["admin"]),
        make_property("prop-1"),
    )
    return store


def _request(**overrides) -> schemas.VisitRequest:
    fields = {"property_id": "prop-1", "scheduled_at": SLOT, "notes": "Depois das 10h"}
    fields.update(overrides)
    return schemas.VisitRequest(**fields)


@pytest.mark.asyncio
async def test_schedule_visit_books_slot_and_notifies_owner(store):
    session = store.session()

    result = await visits_service.schedule_visit(_request(), store.users["user-client"], session, now=NOW)

    assert result.status == VisitStatus.SCHEDULED
    assert result.slot_end - result.slot_start == visits_service.VISIT_DURATION
    assert result.property_title == "Apartamento T2 na Maianga"
    [notification] = session.notifications()
    assert notification.user_id == "user-owner"
    assert notification.kind == NotificationKind.VISIT_REQUESTED


@pytest.mark.asyncio
async def test_naive_time_is_read_as_utc(store):
    result = await visits_service.schedule_visit(
        _request(scheduled_at=SLOT.replace(tzinfo=None)), store.users["user-client"], store.session(), now=NOW
    )

    assert result.slot_start == SLOT


@pytest.mark.asyncio
async def test_visit_in_the_past_is_rejected(store):
    with pytest.raises(ValidationError):
        await visits_service.schedule_visit(
            _request(scheduled_at=NOW - timedelta(hours=1)), store.users["user-client"], store.session(), now=NOW
        )


@pytest.mark.asyncio
async def test_overlapping_visit_is_a_conflict(store):
    await visits_service.schedule_visit(_request(), store.users["user-client"], store.session(), now=NOW)

    with pytest.raises(ConflictError):
        await visits_service.schedule_visit(
            _request(scheduled_at=SLOT + timedelta(minutes=30)), store.users["user-other"], store.session(), now=NOW
        )
    later = await visits_service.schedule_visit(
        _request(scheduled_at=SLOT + timedelta(hours=1)), store.users["user-other"], store.session(), now=NOW
    )

    assert later.status == VisitStatus.SCHEDULED
    assert len(store.visits) == 2


@pytest.mark.asyncio
async def test_cancelled_visit_frees_the_slot(store):
    store.add(make_visit(status=VisitStatus.CANCELLED))

    result = await visits_service.schedule_visit(_request(), store.users["user-other"], store.session(), now=NOW)

    assert result.status == VisitStatus.SCHEDULED


@pytest.mark.asyncio
async def test_hidden_listing_cannot_be_visited(store):
    store.properties["prop-1"].approval_status = ApprovalStatus.PENDING

    with pytest.raises(NotFoundError):
        await visits_service.schedule_visit(_request(), store.users["user-client"], store.session(), now=NOW)
    with pytest.raises(InvalidStateError):
        await visits_service.schedule_visit(_request(), store.users["user-admin"], store.session(), now=NOW)


@pytest.mark.asyncio
async def test_rented_listing_cannot_be_visited(store):
    store.properties["prop-1"].availability_status = AvailabilityStatus.RENTED

    with pytest.raises(NotFoundError):
        await visits_service.schedule_visit(_request(), store.users["user-client"], store.session(), now=NOW)


@pytest.mark.asyncio
async def test_owner_cannot_visit_own_listing(store):
    with pytest.raises(ValidationError):
        await visits_service.schedule_visit(_request(), store.users["user-owner"], store.session(), now=NOW)


@pytest.mark.asyncio
async def test_client_cancels_and_owner_is_notified(store):
    store.add(make_visit())
    session = store.session()

    result = await visits_service.cancel_visit("visit-1", store.users["user-client"], session)

    assert result.status == VisitStatus.CANCELLED
    assert store.visits["visit-1"].cancelled_by_id == "user-client"
    [notification] = session.notifications()
    assert notification.user_id == "user-owner"
    assert notification.kind == NotificationKind.VISIT_CANCELLED


@pytest.mark.asyncio
async def test_owner_cancels_and_client_is_notified(store):
    store.add(make_visit())
    session = store.session()

    await visits_service.cancel_visit("visit-1", store.users["user-owner"], session)

    assert [n.user_id for n in session.notifications()] == ["user-client"]


@pytest.mark.asyncio
async def test_outsider_cannot_cancel_visit(store):
    store.add(make_visit())

    with pytest.raises(AuthorizationError):
        await visits_service.cancel_visit("visit-1", store.users["user-other"], store.session())


@pytest.mark.asyncio
async def test_owner_completes_visit_once(store):
    store.add(make_visit())

    with pytest.raises(AuthorizationError):
        await visits_service.complete_visit("visit-1", store.users["user-client"], store.session())
    result = await visits_service.complete_visit("visit-1", store.users["user-owner"], store.session())
    assert result.status == VisitStatus.COMPLETED

    with pytest.raises(InvalidStateError):
        await visits_service.complete_visit("visit-1", store.users["user-owner"], store.session())
    with pytest.raises(InvalidStateError):
        await visits_service.cancel_visit("visit-1", store.users["user-client"], store.session())


@pytest.mark.asyncio
async def test_unknown_visit(store):
    with pytest.raises(NotFoundError):
        await visits_service.cancel_visit("visit-missing", store.users["user-client"], store.session())


@pytest.mark.asyncio
async def test_list_visits_covers_client_and_owner_sides(store):
    store.add(
        make_property("prop-2", owner_id="user-other"),
        make_visit("visit-late", slot_start=SLOT + timedelta(days=1)),
        make_visit("visit-early"),
        make_visit("visit-elsewhere", property_id="prop-2", client_id="user-admin"),
    )

    client_view = await visits_service.list_visits(store.users["user-client"], store.session())
    owner_view = await visits_service.list_visits(store.users["user-owner"], store.session())
    other_view = await visits_service.list_visits(store.users["user-other"], store.session())

    assert [visit.id for visit in client_view.results] == ["visit-early", "visit-late"]
    assert [visit.id for visit in owner_view.results] == ["visit-early", "visit-late"]
    assert [visit.id for visit in other_view.results] == ["visit-elsewhere"]
