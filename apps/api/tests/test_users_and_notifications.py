"""Tests for profile updates and the notification inbox."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from biva_api.core.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from biva_api.models.notification import NotificationKind
from biva_api.models.user import UserStatus
from biva_api.repositories import notifications as notifications_repo
from biva_api.schemas.users import ProfileUpdate, UserStatusUpdate
from biva_api.services import notifications as notifications_service
from biva_api.services import users as users_service
from stubs import DummySession, FakeStore, make_user


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    store = FakeStore().install(monkeypatch)
    store.add(make_user("user-client", bi=None), make_user("user-admin", roles=["admin"]))
    return store


@pytest.mark.asyncio
async def test_update_profile_records_bi_and_contact_details(store):
    user = store.users["user-client"]

    result = await users_service.update_profile(
        ProfileUpdate(bi=" 001122334LA045 ", address="Rua 4, Cazenga"), user, store.session()
    )

    assert result.bi == "001122334LA045"
    assert result.address == "Rua 4, Cazenga"


@pytest.mark.asyncio
async def test_update_profile_refuses_to_replace_bi(store):
    user = store.users["user-client"]
    user.bi = "001122334LA045"

    with pytest.raises(InvalidStateError):
        await users_service.update_profile(ProfileUpdate(bi="009999999LA000"), user, store.session())

    # Re-sending the recorded value is harmless.
    result = await users_service.update_profile(ProfileUpdate(bi="001122334LA045"), user, store.session())
    assert result.bi == "001122334LA045"


def test_profile_update_rejects_short_bi():
    with pytest.raises(ValueError):
        ProfileUpdate(bi="123")


@pytest.mark.asyncio
async def test_admin_blocks_and_unblocks_account(store):
    admin = store.users["user-admin"]

    blocked = await users_service.set_user_status(
        "user-client", UserStatusUpdate(status=UserStatus.BLOCKED), admin, store.session()
    )
    assert blocked.status == UserStatus.BLOCKED
    listed = await users_service.list_users(admin, store.session(), status=UserStatus.BLOCKED)
    assert [user.id for user in listed.results] == ["user-client"]

    restored = await users_service.set_user_status(
        "user-client", UserStatusUpdate(status=UserStatus.ACTIVE), admin, store.session()
    )
    assert restored.status == UserStatus.ACTIVE


@pytest.mark.asyncio
async def test_account_status_is_admin_only(store):
    update = UserStatusUpdate(status=UserStatus.BLOCKED)

    with pytest.raises(AuthorizationError):
        await users_service.set_user_status("user-admin", update, store.users["user-client"], store.session())
    with pytest.raises(AuthorizationError):
        await users_service.list_users(store.users["user-client"], store.session())
    with pytest.raises(ValidationError):
        await users_service.set_user_status("user-admin", update, store.users["user-admin"], store.session())
    with pytest.raises(NotFoundError):
        await users_service.set_user_status("user-ghost", update, store.users["user-admin"], store.session())


def _notification(**overrides) -> SimpleNamespace:
    fields = {
        "id": "notif-1",
        "kind": NotificationKind.CONTRACT_CREATED,
        "title": "New contract to sign",
        "message": "Joana sent you a rental contract.",
        "property_id": "prop-1",
        "contract_id": "contract-1",
        "read": False,
        "created_at": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.asyncio
async def test_list_notifications_forwards_unread_filter(monkeypatch):
    list_for_user = AsyncMock(return_value=[_notification()])
    monkeypatch.setattr(notifications_repo, "list_for_user", list_for_user)
    session = DummySession()

    response = await notifications_service.list_notifications(make_user("user-client"), session, unread_only=True)

    assert [item.id for item in response.results] == ["notif-1"]
    list_for_user.assert_awaited_once_with(session, "user-client", unread_only=True)


@pytest.mark.asyncio
async def test_mark_read_returns_updated_notification(monkeypatch):
    monkeypatch.setattr(notifications_repo, "mark_read", AsyncMock(return_value=_notification(read=True)))

    result = await notifications_service.mark_notification_read("notif-1", make_user("user-client"), DummySession())

    assert result.read is True


@pytest.mark.asyncio
async def test_mark_read_hides_other_users_notifications(monkeypatch):
    monkeypatch.setattr(notifications_repo, "mark_read", AsyncMock(return_value=None))

    with pytest.raises(NotFoundError):
        await notifications_service.mark_notification_read("notif-1", make_user("user-client"), DummySession())
