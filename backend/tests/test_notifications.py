"""
Notification inbox: every read or write is limited to the recipient.
"""

import uuid
from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskgate.exceptions import NotFoundError, PermissionDeniedError
from taskgate.models import Notification
from taskgate.services.notifications import NotificationService, NotificationSink


@pytest.fixture
def inbox(store):
    return NotificationService(store)


async def notify(store, recipient_id, message="Ping", created_at=None, read=False):
    notification = Notification(recipient_id=recipient_id, message=message, read=read)
    if created_at is not None:
        notification.created_at = created_at
    return await store.create(notification)


class TestListForRecipient:
    @pytest.mark.asyncio
    async def test_only_own_notifications_newest_first(self, inbox, store, actors):
        await notify(store, "u1", "older", created_at=datetime(2025, 6, 1, 8, 0))
        await notify(store, "u1", "newer", created_at=datetime(2025, 6, 2, 8, 0))
        await notify(store, "u2", "not yours")

        result = await inbox.list_for_recipient(actors["u1"])

        assert [n.message for n in result] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_unread_filter(self, inbox, store, actors):
        await notify(store, "u1", "seen", read=True)
        await notify(store, "u1", "fresh")

        result = await inbox.list_for_recipient(actors["u1"], unread_only=True)

        assert [n.message for n in result] == ["fresh"]

    @pytest.mark.asyncio
    async def test_sink_writes_land_in_the_inbox(self, inbox, test_engine, actors):
        session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
        task_id = uuid.uuid4()

        await NotificationSink(session_factory).create("u2", "You were assigned", acting_user_id="u1", task_id=task_id)

        result = await inbox.list_for_recipient(actors["u2"])
        assert len(result) == 1
        assert result[0].acting_user_id == "u1"
        assert result[0].task_id == task_id
        assert result[0].read is False


class TestMarkRead:
    @pytest.mark.asyncio
    async def test_recipient_marks_read(self, inbox, store, actors):
        notification = await notify(store, "u1")

        updated = await inbox.mark_read(notification.id, actors["u1"])

        assert updated.read is True
        assert await inbox.list_for_recipient(actors["u1"], unread_only=True) == []

    @pytest.mark.asyncio
    async def test_other_users_cannot_mark_read(self, inbox, store, actors):
        notification = await notify(store, "u1")

        # Not even an admin
        for user_id in ("u2", "admin"):
            with pytest.raises(PermissionDeniedError):
                await inbox.mark_read(notification.id, actors[user_id])

        assert (await store.find_by_id(Notification, notification.id)).read is False

    @pytest.mark.asyncio
    async def test_unknown_notification(self, inbox, actors):
        with pytest.raises(NotFoundError, match="Notification not found"):
            await inbox.mark_read(uuid.uuid4(), actors["u1"])


class TestDelete:
    @pytest.mark.asyncio
    async def test_recipient_deletes(self, inbox, store, actors):
        notification = await notify(store, "u1")

        await inbox.delete(notification.id, actors["u1"])

        assert await store.find_by_id(Notification, notification.id) is None

    @pytest.mark.asyncio
    async def test_other_users_cannot_delete(self, inbox, store, actors):
        notification = await notify(store, "u1")

        with pytest.raises(PermissionDeniedError):
            await inbox.delete(notification.id, actors["u2"])

        assert await store.find_by_id(Notification, notification.id) is not None
