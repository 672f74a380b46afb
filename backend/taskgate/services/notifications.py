"""
Notification sink and inbox.

Notifications are written in their own session so that a failed insert
can never roll back the mutation that triggered it. Callers treat
delivery as fire-and-forget.
"""

import uuid
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskgate.database import async_session_maker
from taskgate.exceptions import NotFoundError, PermissionDeniedError
from taskgate.models import Notification
from taskgate.services.authorization import Actor
from taskgate.store import EntityStore
from taskgate.logging_config import get_logger

logger = get_logger(__name__)


class NotificationSink:
    """Persists in-app notifications."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(
        self,
        recipient_id: str,
        message: str,
        acting_user_id: str | None = None,
        deadline: date | None = None,
        task_id: uuid.UUID | None = None,
    ) -> Notification:
        notification = Notification(
            recipient_id=recipient_id,
            message=message,
            acting_user_id=acting_user_id,
            deadline=deadline,
            task_id=task_id,
        )
        async with self.session_factory() as session:
            session.add(notification)
            await session.commit()
            await session.refresh(notification)

        logger.debug(f"Notification {notification.id} -> user={recipient_id}")
        return notification


def get_notification_sink() -> NotificationSink:
    """Dependency for the request's notification sink."""
    return NotificationSink(async_session_maker)


class NotificationService:
    """A user's inbox: listing, marking read and dismissing their own notifications."""

    def __init__(self, store: EntityStore):
        self.store = store

    async def list_for_recipient(self, actor: Actor, unread_only: bool = False) -> list[Notification]:
        where = [Notification.recipient_id == actor.id]
        if unread_only:
            where.append(Notification.read == False)  # noqa: E712
        return await self.store.find(Notification, *where, order_by=[Notification.created_at.desc()])

    async def _get_own(self, notification_id: uuid.UUID, actor: Actor) -> Notification:
        notification = await self.store.find_by_id(Notification, notification_id)
        if not notification:
            raise NotFoundError("Notification", notification_id, message="Notification not found")
        if notification.recipient_id != actor.id:
            raise PermissionDeniedError("You can only manage your own notifications")
        return notification

    async def mark_read(self, notification_id: uuid.UUID, actor: Actor) -> Notification:
        notification = await self._get_own(notification_id, actor)
        if notification.read:
            return notification
        notification.read = True
        return await self.store.save(notification)

    async def delete(self, notification_id: uuid.UUID, actor: Actor) -> None:
        await self._get_own(notification_id, actor)
        await self.store.delete_by_id(Notification, notification_id)
        logger.debug(f"Notification {notification_id} dismissed by user={actor.id}")
