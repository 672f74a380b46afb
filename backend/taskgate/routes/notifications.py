"""
Notification inbox routes. Every operation is scoped to the caller.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.auth import get_current_actor
from taskgate.database import get_session
from taskgate.exceptions import ErrorResponse
from taskgate.models import Notification
from taskgate.schemas import NotificationRead
from taskgate.services.authorization import Actor
from taskgate.services.notifications import NotificationService
from taskgate.store import EntityStore

router = APIRouter(
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    }
)


def get_notification_service(session: AsyncSession = Depends(get_session)) -> NotificationService:
    return NotificationService(EntityStore(session))


@router.get("/", response_model=list[NotificationRead])
async def list_notifications(
    unread: bool = False,
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
) -> list[Notification]:
    """The caller's notifications, newest first."""
    return await service.list_for_recipient(actor, unread_only=unread)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: uuid.UUID,
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
) -> Notification:
    return await service.mark_read(notification_id, actor)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: uuid.UUID,
    service: NotificationService = Depends(get_notification_service),
    actor: Actor = Depends(get_current_actor),
) -> None:
    await service.delete(notification_id, actor)
