"""
Task routes for the Taskgate API.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.auth import get_current_actor
from taskgate.database import get_session
from taskgate.exceptions import ErrorResponse
from taskgate.models import Subtask, Task
from taskgate.schemas import (
    AssigneeRequest,
    AssignOwnerRequest,
    SubtaskRead,
    TaskCreate,
    TaskRead,
    TaskTimeRead,
    TaskUpdate,
)
from taskgate.services.authorization import Actor
from taskgate.services.notifications import NotificationSink, get_notification_sink
from taskgate.services.subtasks import SubtaskService
from taskgate.services.tasks import TaskService
from taskgate.store import EntityStore

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    }
)


def get_task_service(
    session: AsyncSession = Depends(get_session),
    notifications: NotificationSink = Depends(get_notification_sink),
) -> TaskService:
    return TaskService(EntityStore(session), notifications)


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    """
    Create a new task.

    The caller becomes the owner and the first assignee.
    """
    return await service.create(task_in.model_dump(exclude_unset=True), actor)


@router.get("/", response_model=list[TaskRead])
async def list_tasks(
    owner_id: str | None = None,
    assignee_id: str | None = None,
    project_id: uuid.UUID | None = None,
    status: str | None = None,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> list[Task]:
    """List active tasks, optionally filtered."""
    return await service.list_tasks(
        owner_id=owner_id,
        assignee_id=assignee_id,
        project_id=project_id,
        status=status,
    )


@router.get("/archived", response_model=list[TaskRead])
async def list_archived_tasks(
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> list[Task]:
    """Archived tasks the caller owns or is assigned to."""
    return await service.list_archived(actor)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    """Get a task by ID."""
    return await service.get(task_id)


@router.get("/{task_id}/time", response_model=TaskTimeRead)
async def get_task_total_time(
    task_id: uuid.UUID,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> TaskTimeRead:
    """Time logged on the task plus its active subtasks."""
    return TaskTimeRead(task_id=task_id, total_time=await service.total_time(task_id))


@router.get("/{task_id}/subtasks", response_model=list[SubtaskRead])
async def list_task_subtasks(
    task_id: uuid.UUID,
    archived: bool = False,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> list[Subtask]:
    """Subtasks of a task; ``archived=true`` lists the archived ones instead."""
    service = SubtaskService(EntityStore(session))
    if archived:
        return await service.list_archived_by_parent_task(task_id)
    return await service.list_by_parent_task(task_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    """
    Update a task.

    Removing assignees needs the manager role. Completing a recurring
    task creates its next occurrence.
    """
    return await service.update(task_id, task_in.model_dump(exclude_unset=True), actor)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> None:
    """Delete a task (owner only)."""
    await service.delete(task_id, actor)


@router.post("/{task_id}/owner", response_model=TaskRead)
async def assign_task_owner(
    task_id: uuid.UUID,
    body: AssignOwnerRequest,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    """Hand the task to a new owner, by user id or username."""
    return await service.assign_owner(task_id, body.assignee, actor)


@router.post("/{task_id}/assignees", response_model=TaskRead)
async def add_task_assignee(
    task_id: uuid.UUID,
    body: AssigneeRequest,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    return await service.add_assignee(task_id, body.user_id, actor)


@router.delete("/{task_id}/assignees/{user_id}", response_model=TaskRead)
async def remove_task_assignee(
    task_id: uuid.UUID,
    user_id: str,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    return await service.remove_assignee(task_id, user_id, actor)


@router.post("/{task_id}/archive", response_model=TaskRead)
async def archive_task(
    task_id: uuid.UUID,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    return await service.archive_task(task_id, actor)


@router.post("/{task_id}/unarchive", response_model=TaskRead)
async def unarchive_task(
    task_id: uuid.UUID,
    service: TaskService = Depends(get_task_service),
    actor: Actor = Depends(get_current_actor),
) -> Task:
    return await service.unarchive_task(task_id, actor)
