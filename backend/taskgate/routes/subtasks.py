"""
Subtask routes for the Taskgate API.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.auth import get_current_actor
from taskgate.database import get_session
from taskgate.exceptions import ErrorResponse
from taskgate.models import Subtask
from taskgate.schemas import SubtaskCreate, SubtaskRead, SubtaskUpdate
from taskgate.services.authorization import Actor
from taskgate.services.subtasks import SubtaskService
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


def get_subtask_service(session: AsyncSession = Depends(get_session)) -> SubtaskService:
    return SubtaskService(EntityStore(session))


@router.post("/", response_model=SubtaskRead, status_code=status.HTTP_201_CREATED)
async def create_subtask(
    subtask_in: SubtaskCreate,
    service: SubtaskService = Depends(get_subtask_service),
    actor: Actor = Depends(get_current_actor),
) -> Subtask:
    """Create a subtask under an existing task."""
    return await service.create(subtask_in.model_dump(exclude_unset=True), actor)


@router.get("/", response_model=list[SubtaskRead])
async def list_subtasks(
    project_id: uuid.UUID,
    service: SubtaskService = Depends(get_subtask_service),
    actor: Actor = Depends(get_current_actor),
) -> list[Subtask]:
    """Active subtasks of a project."""
    return await service.list_by_project(project_id)


@router.get("/{subtask_id}", response_model=SubtaskRead)
async def get_subtask(
    subtask_id: uuid.UUID,
    service: SubtaskService = Depends(get_subtask_service),
    actor: Actor = Depends(get_current_actor),
) -> Subtask:
    return await service.get(subtask_id)


@router.patch("/{subtask_id}", response_model=SubtaskRead)
async def update_subtask(
    subtask_id: uuid.UUID,
    subtask_in: SubtaskUpdate,
    service: SubtaskService = Depends(get_subtask_service),
    actor: Actor = Depends(get_current_actor),
) -> Subtask:
    """Update a subtask. Parent task and project are fixed."""
    return await service.update(subtask_id, subtask_in.model_dump(exclude_unset=True), actor)


@router.post("/{subtask_id}/archive", response_model=SubtaskRead)
async def archive_subtask(
    subtask_id: uuid.UUID,
    service: SubtaskService = Depends(get_subtask_service),
    actor: Actor = Depends(get_current_actor),
) -> Subtask:
    return await service.archive(subtask_id, actor)


@router.post("/{subtask_id}/unarchive", response_model=SubtaskRead)
async def unarchive_subtask(
    subtask_id: uuid.UUID,
    service: SubtaskService = Depends(get_subtask_service),
    actor: Actor = Depends(get_current_actor),
) -> Subtask:
    return await service.unarchive(subtask_id, actor)
